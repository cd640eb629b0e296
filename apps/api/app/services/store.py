# apps/api/app/services/store.py
from __future__ import annotations

import json
import logging
from typing import Dict, Optional, Tuple

import psycopg
from psycopg import sql
from psycopg.types.json import Jsonb

from apps.api.app.core.config import PERFORMANCE_TABLE, POSTGRES_DSN
from apps.api.app.schemas.grading import GradingSummary

logger = logging.getLogger(__name__)


class GradingStore:
    """Persists one GradingSummary per (league, date), replacing on conflict."""

    def upsert(self, summary: GradingSummary) -> None:
        raise NotImplementedError

    def get(self, league: str, date: str) -> Optional[GradingSummary]:
        raise NotImplementedError


class InMemoryGradingStore(GradingStore):
    def __init__(self):
        self._rows: Dict[Tuple[str, str], GradingSummary] = {}

    def upsert(self, summary: GradingSummary) -> None:
        self._rows[(summary.date, summary.league)] = summary

    def get(self, league: str, date: str) -> Optional[GradingSummary]:
        return self._rows.get((date, league))

    def __len__(self) -> int:
        return len(self._rows)


_CREATE_SQL = """
    CREATE TABLE IF NOT EXISTS {table} (
        "date"          DATE NOT NULL,
        league          TEXT NOT NULL,
        model           TEXT,
        games           INTEGER NOT NULL DEFAULT 0,
        picks           INTEGER NOT NULL DEFAULT 0,
        completed       INTEGER NOT NULL DEFAULT 0,
        wins            INTEGER NOT NULL DEFAULT 0,
        losses          INTEGER NOT NULL DEFAULT 0,
        pushes          INTEGER NOT NULL DEFAULT 0,
        pass            INTEGER NOT NULL DEFAULT 0,
        win_rate        DOUBLE PRECISION,
        avg_edge        DOUBLE PRECISION,
        avg_win_prob    DOUBLE PRECISION,
        avg_confidence  DOUBLE PRECISION,
        summary         JSONB NOT NULL,
        updated_at      TIMESTAMPTZ NOT NULL DEFAULT now(),
        PRIMARY KEY ("date", league)
    );
"""

_UPSERT_SQL = """
    INSERT INTO {table}
        ("date", league, model, games, picks, completed, wins, losses, pushes, pass,
         win_rate, avg_edge, avg_win_prob, avg_confidence, summary, updated_at)
    VALUES (%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s, now())
    ON CONFLICT ("date", league) DO UPDATE SET
        model = EXCLUDED.model,
        games = EXCLUDED.games,
        picks = EXCLUDED.picks,
        completed = EXCLUDED.completed,
        wins = EXCLUDED.wins,
        losses = EXCLUDED.losses,
        pushes = EXCLUDED.pushes,
        pass = EXCLUDED.pass,
        win_rate = EXCLUDED.win_rate,
        avg_edge = EXCLUDED.avg_edge,
        avg_win_prob = EXCLUDED.avg_win_prob,
        avg_confidence = EXCLUDED.avg_confidence,
        summary = EXCLUDED.summary,
        updated_at = now();
"""

_SELECT_SQL = """
    SELECT summary FROM {table} WHERE "date" = %s AND league = %s
"""


class PostgresGradingStore(GradingStore):
    def __init__(self, dsn: str = POSTGRES_DSN, table: str = PERFORMANCE_TABLE):
        self.dsn = dsn
        self.table = sql.Identifier(*table.split("."))
        self._ready = False

    def _ensure_table(self, cur) -> None:
        if self._ready:
            return
        cur.execute(sql.SQL(_CREATE_SQL).format(table=self.table))
        self._ready = True

    @staticmethod
    def row_params(summary: GradingSummary) -> tuple:
        c, m = summary.counts, summary.metrics
        return (
            summary.date, summary.league, summary.model,
            c.games, c.picks, c.completed, c.wins, c.losses, c.pushes, c.passes,
            m.win_rate, m.avg_edge, m.avg_win_prob, m.avg_confidence,
            Jsonb(summary.model_dump(mode="json", by_alias=True)),
        )

    def upsert(self, summary: GradingSummary) -> None:
        with psycopg.connect(self.dsn) as conn, conn.cursor() as cur:
            self._ensure_table(cur)
            cur.execute(sql.SQL(_UPSERT_SQL).format(table=self.table), self.row_params(summary))
            conn.commit()
        logger.info("[Store] upserted %s %s into %s", summary.league, summary.date, PERFORMANCE_TABLE)

    def ping(self) -> bool:
        try:
            with psycopg.connect(self.dsn, connect_timeout=3) as conn, conn.cursor() as cur:
                cur.execute("SELECT 1")
            return True
        except psycopg.Error as e:
            logger.warning("[Store] Postgres unreachable: %s", e)
            return False

    def get(self, league: str, date: str) -> Optional[GradingSummary]:
        with psycopg.connect(self.dsn) as conn, conn.cursor() as cur:
            self._ensure_table(cur)
            cur.execute(sql.SQL(_SELECT_SQL).format(table=self.table), (date, league))
            row = cur.fetchone()
        if not row:
            return None
        payload = row[0]
        if isinstance(payload, str):
            payload = json.loads(payload)
        return GradingSummary.model_validate(payload)
