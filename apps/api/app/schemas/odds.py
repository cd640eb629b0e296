# apps/api/app/schemas/odds.py
from typing import Optional

from apps.api.app.schemas.base import FrozenCamelModel


class MarketAnchor(FrozenCamelModel):
    """De-vigged moneyline for one game from a single bookmaker."""
    bookmaker: str
    home_team: str
    away_team: str
    home_moneyline_price: Optional[float] = None
    away_moneyline_price: Optional[float] = None
    home_implied_prob: Optional[float] = None
    away_implied_prob: Optional[float] = None
    vig: Optional[float] = None
