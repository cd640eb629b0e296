# apps/api/app/main.py
import logging

from fastapi import FastAPI
from fastapi.responses import RedirectResponse
from fastapi.middleware.cors import CORSMiddleware

from apps.api.app.core.errors import register_error_handlers

# Routers (each router file already sets its own prefix/tags)
from apps.api.app.routers.admin import router as admin_router
from apps.api.app.routers.health import router as health_router
from apps.api.app.routers.meta import router as meta_router
from apps.api.app.routers.predictions import router as predictions_router
from apps.api.app.routers.upsets import router as upsets_router

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

app = FastAPI(
    title="ValueEdge API",
    version="0.1.0",
    description=(
        "Heuristic value-edge picks for NBA, NHL and NCAAM slates, "
        "plus nightly grading of finished games."
    ),
)

# CORS (open for dev; tighten allow_origins in prod)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # e.g., ["http://localhost:5173"] in prod
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

app.include_router(health_router)
app.include_router(meta_router)
app.include_router(predictions_router)
app.include_router(upsets_router)
app.include_router(admin_router)


# Redirect root to Swagger UI
@app.get("/", include_in_schema=False)
def root():
    return RedirectResponse(url="/docs")
