from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from typing import Any, Dict

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ..rules.schedule_loader import load_schedule
from ..settings import settings
from .routes import router as tariff_router

# ---------------- Logging ----------------
logging.basicConfig(
    level=settings.logging_level,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger("survey-tariff-api")

API_VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(_app: FastAPI):
    # Build the immutable schedule once, before any request can reach it.
    schedule = load_schedule()
    logger.info(
        "Tariff schedule ready: %s (effective %s, %d zones)",
        schedule.source,
        schedule.effective,
        len(schedule.zones),
    )
    yield


# ---------- App ----------
app = FastAPI(
    title="Survey Tariff Calculator",
    version=API_VERSION,
    description="Itemized fee quotes for land surveys, due diligence and document processing",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    lifespan=lifespan,
)

app.include_router(tariff_router)

# ----- CORS -----
allow_origins = settings.allowed_origins
allow_all = allow_origins == ["*"]
app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    # Browsers disallow credentials with "*"; use regex echo when fully open.
    allow_credentials=not allow_all,
    allow_methods=["*"],
    allow_headers=["*"],
    allow_origin_regex=".*" if allow_all else None,
)


@app.get("/health", tags=["System"])
def health() -> Dict[str, Any]:
    schedule = load_schedule()
    return {
        "status": "ok",
        "version": API_VERSION,
        "schedule": {
            "effective": schedule.effective.isoformat() if schedule.effective else None,
            "zones": sorted(schedule.zones),
            "currency": schedule.currency,
        },
    }


# ----- Dev entrypoint -----
if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
