# centerline/api/main.py
import sys
import logging

import matplotlib
matplotlib.use("Agg")

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from centerline.core.config import load_config, get_setting
from centerline.core.utils.log_setup import setup_logging_from_config
from centerline.api.routers import layout, points, settings, status, views

logger = logging.getLogger(__name__)


# --- Lifespan Context Manager ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    # === Startup ===
    try:
        load_config()
        setup_logging_from_config('app.api_log_file')
        logger.info("API Startup: Core configuration loaded.")
    except ValueError as e:
        # Requests will fail through the config dependency with a 500.
        print(f"FATAL: API Startup Failed during core config load: {e}", file=sys.stderr)
    logger.info(f"API Startup: storage backend '{get_setting('app.storage_backend', 'file')}', "
                f"data dir '{get_setting('app.data_dir', 'data')}'.")
    yield
    # === Shutdown ===
    logger.info("API Shutdown complete.")


# --- FastAPI App Initialization ---
app = FastAPI(
    title="Centerline API",
    description="Backend for the Centerline machine-calibration dashboard: point and layout storage, map and phasing views, QR links.",
    version="0.1.0",
    lifespan=lifespan
)

# --- CORS Configuration ---
# The dashboard is opened from phones on the plant LAN; no credentials are involved.
origins = ["*"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Include Routers ---
api_prefix = "/api/v1"

app.include_router(status.router, prefix=api_prefix)
app.include_router(points.router, prefix=api_prefix)
app.include_router(layout.router, prefix=api_prefix)
app.include_router(views.router, prefix=api_prefix)
app.include_router(settings.router, prefix=api_prefix)

# --- Root Endpoint ---
@app.get("/", tags=["Root"])
async def read_root():
    return {"message": "Welcome to the Centerline API. See /docs for details."}
