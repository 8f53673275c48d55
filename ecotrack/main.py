import logging
import os
import time
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

# Load env from ecotrack/.env
package_dir = os.path.dirname(os.path.abspath(__file__))
if "PYTEST_CURRENT_TEST" not in os.environ:
    load_dotenv(dotenv_path=os.path.join(package_dir, ".env"))

from ecotrack.api import auth, habits, health, profile, realtime, stats  # noqa: E402
from ecotrack.core.config import cors_origins, settings, validate_config  # noqa: E402
from ecotrack.core.errors import (  # noqa: E402
    AppError,
    app_error_handler,
    http_error_handler,
    unhandled_exception_handler,
)
from ecotrack.core.logging import configure_logging  # noqa: E402
from ecotrack.core.middleware.request_id import RequestIdMiddleware  # noqa: E402
from ecotrack.core.validation import validate_env  # noqa: E402
from ecotrack.features.session.orchestrator import get_session  # noqa: E402

configure_logging(settings.ENV, settings.LOG_LEVEL)
validate_env()
validate_config(strict=getattr(settings, "CONFIG_STRICT", False))


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger = logging.getLogger("ecotrack")
    logger.info("Starting EcoTrack backend...")
    app.state.startup_time = time.time()
    session = get_session()
    logger.info(f"Document store: {type(session.store.documents).__name__}")
    try:
        yield
    finally:
        logging.getLogger("ecotrack").info("Stopping EcoTrack backend...")


app = FastAPI(title="EcoTrack Lite - Backend", lifespan=lifespan)

# Middlewares
app.add_middleware(RequestIdMiddleware)

app.add_exception_handler(AppError, app_error_handler)
app.add_exception_handler(HTTPException, http_error_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth.router, tags=["auth"])
app.include_router(habits.router, tags=["habits"])
app.include_router(stats.router, tags=["stats"])
app.include_router(profile.router, tags=["profile"])
app.include_router(realtime.router, tags=["realtime"])
app.include_router(health.router)


@app.get("/v1/version")
def version():
    return {"name": "ecotrack-lite", "version": "0.1.0", "env": settings.ENV}
