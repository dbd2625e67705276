"""FastAPI application factory."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from rosterarr import __version__
from rosterarr.api.routes import roster
from rosterarr.config import YahooSettings, load_settings
from rosterarr.database import SqliteCredentialStore
from rosterarr.services.roster import RosterGateway, create_roster_gateway

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app(
    settings: YahooSettings | None = None,
    gateway: RosterGateway | None = None,
) -> FastAPI:
    """Build the application.

    Args:
        settings: Optional settings (default: loaded from the environment)
        gateway: Optional prebuilt gateway (default: built from settings with
            a SQLite credential store)
    """
    settings = settings or load_settings()
    configure_logging(settings.log_level)

    if gateway is None:
        gateway = create_roster_gateway(settings, SqliteCredentialStore(settings.db_path))

    missing = settings.missing_configuration()
    if missing:
        logger.warning("[STARTUP] Yahoo configuration incomplete: %s", ", ".join(missing))

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("[STARTUP] rosterarr %s ready", __version__)
        yield
        app.state.gateway.close()
        logger.info("[SHUTDOWN] Gateway closed")

    app = FastAPI(
        title="Rosterarr",
        description="Read-through gateway for Yahoo Fantasy rosters",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.gateway = gateway
    app.include_router(roster.router, prefix="/api")
    return app
