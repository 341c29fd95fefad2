from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from pydantic import ValidationError

from portfolio_snapshot.api.routes import router
from portfolio_snapshot.config.logging_setup import configure_logging
from portfolio_snapshot.config.settings import get_settings
from portfolio_snapshot.integrations.twelve_data import DemoQuoteClient, TwelveDataClient
from portfolio_snapshot.services.holding_store import HoldingStore
from portfolio_snapshot.services.price_cache import PriceCache
from portfolio_snapshot.services.price_refresh import PriceRefreshService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    service = app.state.price_refresh_service
    try:
        settings = app.state.get_settings()
    except ValidationError as exc:
        # keep app import/lifecycle usable without TWELVE_DATA_API_KEY; prices come from the demo client
        configure_logging()
        logger.warning("[APP][settings_invalid] quote_client=demo errors=%d", exc.error_count())
    else:
        configure_logging(settings.LOG_LEVEL)
        service.quote_client = TwelveDataClient(
            api_key=settings.TWELVE_DATA_API_KEY,
            base_url=settings.TWELVE_DATA_BASE_URL,
            timeout=settings.QUOTE_HTTP_TIMEOUT_SEC,
        )
        service.price_cache.ttl_sec = settings.PRICE_CACHE_TTL_SEC
        service.pace_sec = settings.PRICE_REFRESH_PACE_SEC
        logger.info(
            "[APP][startup] quote_client=twelve-data ttl_sec=%s pace_sec=%s",
            settings.PRICE_CACHE_TTL_SEC,
            settings.PRICE_REFRESH_PACE_SEC,
        )

    try:
        yield
    finally:
        await service.quote_client.aclose()
        logger.info("[APP][shutdown]")


app = FastAPI(title="Portfolio Snapshot", version="0.1.0", lifespan=lifespan)
app.include_router(router, prefix="/v1")

# NOTE: lazy-loaded so app import does not require env during tests.
app.state.get_settings = get_settings
app.state.holding_store = HoldingStore()
app.state.price_refresh_service = PriceRefreshService(
    quote_client=DemoQuoteClient(),
    price_cache=PriceCache(),
)
