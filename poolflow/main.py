# main.py

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from api.deps import get_transfer_provider
from api.routes.holder_history import router as holder_history_router
from api.routes.token_transfers import router as token_transfers_router
from core.config import get_settings

settings = get_settings()

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

logger = logging.getLogger(__name__)


async def close_transfer_provider() -> None:
    """Release the cached provider's HTTP client, if one was ever built."""
    if get_transfer_provider.cache_info().currsize == 0:
        return
    provider = get_transfer_provider()
    aclose = getattr(provider, "aclose", None)
    if aclose is not None:
        await aclose()
        logger.info(f"[Main] Closed {provider.name} transfer provider")
    get_transfer_provider.cache_clear()


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await close_transfer_provider()


app = FastAPI(
    title="PoolFlow Backend",
    description="Token flow, whale and holder analytics for yield pools",
    version="1.0.0",
    lifespan=lifespan,
)

# Routes
app.include_router(token_transfers_router)
app.include_router(holder_history_router)

# Health checks
@app.get("/healthz")
async def health():
    return {"status": "ok"}

@app.get("/readyz")
async def ready():
    return {"status": "ready", "provider": get_transfer_provider().name}
