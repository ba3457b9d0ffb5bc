import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .core.config import Settings, settings
from .core.errors import AirMetricsError, Internal, InvalidInput
from .routers import data
from .services.aggregator import AirQualityAggregator
from .services.cache import NullCache, RedisResultCache
from .services.geocoding import LocationResolver
from .services.openaq import OpenAQFetcher

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def build_cache(cfg: Settings):
    if not cfg.cache_enabled:
        return NullCache()
    return RedisResultCache(
        cfg.redis_url,
        connect_attempts=cfg.cache_connect_attempts,
        retry_after=cfg.cache_retry_after,
    )


def build_aggregator(cfg: Settings, client: httpx.AsyncClient, cache) -> AirQualityAggregator:
    return AirQualityAggregator(
        mode=cfg.data_mode,
        resolver=LocationResolver(client, base_url=cfg.nominatim_base, user_agent=cfg.user_agent),
        fetcher=OpenAQFetcher(client, api_key=cfg.openaq_api_key, base_url=cfg.openaq_base),
        cache=cache,
        cache_prefix=cfg.cache_prefix,
        air_quality_ttl=cfg.air_quality_ttl,
        rankings_ttl=cfg.rankings_ttl,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    # cliente HTTP y cache compartidos por todas las requests
    client = httpx.AsyncClient(timeout=settings.request_timeout)
    cache = build_cache(settings)
    app.state.aggregator = build_aggregator(settings, client, cache)
    logger.info("%s started in %s mode", settings.app_name, settings.data_mode.value)
    try:
        yield
    finally:
        await client.aclose()
        await cache.close()


configure_logging(settings.log_level)
app = FastAPI(title=settings.app_name, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AirMetricsError)
async def airmetrics_error_handler(request: Request, exc: AirMetricsError):
    logger.error("%s %s -> %d %s", request.method, request.url.path, exc.status_code, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    messages = ", ".join(
        f"{err['loc'][-1] if err.get('loc') else 'query'}: {err.get('msg')}" for err in exc.errors()
    )
    err = InvalidInput(messages)
    return JSONResponse(status_code=err.status_code, content=err.to_dict())


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception("Unexpected error on %s %s", request.method, request.url.path)
    err = Internal("Something went wrong!")
    return JSONResponse(status_code=err.status_code, content=err.to_dict())


app.include_router(data.router)


@app.get("/")
def root():
    return {"name": settings.app_name, "env": settings.app_env, "mode": settings.data_mode.value, "message": "OK"}
