# crypto_gateway/main.py
import os
import sys

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response
import httpx
import uvicorn
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from loguru import logger

from .cache import CACHE_TTL, create_cache
from .gateway import CachedFetchGateway
from .schemas import HealthResponse
from .upstream import COINCAP_URL, UPSTREAM_TIMEOUT
from .utils import make_request_id

SINGLE_FLIGHT = True

LOG_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | rid={extra[request_id]} | "
    "{name}:{function}:{line} - {message}"
)


def configure_logging(sink=sys.stderr, level: str = "INFO") -> int:
    """Replace loguru sinks with one that prints the bound request id. Returns the handler id."""
    logger.remove()
    logger.configure(extra={"request_id": "-"})
    return logger.add(sink, level=level, format=LOG_FORMAT)


app = FastAPI(title="Crypto Assets Gateway")

# app.state holds: http_client, cache, gateway


@app.on_event("startup")
async def startup_event():
    logger.info("Starting up: upstream={} ttl={}s single_flight={}", COINCAP_URL, CACHE_TTL, SINGLE_FLIGHT)
    limits = httpx.Limits(max_keepalive_connections=10, max_connections=20)
    app.state.http_client = httpx.AsyncClient(timeout=UPSTREAM_TIMEOUT, limits=limits)
    app.state.cache = create_cache(CACHE_TTL)
    app.state.gateway = CachedFetchGateway(
        app.state.cache,
        app.state.http_client,
        base_url=COINCAP_URL,
        ttl=CACHE_TTL,
        single_flight=SINGLE_FLIGHT,
    )
    logger.info("Startup complete.")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Shutting down: closing http client and cache")
    http_client = getattr(app.state, "http_client", None)
    if http_client:
        await http_client.aclose()
    cache = getattr(app.state, "cache", None)
    if cache:
        await cache.close()
    logger.info("Shutdown complete.")


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    rid = make_request_id()
    with logger.contextualize(request_id=rid):
        response = await call_next(request)
    response.headers["X-Request-ID"] = rid
    return response


@app.get("/api/crypto")
async def crypto_assets():
    """
    Asset list from the upstream, cached for CACHE_TTL seconds.
    Upstream failures come back as {"error": ...} with status 503.
    """
    body, status = await app.state.gateway.handle_request()
    return JSONResponse(content=body, status_code=status)


@app.get("/health", response_model=HealthResponse)
async def health():
    return {"status": "ok", "upstream": COINCAP_URL, "cache_ttl": CACHE_TTL}


@app.get("/ready")
async def ready():
    if getattr(app.state, "gateway", None) is None:
        return {"ready": False, "reason": "no-gateway"}
    return {"ready": True}


@app.get("/metrics")
async def metrics():
    """
    Prometheus metrics endpoint.
    """
    data = generate_latest()
    return Response(content=data, media_type=CONTENT_TYPE_LATEST)


if __name__ == "__main__":
    # launcher settings; an app imported by another server never reads them
    configure_logging(level=os.getenv("LOG_LEVEL", "INFO").upper())
    uvicorn.run("crypto_gateway.main:app", host="0.0.0.0", port=int(os.getenv("PORT", "8000")))
