import os
import time
import httpx
from loguru import logger
from prometheus_client import Counter, Histogram

from .schemas import UpstreamResult
from .utils import join_url

COINCAP_URL = os.environ.get("COINCAP_URL", "https://api.coincap.io/v2")
UPSTREAM_TIMEOUT = 10.0

UPSTREAM_REQUESTS = Counter("upstream_requests_total", "Upstream GET requests issued")
UPSTREAM_ERRORS = Counter("upstream_errors_total", "Upstream calls that failed", ["kind"])
UPSTREAM_LATENCY = Histogram("upstream_latency_seconds", "Time spent waiting on the upstream")


async def fetch_assets(client: httpx.AsyncClient, base_url: str = COINCAP_URL) -> UpstreamResult:
    """
    Single GET against {base_url}/assets. No retries.
    Every outcome comes back as an UpstreamResult; nothing is raised to the caller.
    """
    url = join_url(base_url, "/assets")
    UPSTREAM_REQUESTS.inc()
    t0 = time.monotonic()
    try:
        r = await client.get(url)
        if not r.is_success:
            logger.warning("Upstream {} answered {}", url, r.status_code)
            UPSTREAM_ERRORS.labels(kind="status").inc()
            return UpstreamResult(kind="upstream_error", status_code=r.status_code)
        body = r.json()
    except Exception as e:
        # transport errors, timeouts and undecodable bodies all land here
        logger.warning("Upstream {} unavailable: {!r}", url, e)
        UPSTREAM_ERRORS.labels(kind="unavailable").inc()
        return UpstreamResult(kind="unavailable", reason=repr(e))
    finally:
        UPSTREAM_LATENCY.observe(time.monotonic() - t0)
    return UpstreamResult(kind="ok", body=body, status_code=r.status_code)
