from aiocache import Cache
from aiocache.serializers import JsonSerializer

# Fixed lifetime of the cached asset list, in seconds
CACHE_TTL = 60

# Single logical entry for the whole service
ASSETS_CACHE_KEY = "crypto_assets"


def create_cache(ttl: int = CACHE_TTL, namespace: str = "gateway"):
    # In-memory backend; JSON serializer hands each reader its own decoded copy
    return Cache(Cache.MEMORY, ttl=ttl, namespace=namespace, serializer=JsonSerializer())
