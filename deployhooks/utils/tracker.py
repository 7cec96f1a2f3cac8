from typing import Optional

import httpx

from deployhooks.config import settings
from deployhooks.database import SessionLocal
from deployhooks.services.config_resolver import ConfigResolver
from deployhooks.services.deployment_cache import DeploymentCache
from deployhooks.services.status_tracker import DeploymentTracker
from deployhooks.services.store import DatabaseStore, KeyValueStore, MemoryStore
from deployhooks.services.vercel_client import VercelClient

_memory_store: Optional[MemoryStore] = None


def get_store() -> KeyValueStore:
    global _memory_store
    if settings.cache_backend == "memory":
        if _memory_store is None:
            _memory_store = MemoryStore()
        return _memory_store
    return DatabaseStore(SessionLocal)


def get_resolver() -> ConfigResolver:
    return ConfigResolver(settings, SessionLocal)


def get_cache() -> DeploymentCache:
    return DeploymentCache(get_store(), ttl=settings.deployment_ttl)


def build_tracker(transport: Optional[httpx.AsyncBaseTransport] = None) -> DeploymentTracker:
    resolver = get_resolver()
    client = VercelClient(
        resolver.bearer_token(),
        api_url=settings.vercel_api_url,
        timeout=settings.vercel_request_timeout,
        transport=transport,
    )
    return DeploymentTracker(get_cache(), client, resolver)


def get_tracker() -> DeploymentTracker:
    return build_tracker()
