from functools import lru_cache
from os import environ
from typing import Annotated

from fastapi import Depends

from app.services.engagement import EngagementService
from app.services.neo4j_store import Neo4jPostStore
from app.services.post import PostService
from app.services.store import InMemoryPostStore, PostStore


@lru_cache
def get_post_store() -> PostStore:
    """Dependency for the configured post store.

    POST_STORE_BACKEND selects "memory" (default) or "neo4j".

    Raises:
        ValueError: If the backend name is unknown
    """
    backend = environ.get("POST_STORE_BACKEND", "memory").lower()
    if backend == "memory":
        return InMemoryPostStore()
    if backend == "neo4j":
        return Neo4jPostStore()
    raise ValueError(f"Unknown POST_STORE_BACKEND: {backend}")


def get_post_service(
    store: Annotated[PostStore, Depends(get_post_store)],
) -> PostService:
    return PostService(store)


def get_engagement_service(
    store: Annotated[PostStore, Depends(get_post_store)],
) -> EngagementService:
    return EngagementService(store)
