from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from app.api import post
from app.dependencies import get_post_store
from app.logging import configure_logging
from app.schemas.responses import HealthCheckResponseSchema
from app.services.neo4j_store import Neo4jPostStore

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    store = get_post_store()
    if isinstance(store, Neo4jPostStore):
        store.ensure_schema()
    logger.info("post_store_ready", backend=type(store).__name__)
    yield
    if isinstance(store, Neo4jPostStore):
        store.close()


app = FastAPI(lifespan=lifespan)
app.include_router(post.router)


@app.get("/api/health", response_model=HealthCheckResponseSchema)
async def health_check() -> HealthCheckResponseSchema:
    return HealthCheckResponseSchema(success=True)
