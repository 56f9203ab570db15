from collections.abc import Callable, Generator
from datetime import UTC, datetime
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from app.dependencies import get_post_store
from app.main import app
from app.models.post import Post
from app.services.engagement import EngagementService
from app.services.post import PostService
from app.services.store import InMemoryPostStore

TEST_USER_ID = "u1"
TEST_CREATED_AT = datetime(2024, 1, 1, tzinfo=UTC)


# Store and service fixtures
@pytest.fixture
def post_store() -> InMemoryPostStore:
    return InMemoryPostStore()


@pytest.fixture
def post_service(post_store: InMemoryPostStore) -> PostService:
    return PostService(post_store)


@pytest.fixture
def engagement_service(post_store: InMemoryPostStore) -> EngagementService:
    return EngagementService(post_store)


# Test data fixtures
@pytest.fixture
def make_post() -> Callable[..., Post]:
    def _make_post(**overrides) -> Post:
        fields = {
            "id": uuid4(),
            "user_id": TEST_USER_ID,
            "description": "fun clip",
            "poster_url": "https://cdn/x.jpg",
            "video_url": "https://cdn/x.mp4",
            "created_at": TEST_CREATED_AT,
            "likes": 0,
            "comments": 0,
            "shares": 0,
        }
        fields.update(overrides)
        return Post(**fields)

    return _make_post


@pytest.fixture
def test_post(make_post: Callable[..., Post]) -> Post:
    return make_post()


@pytest.fixture
def stored_post(post_store: InMemoryPostStore, test_post: Post) -> Post:
    return post_store.add(test_post)


# API fixtures
@pytest.fixture
def client(post_store: InMemoryPostStore) -> Generator[TestClient, None, None]:
    app.dependency_overrides[get_post_store] = lambda: post_store
    yield TestClient(app)
    app.dependency_overrides.clear()
