from unittest.mock import MagicMock
from uuid import uuid4

import pytest
from neo4j.exceptions import ConstraintError

from app.exceptions import InvariantViolation, NotFoundError, ValidationError
from app.models.interaction import InteractionType
from app.models.post import Post
from app.schemas.database_records import to_record
from app.services import counters
from app.services.neo4j_store import Neo4jPostStore


def _result(record=None, records=()):
    result = MagicMock()
    result.single.return_value = record
    result.__iter__.return_value = iter(records)
    return result


@pytest.mark.unit
class TestNeo4jPostStore:
    @pytest.fixture
    def tx(self) -> MagicMock:
        return MagicMock()

    @pytest.fixture
    def db_manager(self, tx: MagicMock) -> MagicMock:
        db_manager = MagicMock()
        db_manager.database = "neo4j"
        session = db_manager.driver.session.return_value.__enter__.return_value
        session.execute_read.side_effect = lambda fn, *args: fn(tx, *args)
        session.execute_write.side_effect = lambda fn, *args: fn(tx, *args)
        return db_manager

    @pytest.fixture
    def store(self, db_manager: MagicMock) -> Neo4jPostStore:
        return Neo4jPostStore(db_manager)

    def node(self, post: Post) -> dict:
        return to_record(post).model_dump()

    def test_add_creates_post_for_user(
        self, store: Neo4jPostStore, tx: MagicMock, test_post: Post
    ):
        tx.run.side_effect = [
            _result({"existing": 0}),
            _result({"post": self.node(test_post)}),
        ]

        result = store.add(test_post)

        assert counters.equals(result, test_post)
        _, kwargs = tx.run.call_args
        assert kwargs["user_id"] == test_post.user_id
        assert kwargs["properties"]["id"] == str(test_post.id)
        assert kwargs["properties"]["likes"] == 0

    def test_add_unknown_user(
        self, store: Neo4jPostStore, tx: MagicMock, test_post: Post
    ):
        tx.run.side_effect = [_result({"existing": 0}), _result(None)]

        with pytest.raises(NotFoundError, match="User not found"):
            store.add(test_post)

    def test_add_rejects_duplicate_id(
        self, store: Neo4jPostStore, tx: MagicMock, test_post: Post
    ):
        tx.run.side_effect = [_result({"existing": 1})]

        with pytest.raises(ValidationError, match="already exists"):
            store.add(test_post)

        assert tx.run.call_count == 1

    def test_add_maps_constraint_error(
        self, store: Neo4jPostStore, db_manager: MagicMock, test_post: Post
    ):
        session = db_manager.driver.session.return_value.__enter__.return_value
        session.execute_write.side_effect = ConstraintError("duplicate post id")

        with pytest.raises(ValidationError, match="already exists"):
            store.add(test_post)

    def test_get_ignores_extra_node_properties(
        self, store: Neo4jPostStore, tx: MagicMock, test_post: Post
    ):
        node = {**self.node(test_post), "embedding": [0.1, 0.2]}
        tx.run.return_value = _result({"post": node})

        assert counters.equals(store.get(test_post.id), test_post)

    def test_get_not_found(
        self, store: Neo4jPostStore, tx: MagicMock, test_post: Post
    ):
        tx.run.return_value = _result(None)

        with pytest.raises(NotFoundError):
            store.get(test_post.id)

    def test_list_by_user(self, store: Neo4jPostStore, tx: MagicMock, make_post):
        posts = [make_post(), make_post()]
        tx.run.return_value = _result(
            records=[{"post": self.node(post)} for post in posts]
        )

        result = store.list_by_user("u1", limit=5, offset=10)

        assert [p.id for p in result] == [p.id for p in posts]
        _, kwargs = tx.run.call_args
        assert (kwargs["limit"], kwargs["offset"]) == (5, 10)

    def test_apply_deltas_writes_new_counters(
        self, store: Neo4jPostStore, tx: MagicMock, make_post
    ):
        post = make_post(likes=2)
        tx.run.side_effect = [_result({"post": self.node(post)}), _result()]

        updated = store.apply_deltas(
            post.id, {InteractionType.LIKE: -1, InteractionType.SHARE: 4}
        )

        assert (updated.likes, updated.shares) == (1, 4)
        _, kwargs = tx.run.call_args
        assert (kwargs["likes"], kwargs["comments"], kwargs["shares"]) == (1, 0, 4)

    def test_apply_deltas_underflow_writes_nothing(
        self, store: Neo4jPostStore, tx: MagicMock, test_post: Post
    ):
        tx.run.side_effect = [_result({"post": self.node(test_post)})]

        with pytest.raises(InvariantViolation):
            store.apply_deltas(test_post.id, {InteractionType.COMMENT: -1})

        assert tx.run.call_count == 1

    def test_apply_deltas_not_found(
        self, store: Neo4jPostStore, tx: MagicMock, test_post: Post
    ):
        tx.run.return_value = _result(None)

        with pytest.raises(NotFoundError):
            store.apply_deltas(test_post.id, {InteractionType.LIKE: 1})

    def test_apply_batch_writes_every_post(
        self, store: Neo4jPostStore, tx: MagicMock, make_post
    ):
        first, second = make_post(likes=1), make_post(shares=3)
        tx.run.side_effect = [
            _result({"post": self.node(first)}),
            _result({"post": self.node(second)}),
            _result(),
            _result(),
        ]

        updated = store.apply_batch(
            {
                first.id: {InteractionType.LIKE: 2},
                second.id: {InteractionType.SHARE: -3},
            }
        )

        assert updated[first.id].likes == 3
        assert updated[second.id].shares == 0
        assert tx.run.call_count == 4

    def test_apply_batch_underflow_writes_nothing(
        self, store: Neo4jPostStore, tx: MagicMock, make_post
    ):
        first, second = make_post(), make_post()
        tx.run.side_effect = [
            _result({"post": self.node(first)}),
            _result({"post": self.node(second)}),
        ]

        with pytest.raises(InvariantViolation):
            store.apply_batch(
                {
                    first.id: {InteractionType.LIKE: 5},
                    second.id: {InteractionType.LIKE: -1},
                }
            )

        # Only the two lock queries ran; no counter update was issued.
        assert tx.run.call_count == 2

    def test_apply_batch_unknown_post_writes_nothing(
        self, store: Neo4jPostStore, tx: MagicMock, test_post: Post
    ):
        tx.run.side_effect = [_result({"post": self.node(test_post)}), _result(None)]

        with pytest.raises(NotFoundError):
            store.apply_batch({test_post.id: {InteractionType.LIKE: 1}, uuid4(): {}})

        assert tx.run.call_count == 2

    def test_ensure_schema_creates_constraint(
        self, store: Neo4jPostStore, db_manager: MagicMock
    ):
        store.ensure_schema()

        session = db_manager.driver.session.return_value.__enter__.return_value
        query = session.run.call_args.args[0]
        assert "CONSTRAINT post_id_unique IF NOT EXISTS" in query
        assert "REQUIRE post.id IS UNIQUE" in query

    def test_close_closes_open_connection(
        self, store: Neo4jPostStore, db_manager: MagicMock
    ):
        store.close()

        db_manager.close.assert_called_once()

    def test_close_without_connection_does_not_connect(self, mocker):
        database_manager = mocker.patch("app.services.neo4j_store.DatabaseManager")

        Neo4jPostStore().close()

        database_manager.assert_not_called()
