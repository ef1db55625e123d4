from unittest.mock import MagicMock

import pytest
from redis import RedisError

from quizcraft.core.document_store import (
    InMemoryDocumentStore,
    RedisDocumentStore,
    create_document_store,
)
from quizcraft.core.exceptions import PersistenceError


def test_insert_assigns_id_and_get_returns_copy():
    store = InMemoryDocumentStore()

    stored = store.insert("quizzes", {"topic": "OS"}, owner="u1")
    fetched = store.get("quizzes", stored["id"])
    fetched["topic"] = "changed"

    assert stored["id"]
    assert store.get("quizzes", stored["id"])["topic"] == "OS"


def test_get_missing_returns_none():
    assert InMemoryDocumentStore().get("quizzes", "nope") is None


def test_find_by_owner_scopes_and_orders():
    store = InMemoryDocumentStore()
    first = store.insert("attempts", {"n": 1}, owner="u1")
    store.insert("attempts", {"n": 2}, owner="u2")
    third = store.insert("attempts", {"n": 3}, owner="u1")

    assert [d["id"] for d in store.find_by_owner("attempts", "u1")] == [first["id"], third["id"]]
    assert [d["id"] for d in store.find_by_owner("attempts", "u1", newest_first=True)] == [
        third["id"],
        first["id"],
    ]
    assert store.find_by_owner("attempts", "nobody") == []


def test_unique_fields_are_enforced():
    store = InMemoryDocumentStore()
    user = store.insert("users", {"email": "a@b.co"}, unique={"email": "a@b.co"})

    with pytest.raises(PersistenceError) as exc_info:
        store.insert("users", {"email": "a@b.co"}, unique={"email": "a@b.co"})

    assert exc_info.value.error == "duplicate"
    assert store.find_unique("users", "email", "a@b.co")["id"] == user["id"]
    assert store.find_unique("users", "email", "other@b.co") is None


def test_factory_defaults_to_memory(settings):
    store = create_document_store(settings)
    assert isinstance(store, InMemoryDocumentStore)
    assert store.health_check() == {"status": "healthy", "backend": "memory"}


def test_redis_insert_writes_document_and_owner_index():
    client = MagicMock()
    pipe = client.pipeline.return_value
    store = RedisDocumentStore(prefix="qc", client=client)

    stored = store.insert("quizzes", {"id": "abc", "topic": "OS"}, owner="u1")

    assert stored == {"id": "abc", "topic": "OS"}
    pipe.set.assert_called_once_with("qc:quizzes:abc", '{"id": "abc", "topic": "OS"}')
    assert pipe.zadd.call_args.args[0] == "qc:quizzes:owner:u1"
    pipe.execute.assert_called_once()


def test_redis_duplicate_unique_value_rolls_back():
    client = MagicMock()
    client.set.side_effect = [True, False]
    store = RedisDocumentStore(prefix="qc", client=client)

    with pytest.raises(PersistenceError) as exc_info:
        store.insert("users", {"id": "u"}, unique={"email": "a@b.co", "name": "ada"})

    assert exc_info.value.error == "duplicate"
    client.delete.assert_called_once_with("qc:users:unique:email:a@b.co")
    client.pipeline.assert_not_called()


def test_redis_failed_write_releases_unique_claims():
    client = MagicMock()
    client.set.return_value = True
    client.pipeline.return_value.execute.side_effect = RedisError("boom")
    store = RedisDocumentStore(prefix="qc", client=client)

    with pytest.raises(PersistenceError) as exc_info:
        store.insert("users", {"id": "u", "email": "a@x.co"}, unique={"email": "a@x.co"})

    assert exc_info.value.error == "boom"
    client.delete.assert_called_once_with("qc:users:unique:email:a@x.co")


def test_redis_failed_claim_releases_earlier_claims():
    client = MagicMock()
    client.set.side_effect = [True, RedisError("reset")]
    store = RedisDocumentStore(prefix="qc", client=client)

    with pytest.raises(PersistenceError):
        store.insert("users", {"id": "u"}, unique={"email": "a@b.co", "name": "ada"})

    client.delete.assert_called_once_with("qc:users:unique:email:a@b.co")
    client.pipeline.assert_not_called()


def test_redis_find_by_owner_newest_first():
    client = MagicMock()
    client.zrevrange.return_value = ["b", "a"]
    client.mget.return_value = ['{"id": "b"}', '{"id": "a"}']
    store = RedisDocumentStore(prefix="qc", client=client)

    documents = store.find_by_owner("attempts", "u1", newest_first=True)

    assert [d["id"] for d in documents] == ["b", "a"]
    client.mget.assert_called_once_with(["qc:attempts:b", "qc:attempts:a"])


def test_redis_errors_become_persistence_errors():
    client = MagicMock()
    client.get.side_effect = RedisError("connection reset")
    store = RedisDocumentStore(client=client)

    with pytest.raises(PersistenceError) as exc_info:
        store.get("quizzes", "abc")

    assert exc_info.value.error == "connection reset"


def test_redis_health_check_reports_failure():
    client = MagicMock()
    client.ping.side_effect = RedisError("down")

    health = RedisDocumentStore(client=client).health_check()

    assert health["status"] == "unhealthy"
    assert health["backend"] == "redis"
