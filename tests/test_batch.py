"""Tests for batch delete / set and the settle-all policy."""

from collections import OrderedDict

import pytest

from replit_db import BatchError, RemoteError, ValidationError

# ── delete ───────────────────────────────────────────────────


async def test_delete_single(db, kv):
    await db.set("k", 1)
    await db.delete("k")
    assert "k" not in kv.data


async def test_delete_absent_key_is_not_an_error(db):
    await db.delete("never-set")


async def test_delete_variadic(db, kv):
    for key in "abc":
        await db.set(key, key)
    await db.delete("a", "c")
    assert list(kv.data) == ["b"]


async def test_delete_many_keeps_order(db, kv):
    await db.delete_many(["z", "y", "x"])
    assert kv.attempted("DELETE") == ["z", "y", "x"]


async def test_delete_many_accepts_generator(db, kv):
    await db.set("g1", 1)
    await db.set("g2", 2)
    await db.delete_many(key for key in ["g1", "g2"])
    assert kv.data == {}


async def test_delete_remote_error(db, kv):
    kv.fail("DELETE", "k", 500, "nope")
    with pytest.raises(RemoteError, match="delete key `k`") as exc_info:
        await db.delete("k")
    assert exc_info.value.status_code == 500


async def test_delete_fail_fast_stops_at_first_failure(db, kv):
    kv.fail("DELETE", "x", 500, "x failed")
    with pytest.raises(RemoteError) as exc_info:
        await db.delete_many(["x", "y"])
    assert exc_info.value.key == "x"
    assert kv.attempted("DELETE") == ["x"]


async def test_delete_fail_fast_validation_error(db, kv):
    with pytest.raises(ValidationError):
        await db.delete("a", "", "b")
    assert kv.attempted("DELETE") == ["a"]


async def test_delete_settled_attempts_everything(settled_db, kv):
    kv.fail("DELETE", "x", 500, "x failed")
    kv.fail("DELETE", "y", 502, "y failed")
    with pytest.raises(BatchError) as exc_info:
        await settled_db.delete_many(["x", "y"])
    assert kv.attempted("DELETE") == ["x", "y"]

    err = exc_info.value
    assert [key for key, _ in err.errors] == ["x", "y"]
    assert all(isinstance(e, RemoteError) for _, e in err.errors)
    assert "x failed" in str(err)
    assert "y failed" in str(err)


async def test_delete_settled_success_is_silent(settled_db, kv):
    await settled_db.set("a", 1)
    await settled_db.delete("a", "b")
    assert kv.data == {}


async def test_delete_settled_partial_failure(settled_db, kv):
    for key in "abc":
        await settled_db.set(key, key)
    kv.fail("DELETE", "b", 500)
    with pytest.raises(BatchError) as exc_info:
        await settled_db.delete("a", "b", "c")
    assert list(kv.data) == ["b"]
    assert [key for key, _ in exc_info.value.errors] == ["b"]


async def test_delete_settled_collects_validation_errors(settled_db, kv):
    with pytest.raises(BatchError) as exc_info:
        await settled_db.delete("a", "", "b")
    assert kv.attempted("DELETE") == ["a", "b"]
    assert "ValidationError" in exc_info.value.messages[0]


# ── set_many ─────────────────────────────────────────────────


async def test_set_many_dict(db, kv):
    await db.set_many({"a": 1, "b": [2], "c": {"d": None}})
    assert await db.list() == {"a": 1, "b": [2], "c": {"d": None}}


async def test_set_many_pairs_in_order(db, kv):
    await db.set_many([("z", 1), ("a", 2)])
    assert list(kv.data) == ["z", "a"]


async def test_set_many_ordered_mapping(db, kv):
    await db.set_many(OrderedDict([("second", 2), ("first", 1)]))
    assert list(kv.data) == ["second", "first"]


async def test_set_many_fail_fast(db, kv):
    kv.fail("POST", "b", 500, "b failed")
    with pytest.raises(RemoteError, match="b failed"):
        await db.set_many({"a": 1, "b": 2, "c": 3})
    assert list(kv.data) == ["a"]


async def test_set_many_settled(settled_db, kv):
    kv.fail("POST", "a", 500, "a failed")
    kv.fail("POST", "c", 500, "c failed")
    with pytest.raises(BatchError) as exc_info:
        await settled_db.set_many({"a": 1, "b": 2, "c": 3})
    assert list(kv.data) == ["b"]
    assert [key for key, _ in exc_info.value.errors] == ["a", "c"]


async def test_set_many_empty(db, kv):
    await db.set_many({})
    assert kv.requests == []


# ── clear ────────────────────────────────────────────────────


async def test_clear_fail_fast(db, kv):
    await db.set_many({"a": 1, "b": 2, "c": 3})
    kv.fail("DELETE", "b", 500)
    with pytest.raises(RemoteError):
        await db.clear()
    assert list(kv.data) == ["b", "c"]


async def test_clear_settled(settled_db, kv):
    await settled_db.set_many({"a": 1, "b": 2, "c": 3})
    kv.fail("DELETE", "b", 500)
    with pytest.raises(BatchError):
        await settled_db.clear()
    assert list(kv.data) == ["b"]


# ── aggregate message ────────────────────────────────────────


async def test_settled_identical_messages_collapse(settled_db, kv):
    with pytest.raises(BatchError) as exc_info:
        await settled_db.delete("", "")
    err = exc_info.value
    assert len(err.errors) == 2
    assert len(err.messages) == 1
    assert str(err) == err.messages[0]


# ── batch argument shapes ────────────────────────────────────


async def test_delete_many_rejects_bare_string(db, kv):
    await db.set_many({"abc": 0, "a": 1, "b": 2, "c": 3})
    with pytest.raises(ValidationError, match="single string"):
        await db.delete_many("abc")
    assert kv.attempted("DELETE") == []
    assert sorted(kv.data) == ["a", "abc", "b", "c"]


async def test_delete_many_rejects_bytes(db, kv):
    with pytest.raises(ValidationError):
        await db.delete_many(b"abc")
    assert kv.requests == []


async def test_set_many_rejects_bare_string(db, kv):
    with pytest.raises(ValidationError, match="single string"):
        await db.set_many("ab")
    assert kv.requests == []


async def test_set_many_rejects_malformed_pair(db, kv):
    with pytest.raises(ValidationError, match="not a \\(key, value\\) pair"):
        await db.set_many([("a", 1), ("b", 2, 3), ("c", 3)])
    assert list(kv.data) == ["a"]


async def test_set_many_settled_reports_malformed_pair(settled_db, kv):
    with pytest.raises(BatchError) as exc_info:
        await settled_db.set_many([("a", 1), "oops", ("c", 3)])
    assert list(kv.data) == ["a", "c"]
    assert [key for key, _ in exc_info.value.errors] == ["'oops'"]
