import pytest

from redlite.database import Database, get_database


@pytest.fixture
def db():
    return Database()


def test_get_database_is_shared():
    first = get_database()
    second = get_database()
    key = "__shared_instance_probe__"
    first.set(key, "seen")
    try:
        assert second.get(key) == "seen"
        assert key in second.keys()
    finally:
        first.delete(key)
    assert second.get(key) is None


def test_set_get_and_missing(db):
    db.set("a", "1")
    assert db.get("a") == "1"
    assert db.get("missing") is None


def test_keys_and_type(db):
    db.set("s", "v")
    db.rpush("l", "x")
    db.hset("h", "f", "v")
    assert db.keys() == ["s", "l", "h"]
    assert db.type("s") == "string"
    assert db.type("l") == "list"
    assert db.type("h") == "hash"
    assert db.type("nothing") == "none"


def test_delete(db):
    db.set("a", "1")
    assert db.delete("a") is True
    assert db.delete("a") is False
    assert db.get("a") is None


def test_flush_all(db):
    db.set("a", "1")
    db.rpush("l", "x")
    db.hset("h", "f", "v")
    db.flush_all()
    assert db.keys() == []


def test_expire_missing_key(db):
    assert db.expire("ghost", 10) is False


def test_expire_in_past_removes_key(db):
    db.set("a", "1")
    assert db.expire("a", -1) is True
    assert db.get("a") is None
    assert db.type("a") == "none"


def test_expire_in_future_keeps_key(db):
    db.rpush("l", "x")
    assert db.expire("l", 1000) is True
    assert db.lget("l") == ["x"]


def test_rename(db):
    db.set("old", "v")
    assert db.rename("old", "new") is True
    assert db.get("new") == "v"
    assert db.get("old") is None
    assert db.rename("old", "other") is False


def test_rename_moves_expiry(db):
    db.hset("old", "f", "v")
    db.expire("old", -1)
    # expired entries are purged before rename runs
    assert db.rename("old", "new") is False
    assert db.type("new") == "none"


def test_push_pop(db):
    db.rpush("l", "b")
    db.lpush("l", "a")
    db.rpush("l", "c")
    assert db.llen("l") == 3
    assert db.lget("l") == ["a", "b", "c"]
    assert db.lpop("l") == "a"
    assert db.rpop("l") == "c"
    assert db.lget("l") == ["b"]


def test_pop_empty(db):
    assert db.lpop("none") is None
    assert db.rpop("none") is None
    db.rpush("l", "x")
    db.lpop("l")
    assert db.lpop("l") is None
    assert db.llen("l") == 0


def test_lindex_and_lset(db):
    for item in ["a", "b", "c"]:
        db.rpush("l", item)
    assert db.lindex("l", 0) == "a"
    assert db.lindex("l", -1) == "c"
    assert db.lindex("l", 3) is None
    assert db.lindex("l", -4) is None
    assert db.lindex("nope", 0) is None
    assert db.lset("l", -2, "B") is True
    assert db.lget("l") == ["a", "B", "c"]
    assert db.lset("l", 5, "z") is False
    assert db.lset("nope", 0, "z") is False


@pytest.mark.parametrize(
    "count, removed, remaining",
    [
        (0, 3, ["b", "c"]),
        (2, 2, ["b", "c", "a"]),
        (-2, 2, ["a", "b", "c"]),
    ],
)
def test_lrem(db, count, removed, remaining):
    for item in ["a", "b", "a", "c", "a"]:
        db.rpush("l", item)
    assert db.lrem("l", count, "a") == removed
    assert db.lget("l") == remaining


def test_lrem_empties_list(db):
    db.rpush("l", "x")
    db.rpush("l", "x")
    assert db.lrem("l", 0, "x") == 2
    assert db.type("l") == "none"
    assert db.lrem("missing", 0, "x") == 0


def test_hash_operations(db):
    db.hset("h", "f1", "v1")
    db.hmset("h", [("f2", "v2"), ("f1", "new")])
    assert db.hget("h", "f1") == "new"
    assert db.hget("h", "missing") is None
    assert db.hexists("h", "f2") is True
    assert db.hexists("h", "zz") is False
    assert db.hgetall("h") == {"f1": "new", "f2": "v2"}
    assert sorted(db.hkeys("h")) == ["f1", "f2"]
    assert sorted(db.hvals("h")) == ["new", "v2"]
    assert db.hlen("h") == 2
    assert db.hdel("h", "f1") is True
    assert db.hdel("h", "f1") is False
    assert db.hlen("h") == 1
    assert db.hdel("missing", "f") is False
    assert db.hlen("missing") == 0


def test_dump_format(db, tmp_path):
    db.set("a", "1")
    path = tmp_path / "dump.redlite"
    db.dump(path)
    assert path.read_text(encoding="utf-8") == "K a 1\n"


def test_dump_load_round_trip(db, tmp_path):
    db.set("s", "value")
    for item in ["x", "y", "z"]:
        db.rpush("l", item)
    db.hmset("h", [("f1", "v1"), ("f2", "v2")])
    path = tmp_path / "dump.redlite"
    db.dump(path)

    other = Database()
    other.set("stale", "gone")
    other.load(path)
    assert other.get("s") == "value"
    assert other.get("stale") is None
    assert other.lget("l") == ["x", "y", "z"]
    assert other.hgetall("h") == {"f1": "v1", "f2": "v2"}


def test_load_missing_file(db, tmp_path):
    with pytest.raises(FileNotFoundError):
        db.load(tmp_path / "absent.redlite")