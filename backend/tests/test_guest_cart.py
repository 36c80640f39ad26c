"""Tests for the TTL-bounded guest cart."""
import orjson
import pytest

from solemarket.guest_cart import (
    GUEST_CART_KEY,
    GUEST_CART_TTL_MS,
    GuestCartStore,
    dump_record,
    guest_cart_key,
    parse_record,
)
from solemarket.models import GUEST_CART_VERSION, CartLine, GuestCartRecord, ListingSnapshot
from solemarket.storage import FileKeyValueStore

HOUR_MS = 60 * 60 * 1000


@pytest.fixture
def store(kv_store, clock):
    return GuestCartStore(kv_store, clock=clock)


def _write(kv_store, timestamp, items=None, **extra):
    items = items if items is not None else [{"shoeId": "shoe1", "size": "9", "quantity": 1}]
    kv_store.set(GUEST_CART_KEY, orjson.dumps({"items": items, "timestamp": timestamp, **extra}).decode())


def test_starts_empty(store):
    assert store.load() == []


def test_add_twice_increments_single_line(store):
    snapshot = ListingSnapshot(id="shoe1", name="X")
    store.add_or_increment("shoe1", "9", 1, snapshot)
    lines = store.load()
    assert len(lines) == 1
    assert lines[0].quantity == 1

    store.add_or_increment("shoe1", "9", 1, snapshot)
    lines = store.load()
    assert len(lines) == 1
    assert lines[0].quantity == 2
    assert lines[0].shoe.name == "X"


def test_numeric_and_string_sizes_are_one_line(store):
    store.add_or_increment("shoe1", 9.0, 1)
    store.add_or_increment("shoe1", "9", 2)
    assert [(l.size, l.quantity) for l in store.load()] == [("9", 3)]


def test_different_sizes_are_separate_lines(store):
    store.add_or_increment("shoe1", "9")
    store.add_or_increment("shoe1", "9.5")
    assert [l.size for l in store.load()] == ["9", "9.5"]


def test_non_positive_add_removes_line(store):
    store.add_or_increment("shoe1", "9")
    store.add_or_increment("shoe1", "9", 0)
    assert store.load() == []


def test_zero_quantity_update_removes_line(store):
    store.add_or_increment("shoe1", "9")
    store.add_or_increment("shoe2", "10")
    before = len(store.load())
    lines = store.update_quantity("shoe1", "9", 0)
    assert len(lines) == before - 1
    assert [l.shoe_id for l in store.load()] == ["shoe2"]


def test_update_quantity_of_missing_line_is_noop(store):
    store.add_or_increment("shoe1", "9")
    store.update_quantity("shoe2", "9", 4)
    assert [(l.shoe_id, l.quantity) for l in store.load()] == [("shoe1", 1)]


def test_remove_and_clear(store, kv_store):
    store.add_or_increment("shoe1", "9")
    store.add_or_increment("shoe2", "10")
    store.remove("shoe1", "9")
    assert [l.shoe_id for l in store.load()] == ["shoe2"]
    store.clear()
    assert GUEST_CART_KEY not in kv_store
    assert store.load() == []


class TestExpiry:
    def test_loads_just_inside_ttl(self, store, kv_store, clock):
        _write(kv_store, clock.now_ms)
        clock.advance(GUEST_CART_TTL_MS - 1)
        lines = store.load()
        assert [(l.shoe_id, l.size, l.quantity) for l in lines] == [("shoe1", "9", 1)]
        assert GUEST_CART_KEY in kv_store

    def test_loads_exactly_at_ttl(self, store, kv_store, clock):
        _write(kv_store, clock.now_ms)
        clock.advance(GUEST_CART_TTL_MS)
        assert len(store.load()) == 1

    def test_expired_just_past_ttl(self, store, kv_store, clock):
        _write(kv_store, clock.now_ms)
        clock.advance(GUEST_CART_TTL_MS + 1)
        assert store.load() == []
        assert GUEST_CART_KEY not in kv_store

    def test_three_hour_old_record_is_discarded(self, store, kv_store, clock):
        _write(kv_store, clock.now_ms - 3 * HOUR_MS)
        assert store.load() == []
        assert kv_store.get(GUEST_CART_KEY) is None

    def test_every_write_slides_the_window(self, store, kv_store, clock):
        store.add_or_increment("shoe1", "9")
        clock.advance(HOUR_MS + HOUR_MS // 2)
        store.add_or_increment("shoe1", "9")
        clock.advance(HOUR_MS + HOUR_MS // 2)
        lines = store.load()
        assert [l.quantity for l in lines] == [2]

    def test_custom_ttl(self, kv_store, clock):
        short = GuestCartStore(kv_store, ttl_ms=1000, clock=clock)
        short.add_or_increment("shoe1", "9")
        clock.advance(1001)
        assert short.load() == []


class TestRecordFormat:
    def test_written_record_is_versioned(self, store, kv_store, clock):
        store.add_or_increment("shoe1", "9", 2, ListingSnapshot(id="shoe1", name="X", price=10))
        data = orjson.loads(kv_store.get(GUEST_CART_KEY))
        assert data["version"] == GUEST_CART_VERSION
        assert data["timestamp"] == clock.now_ms
        assert data["items"][0]["shoeId"] == "shoe1"
        assert data["items"][0]["shoe"]["name"] == "X"

    def test_unversioned_record_is_upgraded(self, store, kv_store, clock):
        _write(kv_store, clock.now_ms)
        assert len(store.load()) == 1

    def test_newer_version_is_discarded(self, store, kv_store, clock):
        _write(kv_store, clock.now_ms, version=GUEST_CART_VERSION + 1)
        assert store.load() == []
        assert GUEST_CART_KEY not in kv_store

    @pytest.mark.parametrize("raw", ["not json", "[1, 2]", '{"items": []}', '{"items": "x", "timestamp": 1}'])
    def test_corrupt_record_is_discarded(self, store, kv_store, raw):
        kv_store.set(GUEST_CART_KEY, raw)
        assert store.load() == []
        assert GUEST_CART_KEY not in kv_store

    def test_parse_accepts_dumped_record(self):
        record = GuestCartRecord(items=[CartLine(shoe_id="a", size="9")], timestamp=5)
        parsed = parse_record(dump_record(record))
        assert parsed == record


def test_guest_ids_get_separate_keys(kv_store, clock):
    first = GuestCartStore(kv_store, key=guest_cart_key("one"), clock=clock)
    second = GuestCartStore(kv_store, key=guest_cart_key("two"), clock=clock)
    first.add_or_increment("shoe1", "9")
    assert second.load() == []
    assert guest_cart_key() == GUEST_CART_KEY


def test_file_store_persists_between_instances(tmp_path, clock):
    GuestCartStore(FileKeyValueStore(tmp_path), clock=clock).add_or_increment("shoe1", "9", 3)
    reopened = GuestCartStore(FileKeyValueStore(tmp_path), clock=clock)
    assert [l.quantity for l in reopened.load()] == [3]
    reopened.clear()
    assert list(tmp_path.glob("*.json")) == []


def test_undecodable_file_is_discarded(tmp_path, clock):
    storage = FileKeyValueStore(tmp_path)
    storage._path_for(GUEST_CART_KEY).write_bytes(b"\xff\xfe{garbage")
    store = GuestCartStore(storage, clock=clock)
    assert store.load() == []
    assert GUEST_CART_KEY not in storage
    store.add_or_increment("shoe1", "9")
    assert [l.quantity for l in store.load()] == [1]


def test_file_store_missing_key(tmp_path):
    assert FileKeyValueStore(tmp_path).get("nothing-here") is None


@pytest.mark.parametrize("size", ["9.0", " 9 ", 9, 9.0])
def test_equivalent_size_spellings_hit_the_same_line(store, size):
    store.add_or_increment("shoe1", "9")
    assert store.remove("shoe1", size) == []


def test_non_numeric_sizes_are_kept(store):
    store.add_or_increment("shoe1", "M10")
    assert [l.size for l in store.load()] == ["M10"]
