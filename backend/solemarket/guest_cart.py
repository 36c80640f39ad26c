"""
Guest cart: a TTL-bounded cart kept in client-local storage for shoppers
without an account.

A stored record is Absent, Valid (now - timestamp <= ttl) or Expired. Expired
and unreadable records are deleted on the read that finds them, and load()
returns an empty cart. Every write stamps a fresh timestamp, so each edit
slides the expiry window forward.
"""
import logging
import time
from typing import Any, Callable, Dict, List, Optional, Tuple

import orjson
from pydantic import ValidationError

from .cart import CartRepository
from .models import GUEST_CART_VERSION, CartLine, GuestCartRecord
from .storage import KeyValueStore

logger = logging.getLogger(__name__)

GUEST_CART_KEY = "guestCart"
GUEST_CART_TTL_MS = 2 * 60 * 60 * 1000

Clock = Callable[[], int]


def now_ms() -> int:
    return int(time.time() * 1000)


def guest_cart_key(guest_id: Optional[str] = None) -> str:
    return f"{GUEST_CART_KEY}:{guest_id}" if guest_id else GUEST_CART_KEY


def _upgrade_v0(data: Dict[str, Any]) -> Dict[str, Any]:
    # Unversioned records have the same shape as version 1.
    return {**data, "version": 1}


_MIGRATIONS: Dict[int, Callable[[Dict[str, Any]], Dict[str, Any]]] = {0: _upgrade_v0}


def parse_record(raw: str) -> Optional[GuestCartRecord]:
    """Decode a stored blob, upgrading old versions. None means the blob is unusable."""
    try:
        data = orjson.loads(raw)
    except orjson.JSONDecodeError:
        return None
    if not isinstance(data, dict):
        return None
    version = data.get("version", 0)
    if not isinstance(version, int) or version > GUEST_CART_VERSION:
        return None
    while version < GUEST_CART_VERSION:
        migrate = _MIGRATIONS.get(version)
        if migrate is None:
            return None
        data = migrate(data)
        version = data["version"]
    try:
        return GuestCartRecord.model_validate(data)
    except ValidationError:
        return None


def dump_record(record: GuestCartRecord) -> str:
    return orjson.dumps(record.model_dump(mode="json", by_alias=True)).decode()


class GuestCartStore(CartRepository):
    def __init__(
        self,
        storage: KeyValueStore,
        key: str = GUEST_CART_KEY,
        ttl_ms: int = GUEST_CART_TTL_MS,
        clock: Clock = now_ms,
    ):
        self.storage = storage
        self.key = key
        self.ttl_ms = ttl_ms
        self.clock = clock

    def _read(self) -> Tuple[bool, Optional[GuestCartRecord]]:
        """(stored, record). A stored blob that cannot be decoded gives (True, None)."""
        try:
            raw = self.storage.get(self.key)
        except UnicodeDecodeError:
            return True, None
        if raw is None:
            return False, None
        return True, parse_record(raw)

    def load(self) -> List[CartLine]:
        stored, record = self._read()
        if not stored:
            return []
        if record is None:
            logger.warning("Discarding unreadable guest cart record %s", self.key)
            self.storage.remove(self.key)
            return []
        if self.clock() - record.timestamp > self.ttl_ms:
            logger.info("Guest cart %s expired, discarding", self.key)
            self.storage.remove(self.key)
            return []
        return record.items

    def save(self, lines: List[CartLine]) -> None:
        record = GuestCartRecord(items=lines, timestamp=self.clock())
        self.storage.set(self.key, dump_record(record))

    def clear(self) -> None:
        self.storage.remove(self.key)
