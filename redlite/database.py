"""In-memory key-value store with strings, lists, hashes and key expiry."""

from __future__ import annotations

import threading
import time
from collections import deque
from collections.abc import Iterable
from functools import lru_cache
from os import PathLike
from typing import Union

StrPath = Union[str, "PathLike[str]"]


class Database:
    """Thread-safe store holding string, list and hash values by key."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._strings: dict[str, str] = {}
        self._lists: dict[str, deque[str]] = {}
        self._hashes: dict[str, dict[str, str]] = {}
        self._expiry: dict[str, float] = {}

    # ----------------------------------------------------------- generic keys

    def flush_all(self) -> None:
        """Remove every string, list and hash."""
        with self._lock:
            self._strings.clear()
            self._hashes.clear()
            self._lists.clear()

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._strings[key] = value

    def get(self, key: str) -> str | None:
        """Return the string stored at ``key``, or None."""
        with self._lock:
            self.purge_expired()
            return self._strings.get(key)

    def keys(self) -> list[str]:
        """Return all keys: strings first, then lists, then hashes."""
        with self._lock:
            self.purge_expired()
            return [*self._strings, *self._lists, *self._hashes]

    def delete(self, key: str) -> bool:
        """Delete ``key`` from every store; True if anything was removed."""
        with self._lock:
            self.purge_expired()
            removed = False
            for store in (self._strings, self._lists, self._hashes):
                if store.pop(key, None) is not None:
                    removed = True
            return removed

    def type(self, key: str) -> str:
        """Return "string", "list", "hash" or "none"."""
        with self._lock:
            self.purge_expired()
            if key in self._strings:
                return "string"
            if key in self._lists:
                return "list"
            if key in self._hashes:
                return "hash"
            return "none"

    def _exists(self, key: str) -> bool:
        return key in self._strings or key in self._lists or key in self._hashes

    def expire(self, key: str, seconds: int) -> bool:
        """Make ``key`` expire after ``seconds``; False if the key is absent."""
        with self._lock:
            self.purge_expired()
            if not self._exists(key):
                return False
            self._expiry[key] = time.monotonic() + seconds
            return True

    def purge_expired(self) -> None:
        """Drop every key whose expiry time has passed."""
        with self._lock:
            now = time.monotonic()
            expired = [key for key, deadline in self._expiry.items() if deadline < now]
            for key in expired:
                self._strings.pop(key, None)
                self._lists.pop(key, None)
                self._hashes.pop(key, None)
                del self._expiry[key]

    def rename(self, old_key: str, new_key: str) -> bool:
        """Move ``old_key`` (and its expiry) to ``new_key``; False if absent."""
        with self._lock:
            self.purge_expired()
            found = False
            for store in (self._strings, self._lists, self._hashes, self._expiry):
                if old_key in store:
                    store[new_key] = store.pop(old_key)
                    found = True
            return found

    # ------------------------------------------------------------------ lists

    def llen(self, key: str) -> int:
        with self._lock:
            self.purge_expired()
            items = self._lists.get(key)
            return len(items) if items is not None else 0

    def lpush(self, key: str, value: str) -> None:
        with self._lock:
            self.purge_expired()
            self._lists.setdefault(key, deque()).appendleft(value)

    def rpush(self, key: str, value: str) -> None:
        with self._lock:
            self.purge_expired()
            self._lists.setdefault(key, deque()).append(value)

    def lpop(self, key: str) -> str | None:
        """Remove and return the first item of the list, or None."""
        with self._lock:
            self.purge_expired()
            items = self._lists.get(key)
            return items.popleft() if items else None

    def rpop(self, key: str) -> str | None:
        """Remove and return the last item of the list, or None."""
        with self._lock:
            self.purge_expired()
            items = self._lists.get(key)
            return items.pop() if items else None

    def lrem(self, key: str, count: int, value: str) -> int:
        """Remove occurrences of ``value``.

        ``count`` 0 removes all, positive removes from the head, negative
        removes from the tail. An emptied list is deleted. Returns the number
        removed.
        """
        with self._lock:
            self.purge_expired()
            items = self._lists.get(key)
            if items is None:
                return 0
            limit = abs(count) if count else None
            from_tail = count < 0
            source = reversed(items) if from_tail else iter(items)
            kept: list[str] = []
            removed = 0
            for item in source:
                if item == value and (limit is None or removed < limit):
                    removed += 1
                    continue
                kept.append(item)
            if from_tail:
                kept.reverse()
            if kept:
                self._lists[key] = deque(kept)
            else:
                del self._lists[key]
            return removed

    def _resolve_index(self, items: deque[str], index: int) -> int | None:
        if index < 0:
            index += len(items)
        if 0 <= index < len(items):
            return index
        return None

    def lindex(self, key: str, index: int) -> str | None:
        """Return the item at ``index`` (negative counts from the end), or None."""
        with self._lock:
            self.purge_expired()
            items = self._lists.get(key)
            if items is None:
                return None
            position = self._resolve_index(items, index)
            return None if position is None else items[position]

    def lset(self, key: str, index: int, value: str) -> bool:
        """Replace the item at ``index``; False if the list or index is missing."""
        with self._lock:
            self.purge_expired()
            items = self._lists.get(key)
            if items is None:
                return False
            position = self._resolve_index(items, index)
            if position is None:
                return False
            items[position] = value
            return True

    def lget(self, key: str) -> list[str]:
        """Return a copy of the whole list (empty if absent)."""
        with self._lock:
            self.purge_expired()
            return list(self._lists.get(key, ()))

    # ----------------------------------------------------------------- hashes

    def hset(self, key: str, field: str, value: str) -> None:
        with self._lock:
            self.purge_expired()
            self._hashes.setdefault(key, {})[field] = value

    def hget(self, key: str, field: str) -> str | None:
        with self._lock:
            self.purge_expired()
            return self._hashes.get(key, {}).get(field)

    def hexists(self, key: str, field: str) -> bool:
        with self._lock:
            self.purge_expired()
            return field in self._hashes.get(key, {})

    def hdel(self, key: str, field: str) -> bool:
        with self._lock:
            self.purge_expired()
            fields = self._hashes.get(key)
            if fields is None or field not in fields:
                return False
            del fields[field]
            return True

    def hgetall(self, key: str) -> dict[str, str]:
        with self._lock:
            self.purge_expired()
            return dict(self._hashes.get(key, {}))

    def hkeys(self, key: str) -> list[str]:
        with self._lock:
            self.purge_expired()
            return list(self._hashes.get(key, {}))

    def hvals(self, key: str) -> list[str]:
        with self._lock:
            self.purge_expired()
            return list(self._hashes.get(key, {}).values())

    def hlen(self, key: str) -> int:
        with self._lock:
            self.purge_expired()
            return len(self._hashes.get(key, {}))

    def hmset(self, key: str, field_values: Iterable[tuple[str, str]]) -> None:
        with self._lock:
            self.purge_expired()
            fields = self._hashes.setdefault(key, {})
            for field, value in field_values:
                fields[field] = value

    # ------------------------------------------------------------ persistence

    def dump(self, filename: StrPath) -> None:
        """Write the store to ``filename``; raises OSError on failure."""
        with self._lock:
            self.purge_expired()
            with open(filename, "w", encoding="utf-8", newline="") as out:
                for key, value in self._strings.items():
                    out.write(f"K {key} {value}\n")
                for key, items in self._lists.items():
                    out.write(" ".join(["L", key, *items]) + "\n")
                for key, fields in self._hashes.items():
                    pairs = [f"{field}:{value}" for field, value in fields.items()]
                    out.write(" ".join(["H", key, *pairs]) + "\n")

    def load(self, filename: StrPath) -> None:
        """Replace the store's contents with ``filename``; raises OSError on failure."""
        with self._lock:
            with open(filename, encoding="utf-8", newline="") as src:
                lines = src.read().split("\n")
            self._strings.clear()
            self._lists.clear()
            self._hashes.clear()
            for line in lines:
                stripped = line.lstrip()
                if not stripped:
                    continue
                kind, tokens = stripped[0], stripped[1:].split()
                key = tokens[0] if tokens else ""
                rest = tokens[1:]
                if kind == "K":
                    self._strings[key] = rest[0] if rest else ""
                elif kind == "L":
                    self._lists[key] = deque(rest)
                elif kind == "H":
                    fields: dict[str, str] = {}
                    for pair in rest:
                        field, sep, value = pair.partition(":")
                        if sep:
                            fields[field] = value
                    self._hashes[key] = fields


@lru_cache(maxsize=None)
def get_database() -> Database:
    """Return the process-wide shared database."""
    return Database()