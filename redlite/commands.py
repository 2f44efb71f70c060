"""RESP command parsing and dispatch onto a :class:`Database`."""

from __future__ import annotations

import re
import string
from collections.abc import Callable, Iterable

from redlite.database import Database, get_database

CRLF = "\r\n"

OK = "+OK\r\n"
NULL_BULK = "$-1\r\n"
WRONG_ARITY = "-Error: Incorrect number of arguments\r\n"

_UPPER = str.maketrans(string.ascii_lowercase, string.ascii_uppercase)
_LEADING_INT = re.compile(r"[ \t\n\r\f\v]*([+-]?[0-9]+)")
_INT_MIN, _INT_MAX = -(2**31), 2**31 - 1


def _to_int(text: str) -> int:
    """Read a leading 32-bit integer, ignoring trailing text; ValueError otherwise."""
    match = _LEADING_INT.match(text)
    if match is None:
        raise ValueError(f"not an integer: {text!r}")
    number = int(match.group(1))
    if not _INT_MIN <= number <= _INT_MAX:
        raise ValueError(f"integer out of range: {text!r}")
    return number


def parse_resp_command(data: str) -> list[str]:
    """Split a request into tokens.

    A request starting with ``*`` is read as a RESP array of bulk strings;
    parsing stops quietly at the first incomplete element. Anything else is
    split on whitespace. A malformed array or bulk length raises ValueError.
    """
    if not data:
        return []
    if not data.startswith("*"):
        return data.split()

    tokens: list[str] = []
    header_end = data.find(CRLF, 1)
    if header_end == -1:
        return tokens
    count = _to_int(data[1:header_end])
    pos = header_end + 2

    for _ in range(count):
        if pos >= len(data) or data[pos] != "$":
            break
        pos += 1
        length_end = data.find(CRLF, pos)
        if length_end == -1:
            break
        length = _to_int(data[pos:length_end])
        pos = length_end + 2
        if length < 0 or pos + length > len(data):
            break
        tokens.append(data[pos : pos + length])
        pos += length + 2
    return tokens


def _simple(text: str) -> str:
    return f"+{text}{CRLF}"


def _error(message: str) -> str:
    return f"-Error: {message}{CRLF}"


def _integer(number: int) -> str:
    return f":{number}{CRLF}"


def _bulk(value: str | None) -> str:
    if value is None:
        return NULL_BULK
    return f"${len(value.encode('utf-8'))}{CRLF}{value}{CRLF}"


def _array(values: Iterable[str]) -> str:
    items = list(values)
    return f"*{len(items)}{CRLF}" + "".join(_bulk(item) for item in items)


Handler = Callable[[list[str]], str]


class CommandHandler:
    """Executes text or RESP commands against a database and returns RESP replies."""

    def __init__(self, db: Database | None = None) -> None:
        self.db = db if db is not None else get_database()
        self._commands: dict[str, Handler] = {
            "PING": self._ping,
            "ECHO": self._echo,
            "FLUSHALL": self._flushall,
            "SET": self._set,
            "GET": self._get,
            "KEYS": self._keys,
            "TYPE": self._type,
            "DEL": self._del,
            "UNLINK": self._del,
            "EXPIRE": self._expire,
            "RENAME": self._rename,
            "LLEN": self._llen,
            "LPUSH": self._lpush,
            "RPUSH": self._rpush,
            "LPOP": self._lpop,
            "RPOP": self._rpop,
            "LREM": self._lrem,
            "LINDEX": self._lindex,
            "LSET": self._lset,
            "LGET": self._lget,
            "HSET": self._hset,
            "HGET": self._hget,
            "HEXISTS": self._hexists,
            "HDEL": self._hdel,
            "HGETALL": self._hgetall,
            "HKEYS": self._hkeys,
            "HVALS": self._hvals,
            "HLEN": self._hlen,
            "HMSET": self._hmset,
        }

    def process_command(self, command: str) -> str:
        """Run one request and return the RESP-encoded reply."""
        tokens = parse_resp_command(command)
        if not tokens:
            return _error("Empty Command")
        handler = self._commands.get(tokens[0].translate(_UPPER))
        if handler is None:
            return _error("Unknown command")
        return handler(tokens)

    # ----------------------------------------------------------- generic keys

    def _ping(self, tokens: list[str]) -> str:
        return _simple("PONG")

    def _echo(self, tokens: list[str]) -> str:
        if len(tokens) < 2:
            return WRONG_ARITY
        return _simple(tokens[1])

    def _flushall(self, tokens: list[str]) -> str:
        self.db.flush_all()
        return OK

    def _set(self, tokens: list[str]) -> str:
        if len(tokens) < 3:
            return WRONG_ARITY
        self.db.set(tokens[1], tokens[2])
        return OK

    def _get(self, tokens: list[str]) -> str:
        if len(tokens) < 2:
            return WRONG_ARITY
        return _bulk(self.db.get(tokens[1]))

    def _keys(self, tokens: list[str]) -> str:
        return _array(self.db.keys())

    def _type(self, tokens: list[str]) -> str:
        if len(tokens) < 2:
            return WRONG_ARITY
        return _simple(self.db.type(tokens[1]))

    def _del(self, tokens: list[str]) -> str:
        if len(tokens) < 2:
            return WRONG_ARITY
        return _integer(int(self.db.delete(tokens[1])))

    def _expire(self, tokens: list[str]) -> str:
        if len(tokens) < 3:
            return WRONG_ARITY
        try:
            seconds = _to_int(tokens[2])
        except ValueError:
            return _error("Invalid expiry time")
        if self.db.expire(tokens[1], seconds):
            return OK
        return _error("Key not found")

    def _rename(self, tokens: list[str]) -> str:
        if len(tokens) < 3:
            return WRONG_ARITY
        if self.db.rename(tokens[1], tokens[2]):
            return OK
        return _error("Failed to rename key")

    # ------------------------------------------------------------------ lists

    def _llen(self, tokens: list[str]) -> str:
        if len(tokens) < 2:
            return WRONG_ARITY
        return _integer(self.db.llen(tokens[1]))

    def _lpush(self, tokens: list[str]) -> str:
        if len(tokens) < 3:
            return WRONG_ARITY
        key = tokens[1]
        for value in tokens[2:]:
            self.db.lpush(key, value)
        return _integer(self.db.llen(key))

    def _rpush(self, tokens: list[str]) -> str:
        if len(tokens) < 3:
            return WRONG_ARITY
        key = tokens[1]
        for value in tokens[2:]:
            self.db.rpush(key, value)
        return _integer(self.db.llen(key))

    def _lpop(self, tokens: list[str]) -> str:
        if len(tokens) < 2:
            return WRONG_ARITY
        return _bulk(self.db.lpop(tokens[1]))

    def _rpop(self, tokens: list[str]) -> str:
        if len(tokens) < 2:
            return WRONG_ARITY
        return _bulk(self.db.rpop(tokens[1]))

    def _lrem(self, tokens: list[str]) -> str:
        if len(tokens) < 4:
            return WRONG_ARITY
        try:
            count = _to_int(tokens[2])
        except ValueError:
            return _error("Invalid count")
        return _integer(self.db.lrem(tokens[1], count, tokens[3]))

    def _lindex(self, tokens: list[str]) -> str:
        if len(tokens) < 3:
            return WRONG_ARITY
        try:
            index = _to_int(tokens[2])
        except ValueError:
            return _error("Invalid index")
        return _bulk(self.db.lindex(tokens[1], index))

    def _lset(self, tokens: list[str]) -> str:
        if len(tokens) < 4:
            return WRONG_ARITY
        try:
            index = _to_int(tokens[2])
        except ValueError:
            return _error("Invalid index")
        if self.db.lset(tokens[1], index, tokens[3]):
            return OK
        return _error("index out of range")

    def _lget(self, tokens: list[str]) -> str:
        if len(tokens) < 2:
            return WRONG_ARITY
        return _array(self.db.lget(tokens[1]))

    # ----------------------------------------------------------------- hashes

    def _hset(self, tokens: list[str]) -> str:
        if len(tokens) < 4:
            return WRONG_ARITY
        self.db.hset(tokens[1], tokens[2], tokens[3])
        return _integer(1)

    def _hget(self, tokens: list[str]) -> str:
        if len(tokens) < 3:
            return WRONG_ARITY
        return _bulk(self.db.hget(tokens[1], tokens[2]))

    def _hexists(self, tokens: list[str]) -> str:
        if len(tokens) < 3:
            return WRONG_ARITY
        return _integer(int(self.db.hexists(tokens[1], tokens[2])))

    def _hdel(self, tokens: list[str]) -> str:
        if len(tokens) < 3:
            return WRONG_ARITY
        return _integer(int(self.db.hdel(tokens[1], tokens[2])))

    def _hgetall(self, tokens: list[str]) -> str:
        if len(tokens) < 2:
            return WRONG_ARITY
        fields = self.db.hgetall(tokens[1])
        return _array(item for pair in fields.items() for item in pair)

    def _hkeys(self, tokens: list[str]) -> str:
        if len(tokens) < 2:
            return WRONG_ARITY
        return _array(self.db.hkeys(tokens[1]))

    def _hvals(self, tokens: list[str]) -> str:
        if len(tokens) < 2:
            return WRONG_ARITY
        return _array(self.db.hvals(tokens[1]))

    def _hlen(self, tokens: list[str]) -> str:
        if len(tokens) < 2:
            return WRONG_ARITY
        return _integer(self.db.hlen(tokens[1]))

    def _hmset(self, tokens: list[str]) -> str:
        if len(tokens) < 4 or len(tokens) % 2 == 1:
            return WRONG_ARITY
        pairs = list(zip(tokens[2::2], tokens[3::2]))
        self.db.hmset(tokens[1], pairs)
        return OK