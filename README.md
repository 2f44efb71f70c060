# redlite

redlite is a small in-memory key-value server. It speaks a subset of the
Redis protocol (RESP) over TCP and holds three kinds of values: strings,
lists and hashes. It saves its data to a plain-text snapshot file.

It has no dependencies outside the Python standard library and needs
Python 3.10 or later.

## Installing

```
pip install .
```

## Running the server

```
redlite                          # listens on port 6379
redlite 7000                     # listens on port 7000
redlite --dump-file data.snap    # uses data.snap instead of dump.redlite
```

| Argument      | Meaning                                                   | Default        |
|---------------|-----------------------------------------------------------|----------------|
| `port`        | TCP port to listen on (all interfaces)                    | `6379`         |
| `--dump-file` | file the database is loaded from and persisted to         | `dump.redlite` |

At startup the server loads the snapshot file if it exists. If it does not,
it starts with an empty database. It then writes the snapshot every five
minutes, and again when it shuts down, for example on Ctrl-C. If the port
cannot be bound, the command prints an error and exits with status 1.

Any Redis client can connect, for example `redis-cli -p 6379`. Plain
space-separated text commands such as `SET greeting hello` work as well.

## Supported commands

| Group   | Commands |
|---------|----------|
| General | `PING`, `ECHO`, `FLUSHALL`, `KEYS`, `TYPE`, `DEL`/`UNLINK`, `EXPIRE`, `RENAME` |
| Strings | `SET`, `GET` |
| Lists   | `LPUSH`, `RPUSH`, `LPOP`, `RPOP`, `LLEN`, `LREM`, `LINDEX`, `LSET`, `LGET` |
| Hashes  | `HSET`, `HGET`, `HEXISTS`, `HDEL`, `HGETALL`, `HKEYS`, `HVALS`, `HLEN`, `HMSET` |

Command names are not case-sensitive. These points behave in a particular way:

- `KEYS` takes no pattern. It returns every key: strings first, then lists,
  then hashes.
- `TYPE` replies `string`, `list`, `hash` or `none`.
- `DEL`/`UNLINK` delete one key and reply `:1` or `:0`.
- `EXPIRE key seconds` replies `+OK`, or an error if the key does not exist.
  Expired keys are dropped the next time the database is read.
- `RENAME` moves the key and its expiry to the new name.
- `LPUSH`/`RPUSH` take one or more values and reply with the new length.
- `LINDEX`, `LSET` and `LREM` follow the usual Redis rules for negative
  indexes and counts. `LREM` deletes a list that it empties.
- `LGET key` returns the whole list.
- `HSET` always replies `:1`. `HMSET` takes field/value pairs and replies `+OK`.

Errors are sent as `-Error: <message>` lines, for example
`-Error: Unknown command` or `-Error: Incorrect number of arguments`.

## Using it from Python

You can use the store and the command handler directly, without starting a
server:

```python
from redlite.database import Database
from redlite.commands import CommandHandler, parse_resp_command

db = Database()
db.rpush("queue", "a")
db.rpush("queue", "b")
print(db.lget("queue"))          # ['a', 'b']
print(db.lpop("queue"))          # 'a'
print(db.get("missing"))         # None

handler = CommandHandler(db)
print(handler.process_command("*1\r\n$4\r\nPING\r\n"))   # '+PONG\r\n'
print(handler.process_command("SET greeting hello"))      # '+OK\r\n'

print(parse_resp_command("*2\r\n$3\r\nGET\r\n$1\r\nk\r\n"))  # ['GET', 'k']
```

`Database` methods return Python values: `None` for a missing value, `bool`
for yes/no results, and lists and dicts for collections. `Database.dump()`
and `Database.load()` raise `OSError` when the file cannot be written or
read. `redlite.database.get_database()` returns the single shared store.
If no database is passed, `CommandHandler` and `RedisServer` use that store.

A server can also be started from code:

```python
import threading
from redlite.database import Database
from redlite.server import RedisServer

server = RedisServer(0, Database(), "test.redlite")   # port 0: any free port
threading.Thread(target=server.run, daemon=True).start()
server.ready.wait()
print(server.port)      # the port actually bound
server.shutdown()       # stops accepting, persists, closes client connections
```

`redlite.server.persist(db, dump_file)` writes a snapshot and returns
whether it succeeded.

## Snapshot format

The snapshot is a line-based text file:

```
K <key> <value>
L <key> <item> <item> ...
H <key> <field>:<value> <field>:<value> ...
```

## Limitations

- Values are split on whitespace when a snapshot is loaded, so a key or value
  that contains spaces does not survive a save and load. In a hash, a field
  name that contains `:` is not restored correctly.
- Expiry times are not saved in the snapshot.
- Each read from a connection (up to 1023 bytes) is handled as one request.
  Pipelined commands and requests split across reads are not put back
  together.
- There is no authentication, no replication, no pub/sub and no support for
  other Redis data types such as sets or sorted sets.