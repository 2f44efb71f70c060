import socket
import threading

import pytest

from redlite.database import Database
from redlite.server import RedisServer, persist


@pytest.fixture
def running_server(tmp_path):
    db = Database()
    dump_file = tmp_path / "dump.redlite"
    server = RedisServer(0, db, dump_file)
    thread = threading.Thread(target=server.run, daemon=True)
    thread.start()
    assert server.ready.wait(5)
    yield server, db, thread, dump_file
    server.shutdown()
    thread.join(5)


def _connect(server):
    sock = socket.create_connection(("127.0.0.1", server.port), timeout=5)
    return sock


def _request(sock, text):
    sock.sendall(text.encode("utf-8"))
    return sock.recv(4096).decode("utf-8")


def test_persist_writes_dump_file(tmp_path):
    db = Database()
    db.set("k", "v")
    path = tmp_path / "out.redlite"
    assert persist(db, path) is True
    assert path.read_text(encoding="utf-8") == "K k v\n"


def test_persist_reports_failure(tmp_path, capsys):
    db = Database()
    path = tmp_path / "missing" / "out.redlite"
    assert persist(db, path) is False
    assert "Failed to persist database." in capsys.readouterr().err


def test_server_binds_real_port(running_server):
    server, _, thread, _ = running_server
    assert server.port > 0
    assert thread.is_alive()


def test_ping_over_tcp(running_server):
    server, _, _, _ = running_server
    with _connect(server) as sock:
        assert _request(sock, "PING\r\n") == "+PONG\r\n"


def test_set_then_get_over_resp(running_server):
    server, db, _, _ = running_server
    with _connect(server) as sock:
        assert _request(sock, "*3\r\n$3\r\nSET\r\n$1\r\nk\r\n$1\r\nv\r\n") == "+OK\r\n"
        assert _request(sock, "*2\r\n$3\r\nGET\r\n$1\r\nk\r\n") == "$1\r\nv\r\n"
    assert db.get("k") == "v"


def test_clients_share_database(running_server):
    server, _, _, _ = running_server
    with _connect(server) as first, _connect(server) as second:
        assert _request(first, "SET shared value\r\n") == "+OK\r\n"
        assert _request(second, "GET shared\r\n") == "$5\r\nvalue\r\n"


def test_unknown_command_reply(running_server):
    server, _, _, _ = running_server
    with _connect(server) as sock:
        assert _request(sock, "NOPE\r\n") == "-Error: Unknown command\r\n"


def test_shutdown_persists_and_stops(running_server, capsys):
    server, db, thread, dump_file = running_server
    with _connect(server) as sock:
        assert _request(sock, "SET k v\r\n") == "+OK\r\n"
    server.shutdown()
    thread.join(5)
    assert not thread.is_alive()
    assert not server.running
    assert dump_file.read_text(encoding="utf-8") == "K k v\n"
    assert "Server shutdown" in capsys.readouterr().out


def test_shutdown_closes_open_clients(running_server):
    server, _, thread, _ = running_server
    sock = _connect(server)
    try:
        assert _request(sock, "PING\r\n") == "+PONG\r\n"
        server.shutdown()
        thread.join(5)
        assert not thread.is_alive()
        assert sock.recv(16) == b""
    finally:
        sock.close()


def test_dump_round_trips_into_new_database(running_server):
    server, _, thread, dump_file = running_server
    with _connect(server) as sock:
        _request(sock, "RPUSH items a b\r\n")
        _request(sock, "HSET h f x\r\n")
    server.shutdown()
    thread.join(5)
    restored = Database()
    restored.load(dump_file)
    assert restored.lget("items") == ["a", "b"]
    assert restored.hget("h", "f") == "x"


def test_run_raises_when_port_in_use(tmp_path):
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as holder:
        holder.bind(("", 0))
        holder.listen(1)
        port = holder.getsockname()[1]
        server = RedisServer(port, Database(), tmp_path / "dump.redlite")
        with pytest.raises(OSError):
            server.run()
        assert not server.ready.is_set()