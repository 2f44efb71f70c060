"""TCP server that answers RESP requests from a shared :class:`Database`."""

from __future__ import annotations

import contextlib
import signal
import socket
import sys
import threading
from collections.abc import Iterator

from redlite.commands import CommandHandler
from redlite.database import Database, StrPath, get_database

DEFAULT_PORT = 6379
DEFAULT_DUMP_FILE = "dump.redlite"
LISTEN_BACKLOG = 6
RECV_SIZE = 1023
_ACCEPT_POLL_SECONDS = 0.2


def persist(db: Database, dump_file: StrPath) -> bool:
    """Dump ``db`` to ``dump_file``, report the outcome, and return whether it worked."""
    try:
        db.dump(dump_file)
    except OSError:
        print("Failed to persist database.", file=sys.stderr)
        return False
    print(f"Database persisted successfully to {dump_file}")
    return True


class RedisServer:
    """Accepts TCP clients and serves each one on its own thread."""

    def __init__(
        self,
        port: int,
        db: Database | None = None,
        dump_file: StrPath = DEFAULT_DUMP_FILE,
    ) -> None:
        self.port = port
        self.db = db if db is not None else get_database()
        self.dump_file = dump_file
        self.ready = threading.Event()
        self._handler = CommandHandler(self.db)
        self._running = threading.Event()
        self._running.set()
        self._shut_down = False
        self._listener: socket.socket | None = None
        self._threads: list[threading.Thread] = []
        self._clients: set[socket.socket] = set()
        self._clients_lock = threading.Lock()

    @property
    def running(self) -> bool:
        return self._running.is_set()

    def run(self) -> None:
        """Listen on the port and serve clients until shut down.

        Raises OSError if the listening socket cannot be set up. After the
        accept loop ends on its own, the database is persisted.
        """
        listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            listener.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            listener.bind(("", self.port))
            listener.listen(LISTEN_BACKLOG)
        except OSError:
            listener.close()
            raise
        listener.settimeout(_ACCEPT_POLL_SECONDS)
        self.port = listener.getsockname()[1]
        self._listener = listener
        print(f"Server running on port {self.port}")
        self.ready.set()

        with self._sigint_handler(), listener:
            self._accept_loop(listener)

        for thread in self._threads:
            thread.join()

        if not self._shut_down:
            persist(self.db, self.dump_file)

    def shutdown(self) -> None:
        """Stop accepting clients, persist the database and close connections."""
        self._running.clear()
        if self._listener is not None:
            self._shut_down = True
            persist(self.db, self.dump_file)
            with self._clients_lock:
                clients = list(self._clients)
            for conn in clients:
                with contextlib.suppress(OSError):
                    conn.shutdown(socket.SHUT_RDWR)
        print("Server shutdown")

    def _accept_loop(self, listener: socket.socket) -> None:
        while self._running.is_set():
            try:
                conn, _ = listener.accept()
            except socket.timeout:
                continue
            except OSError:
                if self._running.is_set():
                    print("Error accepting connection", file=sys.stderr)
                break
            conn.settimeout(None)
            with self._clients_lock:
                self._clients.add(conn)
            thread = threading.Thread(
                target=self._serve_client, args=(conn,), daemon=True
            )
            self._threads.append(thread)
            thread.start()

    def _serve_client(self, conn: socket.socket) -> None:
        with conn:
            while True:
                try:
                    data = conn.recv(RECV_SIZE)
                except OSError:
                    break
                if not data:
                    break
                request = data.decode("utf-8", errors="replace")
                try:
                    reply = self._handler.process_command(request)
                except ValueError:
                    break
                try:
                    conn.sendall(reply.encode("utf-8"))
                except OSError:
                    break
        with self._clients_lock:
            self._clients.discard(conn)

    @contextlib.contextmanager
    def _sigint_handler(self) -> Iterator[None]:
        if threading.current_thread() is not threading.main_thread():
            yield
            return

        def on_signal(signum: int, frame: object) -> None:
            print(f"Received signal {signum}.. Shutting Down...")
            self.shutdown()
            raise SystemExit(signum)

        previous = signal.signal(signal.SIGINT, on_signal)
        try:
            yield
        finally:
            signal.signal(signal.SIGINT, previous)