"""Single-threaded echo servers driven by select, poll or epoll."""

from __future__ import annotations

import argparse
import math
import select
import socket
import sys
from typing import TextIO

from echoplex.listener import MAX_PORT, open_listener

_USE_DEFAULT = object()


class EchoServer:
    """Echoes back whatever each client sends, one readiness round at a time.

    Data is echoed up to its first NUL byte. A client that closes its end or
    fails to read is dropped. Subclasses supply the readiness mechanism.
    """

    name = "echo"
    default_timeout: float | None = None
    buffer_size = 1024

    def __init__(self, listener: socket.socket, out: TextIO | None = None) -> None:
        self._listener = listener
        self._out = out if out is not None else sys.stdout
        self._clients: dict[int, socket.socket] = {}
        self._closed = False
        self._open_poller()
        self._register(listener.fileno())

    # Readiness mechanism hooks.
    def _open_poller(self) -> None:
        raise NotImplementedError

    def _register(self, fd: int) -> None:
        raise NotImplementedError

    def _unregister(self, fd: int) -> None:
        raise NotImplementedError

    def _wait(self, timeout: float | None) -> list[int]:
        raise NotImplementedError

    def _close_poller(self) -> None:
        pass

    def _emit(self, message: str) -> None:
        print(message, file=self._out, flush=True)

    def step(self, timeout: float | None = None) -> int:
        """Wait up to ``timeout`` seconds (forever if None) and serve ready sockets.

        Returns the number of ready sockets, 0 after a timeout. Raises
        ``OSError`` if waiting fails.
        """
        ready = self._wait(timeout)
        if not ready:
            self._emit(f"{self.name} timeout")
            return 0
        listen_fd = self._listener.fileno()
        for fd in ready:
            if fd == listen_fd:
                self._accept()
            elif fd in self._clients:
                self._service(fd)
        return len(ready)

    def serve_forever(self, timeout=_USE_DEFAULT) -> None:
        """Serve rounds until waiting fails; the failure is raised."""
        if timeout is _USE_DEFAULT:
            timeout = self.default_timeout
        while True:
            self.step(timeout)

    def _accept(self) -> None:
        try:
            conn, _ = self._listener.accept()
        except OSError as exc:
            print(f"client accept() failed: {exc}", file=sys.stderr, flush=True)
            return
        fd = conn.fileno()
        self._clients[fd] = conn
        self._register(fd)
        self._emit(f"client accept success,clientsock={fd}")

    def _service(self, fd: int) -> None:
        conn = self._clients[fd]
        try:
            data = conn.recv(self.buffer_size)
        except OSError:
            data = b""
        if not data:
            self._emit(f"client(i={fd}),disconnected")
            self._drop(fd)
            return
        payload = data.split(b"\0", 1)[0]
        self._emit(f"recv(i={fd}):{payload.decode('utf-8', 'replace')}")
        try:
            conn.sendall(payload)
        except OSError:
            pass

    def _drop(self, fd: int) -> None:
        conn = self._clients.pop(fd)
        self._unregister(fd)
        conn.close()

    def close(self) -> None:
        """Close every client, the readiness mechanism and the listener."""
        if self._closed:
            return
        self._closed = True
        self._close_poller()
        for conn in self._clients.values():
            conn.close()
        self._clients.clear()
        self._listener.close()

    def __enter__(self) -> EchoServer:
        return self

    def __exit__(self, *args) -> None:
        self.close()


class SelectEchoServer(EchoServer):
    """Echo server built on ``select.select``; waits forever by default."""

    name = "select"
    default_timeout = None

    def _open_poller(self) -> None:
        self._fds: set[int] = set()

    def _register(self, fd: int) -> None:
        self._fds.add(fd)

    def _unregister(self, fd: int) -> None:
        self._fds.discard(fd)

    def _wait(self, timeout: float | None) -> list[int]:
        readable, _, _ = select.select(sorted(self._fds), [], [], timeout)
        return sorted(readable)


class PollEchoServer(EchoServer):
    """Echo server built on ``select.poll``; waits ten seconds by default."""

    name = "poll"
    default_timeout = 10.0

    def _open_poller(self) -> None:
        if not hasattr(select, "poll"):
            raise RuntimeError("poll is not available on this platform")
        self._poller = select.poll()
        self._mask = select.POLLIN | select.POLLHUP | select.POLLERR

    def _register(self, fd: int) -> None:
        self._poller.register(fd, select.POLLIN)

    def _unregister(self, fd: int) -> None:
        self._poller.unregister(fd)

    def _wait(self, timeout: float | None) -> list[int]:
        millis = None if timeout is None else max(0, math.ceil(timeout * 1000))
        events = self._poller.poll(millis)
        return sorted(fd for fd, revents in events if revents & self._mask)


class EpollEchoServer(EchoServer):
    """Echo server built on ``select.epoll``; waits forever by default."""

    name = "epoll"
    default_timeout = None
    max_events = 10

    def _open_poller(self) -> None:
        if not hasattr(select, "epoll"):
            raise RuntimeError("epoll is not available on this platform")
        self._poller = select.epoll()
        self._mask = select.EPOLLIN | select.EPOLLHUP | select.EPOLLERR

    def _register(self, fd: int) -> None:
        self._poller.register(fd, select.EPOLLIN)

    def _unregister(self, fd: int) -> None:
        self._poller.unregister(fd)

    def _wait(self, timeout: float | None) -> list[int]:
        events = self._poller.poll(-1 if timeout is None else timeout, self.max_events)
        return [fd for fd, revents in events if revents & self._mask]

    def _close_poller(self) -> None:
        self._poller.close()


SERVER_TYPES: dict[str, type[EchoServer]] = {
    "select": SelectEchoServer,
    "poll": PollEchoServer,
    "epoll": EpollEchoServer,
}


def make_server(kind: str, listener: socket.socket, out: TextIO | None = None) -> EchoServer:
    """Build the echo server named by ``kind``: select, poll or epoll."""
    try:
        server_type = SERVER_TYPES[kind]
    except KeyError:
        raise ValueError(
            f"unknown server kind {kind!r}; choose from {', '.join(SERVER_TYPES)}"
        ) from None
    return server_type(listener, out)


def _port(text: str) -> int:
    try:
        value = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid port: {text!r}") from None
    if not 0 <= value <= MAX_PORT:
        raise argparse.ArgumentTypeError(f"port out of range: {value}")
    return value


def main(argv: list[str] | None = None) -> int:
    """Run an echo server on the given port until interrupted."""
    parser = argparse.ArgumentParser(prog="echoplex-server", description="TCP echo server.")
    parser.add_argument("port", type=_port, help="port to listen on")
    parser.add_argument(
        "--kind", choices=sorted(SERVER_TYPES), default="select", help="readiness mechanism"
    )
    args = parser.parse_args(argv)

    try:
        listener = open_listener(args.port)
    except OSError as exc:
        print(f"bind() failed: {exc}", file=sys.stderr)
        return 1
    print(f"listensock={listener.fileno()}", flush=True)

    with make_server(args.kind, listener) as server:
        try:
            server.serve_forever()
        except KeyboardInterrupt:
            return 0
        except OSError as exc:
            print(f"{args.kind}() failed: {exc}", file=sys.stderr)
            return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())