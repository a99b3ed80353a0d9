"""Blocking TCP client for talking to the echo servers."""

from __future__ import annotations

import argparse
import socket
import sys
import time
from collections.abc import Iterable, Iterator
from typing import TextIO

from echoplex.listener import MAX_PORT

DEFAULT_MAXLEN = 1024


class TcpClient:
    """A single IPv4 TCP connection to a server.

    ``host`` and ``port`` hold the address of the last connection attempt.
    """

    def __init__(self) -> None:
        self._sock: socket.socket | None = None
        self.host: str = ""
        self.port: int = 0

    def connect(self, host: str, port: int) -> None:
        """Connect to ``host:port``; the host may be a name or a dotted address.

        Raises ``RuntimeError`` if already connected and ``OSError`` (including
        ``socket.gaierror``) if the host cannot be resolved or the connection
        is refused.
        """
        if self._sock is not None:
            raise RuntimeError("already connected to the server")
        if not 0 <= port <= MAX_PORT:
            raise ValueError(f"port must be between 0 and {MAX_PORT}, got {port}")
        self.host = host
        self.port = port

        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            address = socket.gethostbyname(host)
            sock.connect((address, port))
        except OSError:
            sock.close()
            raise
        self._sock = sock

    def _connection(self) -> socket.socket:
        if self._sock is None:
            raise ConnectionError("not connected to the server")
        return self._sock

    def send(self, data: str | bytes) -> None:
        """Send ``data``; text is encoded as UTF-8.

        Raises ``ConnectionError`` when not connected, ``ValueError`` for empty
        data and ``OSError`` if sending fails.
        """
        sock = self._connection()
        payload = data.encode("utf-8") if isinstance(data, str) else bytes(data)
        if not payload:
            raise ValueError("nothing to send")
        sock.sendall(payload)

    def recv(self, maxlen: int = DEFAULT_MAXLEN) -> bytes:
        """Receive at most ``maxlen`` bytes, blocking until some arrive.

        Raises ``ConnectionError`` when not connected or when the server has
        closed the connection.
        """
        if maxlen <= 0:
            raise ValueError(f"maxlen must be positive, got {maxlen}")
        data = self._connection().recv(maxlen)
        if not data:
            raise ConnectionError("connection closed by the server")
        return data

    def close(self) -> bool:
        """Close the connection; returns False if there was none."""
        if self._sock is None:
            return False
        self._sock.close()
        self._sock = None
        return True

    def __enter__(self) -> TcpClient:
        return self

    def __exit__(self, *args) -> None:
        self.close()


def _words(lines: Iterable[str]) -> Iterator[str]:
    for line in lines:
        yield from line.split()


def run_session(
    client: TcpClient,
    lines: Iterable[str],
    out: TextIO | None = None,
    rounds: int = 10,
    pause: float = 1.0,
) -> int:
    """Send each whitespace-separated word of ``lines`` and print the reply.

    Stops after ``rounds`` exchanges or when the words run out, pausing
    ``pause`` seconds after each. Returns the number of exchanges completed.
    Errors from the client are raised.
    """
    out = out if out is not None else sys.stdout
    done = 0
    for word in _words(lines):
        if done >= rounds:
            break
        client.send(word)
        print(f"发送： {word}", file=out, flush=True)
        reply = client.recv(DEFAULT_MAXLEN)
        print(f"接收： {reply.decode('utf-8', 'replace')}", file=out, flush=True)
        done += 1
        if pause > 0:
            time.sleep(pause)
    return done


def _port(text: str) -> int:
    try:
        value = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid port: {text!r}") from None
    if not 0 <= value <= MAX_PORT:
        raise argparse.ArgumentTypeError(f"port out of range: {value}")
    return value


def main(argv: list[str] | None = None) -> int:
    """Connect to an echo server and exchange words read from standard input."""
    parser = argparse.ArgumentParser(prog="echoplex-client", description="TCP echo client.")
    parser.add_argument("host", help="server host name or address")
    parser.add_argument("port", type=_port, help="server port")
    parser.add_argument("--rounds", type=int, default=10, help="number of exchanges")
    parser.add_argument("--pause", type=float, default=1.0, help="seconds between exchanges")
    args = parser.parse_args(argv)

    with TcpClient() as client:
        try:
            client.connect(args.host, args.port)
        except OSError as exc:
            print("连接失败", flush=True)
            print(f"connect(): {exc}", file=sys.stderr)
            return 1
        print("成功连接服务器端", flush=True)
        try:
            run_session(client, sys.stdin, sys.stdout, args.rounds, args.pause)
        except (OSError, ValueError) as exc:
            print(f"session ended: {exc}", file=sys.stderr)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())