# echoplex

Small single-threaded TCP echo servers that multiplex their clients with
`select`, `poll` or `epoll`, and a blocking client for talking to them.

## Install

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Running a server

```
echoplex-server 5005
echoplex-server 5005 --kind poll
```

The port (0-65535) is the only required argument. `--kind` picks the
readiness mechanism: `select` (the default), `poll` or `epoll`. `epoll` is
only available on Linux, and `poll` only where the platform provides it.

The server listens on all IPv4 interfaces with address reuse enabled and a
backlog of 5. It echoes back whatever a client sends, up to the first NUL
byte, reading at most 1024 bytes at a time. A client that closes its end,
or whose read fails, is dropped. Progress goes to standard output:

```
listensock=3
client accept success,clientsock=4
recv(i=4):hello
client(i=4),disconnected
```

The `select` and `epoll` servers wait for activity indefinitely. The `poll`
server waits ten seconds at a time and prints `poll timeout` when nothing
happens. The server runs until interrupted with Ctrl-C, which exits with
status 0. It exits with status 1 if the port cannot be bound or if waiting
for activity fails.

## Running the client

```
echoplex-client 127.0.0.1 5005
echoplex-client localhost 5005 --rounds 3 --pause 0
```

The client connects to the given host (a name or a dotted IPv4 address) and
port. It then reads whitespace-separated words from standard input. For each
word it sends the word, prints `发送： <word>`, waits for the reply and prints
`接收： <reply>`. It pauses `--pause` seconds (default 1) after each exchange.
It stops after `--rounds` exchanges (default 10), at the end of input, or
when sending or receiving fails; a failure is reported on standard error. If
the connection cannot be made it prints `连接失败` and exits with status 1.

## Using it from Python

`echoplex.listener.open_listener(port, host="", backlog=5)` returns a bound,
listening IPv4 socket. It raises `ValueError` for a port out of range and
`OSError` when binding fails.

`echoplex.servers.make_server(kind, listener, out=None)` builds a
`SelectEchoServer`, `PollEchoServer` or `EpollEchoServer` around that socket,
writing its messages to `out` (standard output by default). Any other kind
raises `ValueError`. All three are `EchoServer`s:

- `step(timeout=None)` waits up to `timeout` seconds (forever if `None`),
  serves the ready sockets and returns how many there were, 0 on a timeout.
- `serve_forever(timeout)` repeats `step` until waiting raises. Without a
  timeout it uses the kind's default.
- `close()` closes every client and the listener. The server is also a
  context manager.

```python
from echoplex.listener import open_listener
from echoplex.servers import make_server

listener = open_listener(5005)
with make_server("poll", listener) as server:
    server.step(1.0)
```

`echoplex.client.TcpClient` holds one connection:

- `connect(host, port)` raises `RuntimeError` if already connected and
  `OSError` if the host cannot be resolved or the connection fails.
- `send(data)` takes text (sent as UTF-8) or bytes. It raises
  `ValueError` for empty data and `ConnectionError` when not connected.
- `recv(maxlen=1024)` returns bytes. It raises `ConnectionError` once the
  server has closed the connection.
- `close()` returns `False` if there was nothing to close.

```python
from echoplex.client import TcpClient

with TcpClient() as client:
    client.connect("127.0.0.1", 5005)
    client.send(b"hello")
    print(client.recv(1024))
```

`run_session(client, lines, out=None, rounds=10, pause=1.0)` drives the same
word-by-word exchange as `echoplex-client`. It returns the number of
exchanges completed.

## Limitations

- Servers are IPv4 only and handle everything on one thread.
- Each read is echoed only up to its first NUL byte; anything after it is
  discarded.
- The client sends whitespace-separated words, not whole lines, and it has
  no interactive mode beyond reading standard input.