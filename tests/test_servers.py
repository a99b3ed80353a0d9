import io
import socket

import pytest

from echoplex.listener import open_listener
from echoplex.servers import (
    EpollEchoServer,
    PollEchoServer,
    SelectEchoServer,
    main,
    make_server,
)

KINDS = ["select", "poll", "epoll"]


@pytest.fixture(params=KINDS)
def setup(request):
    listener = open_listener(0, "127.0.0.1")
    port = listener.getsockname()[1]
    out = io.StringIO()
    server = make_server(request.param, listener, out)
    yield server, out, port, request.param
    server.close()


def _connect(port):
    return socket.create_connection(("127.0.0.1", port), timeout=2)


def test_accept_is_reported(setup):
    server, out, port, _ = setup
    with _connect(port):
        assert server.step(2.0) == 1
    assert "client accept success,clientsock=" in out.getvalue()


def test_echoes_data(setup):
    server, out, port, _ = setup
    with _connect(port) as client:
        server.step(2.0)
        client.sendall(b"hello")
        assert server.step(2.0) == 1
        assert client.recv(1024) == b"hello"
    assert "):hello\n" in out.getvalue()
    assert "recv(i=" in out.getvalue()


def test_echo_stops_at_nul_byte(setup):
    server, _, port, _ = setup
    with _connect(port) as client:
        server.step(2.0)
        client.sendall(b"ab\0cd")
        server.step(2.0)
        assert client.recv(1024) == b"ab"


def test_disconnect_is_reported_and_client_dropped(setup):
    server, out, port, kind = setup
    client = _connect(port)
    server.step(2.0)
    client.close()
    assert server.step(2.0) == 1
    assert "),disconnected" in out.getvalue()
    assert server.step(0.05) == 0
    assert out.getvalue().endswith(f"{kind} timeout\n")


def test_timeout_reports_kind(setup):
    server, out, _, kind = setup
    assert server.step(0.05) == 0
    assert out.getvalue() == f"{kind} timeout\n"


def test_serves_several_clients(setup):
    server, _, port, _ = setup
    with _connect(port) as first, _connect(port) as second:
        while server.step(2.0) and server.step(0.05):
            pass
        first.sendall(b"one")
        second.sendall(b"two")
        server.step(2.0)
        server.step(0.05)
        assert first.recv(1024) == b"one"
        assert second.recv(1024) == b"two"


def test_close_closes_listener_and_clients(setup):
    server, _, port, _ = setup
    with _connect(port) as client:
        server.step(2.0)
        listener = server._listener
        server.close()
        server.close()
        assert listener.fileno() == -1
        assert client.recv(1024) == b""


@pytest.mark.parametrize("kind", KINDS)
def test_context_manager_closes_listener(kind):
    listener = open_listener(0, "127.0.0.1")
    with make_server(kind, listener, io.StringIO()) as server:
        assert server.step(0.01) == 0
    assert listener.fileno() == -1


@pytest.mark.parametrize(
    "kind, expected",
    [("select", SelectEchoServer), ("poll", PollEchoServer), ("epoll", EpollEchoServer)],
)
def test_make_server_picks_class(kind, expected):
    with make_server(kind, open_listener(0, "127.0.0.1"), io.StringIO()) as server:
        assert type(server) is expected
        assert server.name == kind


def test_make_server_rejects_unknown_kind():
    listener = open_listener(0, "127.0.0.1")
    try:
        with pytest.raises(ValueError):
            make_server("kqueue", listener, io.StringIO())
    finally:
        listener.close()


def test_main_requires_port():
    with pytest.raises(SystemExit):
        main([])


@pytest.mark.parametrize("arg", ["notaport", "70000"])
def test_main_rejects_bad_port(arg):
    with pytest.raises(SystemExit):
        main([arg])


def test_main_reports_bind_failure(capsys):
    with open_listener(0) as busy:
        port = busy.getsockname()[1]
        assert main([str(port)]) == 1
    assert "bind() failed" in capsys.readouterr().err