import random
import socket
import threading
from pathlib import Path

import pytest

from gbnudp.client import (
    Client,
    ConnectionFailed,
    RemoteError,
    TransferTimeout,
    main,
    received_filename,
    should_drop_packet,
)
from gbnudp.protocol import DATA_SIZE, Packet, crc32, decode_ack, make_packet
from gbnudp.server import Server


def _udp():
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    sock.bind(("127.0.0.1", 0))
    sock.settimeout(3)
    return sock


class _FixedRng:
    def __init__(self, value):
        self.value = value

    def random(self):
        return self.value


@pytest.fixture
def silent():
    sock = _udp()
    yield sock
    sock.close()


@pytest.fixture
def client_socket():
    sock = _udp()
    yield sock
    sock.close()


@pytest.fixture
def running_server(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    sock = _udp()
    sock.settimeout(0.1)
    server = Server(sock, 5, 0.05)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield sock.getsockname()
    sock.close()
    thread.join(3)


@pytest.mark.parametrize(
    "name, expected",
    [
        ("foo.txt", "foo_recebido.txt"),
        ("README", "README_recebido"),
        ("a.tar.gz", "a.tar_recebido.gz"),
    ],
)
def test_received_filename(name, expected):
    assert received_filename(name) == expected


def test_received_filename_is_bounded():
    assert len(received_filename("a" * 300 + ".txt")) == 255


def test_should_drop_packet_extremes():
    rng = random.Random(0)
    assert not any(should_drop_packet(rng, 0.0) for _ in range(100))
    assert all(should_drop_packet(rng, 1.0) for _ in range(100))


def test_should_drop_packet_is_strict():
    assert should_drop_packet(_FixedRng(0.05), 0.1) is True
    assert should_drop_packet(_FixedRng(0.1), 0.1) is False


def test_connect_fails_after_attempts(client_socket, silent):
    client = Client(client_socket, silent.getsockname(), 0.0)
    with pytest.raises(ConnectionFailed):
        client.connect(2, 0.05)
    assert [silent.recvfrom(64)[0] for _ in range(2)] == [b"SYN", b"SYN"]


def test_fetch_from_server(running_server, client_socket, tmp_path):
    content = bytes(random.Random(3).getrandbits(8) for _ in range(DATA_SIZE * 5 + 7))
    (tmp_path / "data.bin").write_bytes(content)
    client = Client(client_socket, running_server, 0.0)
    client.connect(3, 1.0)
    path = client.fetch("data.bin")
    assert path == Path("data_recebido.bin")
    assert (tmp_path / "data_recebido.bin").read_bytes() == content


def test_fetch_with_simulated_loss(running_server, client_socket, tmp_path):
    content = b"lossy transfer " * 600
    (tmp_path / "doc.txt").write_bytes(content)
    client = Client(client_socket, running_server, 0.3, random.Random(7))
    client.connect(3, 1.0)
    path = client.fetch("doc.txt", tmp_path)
    assert path.read_bytes() == content


def test_fetch_missing_file_raises(running_server, client_socket, tmp_path):
    client = Client(client_socket, running_server, 0.0)
    client.connect(3, 1.0)
    with pytest.raises(RemoteError) as info:
        client.fetch("absent.txt")
    assert str(info.value).startswith("ERROR")
    assert not (tmp_path / "absent_recebido.txt").exists()


def test_fetch_timeout_removes_output(client_socket, silent, tmp_path):
    client = Client(client_socket, silent.getsockname(), 0.0)
    client.receive_timeout = 0.1
    with pytest.raises(TransferTimeout):
        client.fetch("x.txt", tmp_path)
    assert not (tmp_path / "x_recebido.txt").exists()
    assert silent.recvfrom(64)[0] == b"GET x.txt"


def test_fetch_skips_corrupt_packet(client_socket, silent, tmp_path):
    target = client_socket.getsockname()
    silent.sendto(Packet(0, 3, crc32(b"abc") ^ 1, b"abc").encode(), target)
    silent.sendto(make_packet(0, b"good").encode(), target)
    client = Client(client_socket, silent.getsockname(), 0.0)
    path = client.fetch("f.bin", tmp_path)
    assert path.read_bytes() == b"good"
    assert silent.recvfrom(64)[0] == b"GET f.bin"
    assert decode_ack(silent.recvfrom(64)[0]) == 0


def test_fetch_out_of_order_requests_retransmission(client_socket, silent, tmp_path):
    target = client_socket.getsockname()
    silent.sendto(make_packet(1, b"later").encode(), target)
    silent.sendto(make_packet(0, b"first").encode(), target)
    client = Client(client_socket, silent.getsockname(), 0.0)
    path = client.fetch("o.bin", tmp_path)
    assert path.read_bytes() == b"first"
    silent.recvfrom(64)
    acks = [decode_ack(silent.recvfrom(64)[0]) for _ in range(2)]
    assert acks == [0, 0]


def test_finish_sends_fin(client_socket, silent):
    client = Client(client_socket, silent.getsockname(), 0.0)
    client.finish()
    assert silent.recvfrom(64)[0] == b"FIN"


def test_main_session(running_server, tmp_path, monkeypatch, capsys):
    (tmp_path / "notes.txt").write_bytes(b"short file")
    answers = iter(["bogus", "GET notes.txt", "FIN"])
    monkeypatch.setattr("builtins.input", lambda prompt="": next(answers))
    host, port = running_server
    assert main([host, str(port)]) == 0
    assert (tmp_path / "notes_recebido.txt").read_bytes() == b"short file"
    assert "Formato inválido" in capsys.readouterr().out