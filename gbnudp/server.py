"""Go-Back-N file server over UDP."""

from __future__ import annotations

import argparse
import enum
import logging
import select
import socket

import psutil

from .protocol import (
    ACK,
    BUFFER_SIZE,
    DATA_SIZE,
    FIN,
    NOT_FOUND,
    SYN,
    SYN_ACK,
    decode_ack,
    make_packet,
)

PORT = 5555
WINDOW_SIZE = 5
TIMEOUT = 1.0

log = logging.getLogger(__name__)


def interface_addresses(name: str = "eth0") -> list[str]:
    """Return the IPv4 addresses assigned to the network interface ``name``."""
    return [
        entry.address
        for entry in psutil.net_if_addrs().get(name, [])
        if entry.family == socket.AF_INET
    ]


def _command(message: bytes) -> bytes:
    return message.split(b"\0", 1)[0]


class _State(enum.Enum):
    IDLE = 0
    REQUESTED = 1
    CONNECTED = 2


class Server:
    """Serves files requested with ``GET name`` using a Go-Back-N sender."""

    def __init__(self, sock: socket.socket, window_size: int = WINDOW_SIZE,
                 timeout: float = TIMEOUT) -> None:
        if window_size < 1:
            raise ValueError("window size must be at least 1")
        self._sock = sock
        self.window_size = window_size
        self.timeout = timeout
        self._state = _State.IDLE

    @property
    def connected(self) -> bool:
        return self._state is _State.CONNECTED

    def accept(self, message: bytes, address) -> bool:
        """Advance the three-way handshake; return True once it is complete."""
        command = _command(message)
        if command == SYN:
            log.info("Cliente requisitou conexão")
            self._state = _State.REQUESTED
        elif command == ACK:
            log.info("Cliente confirmou conexão")
            self._state = _State.CONNECTED
        if self._state is _State.REQUESTED:
            self._sock.sendto(SYN_ACK, address)
        return self.connected

    def handle(self, message: bytes, address) -> None:
        """Process one request from a connected client."""
        command = _command(message)
        log.info("Mensagem recebida: %s", command.decode("utf-8", errors="replace"))
        if command.startswith(b"GET"):
            filename = command[4:].decode("utf-8", errors="replace")
            self.send_file(filename, address)
        elif command.startswith(FIN):
            log.info("Cliente desconectou")
            self._sock.sendto(ACK, address)
            self._state = _State.IDLE
        else:
            log.info("Comando desconhecido")

    def send_file(self, path: str, address) -> bool:
        """Send the file at ``path``; return False if it could not be opened."""
        try:
            file = open(path, "rb")
        except OSError as exc:
            log.error("Erro ao abrir arquivo: %s", exc)
            self._sock.sendto(NOT_FOUND, address)
            return False

        window: list[bytes] = [b""] * self.window_size
        base = next_seq = 0
        eof_reached = False
        with file:
            while True:
                if not eof_reached and next_seq < base + self.window_size:
                    chunk = file.read(DATA_SIZE)
                    if not chunk:
                        eof_reached = True
                    else:
                        datagram = make_packet(next_seq, chunk).encode()
                        window[next_seq % self.window_size] = datagram
                        self._sock.sendto(datagram, address)
                        log.info("Enviado pacote %d (%d bytes)", next_seq, len(chunk))
                        next_seq += 1

                readable, _, _ = select.select([self._sock], [], [], self.timeout)
                if not readable:
                    log.info("Timeout! Reenviando janela a partir do pacote %d", base)
                    for seq in range(base, next_seq):
                        self._sock.sendto(window[seq % self.window_size], address)
                        log.info("Reenviado pacote %d", seq)
                else:
                    try:
                        reply, address = self._sock.recvfrom(BUFFER_SIZE)
                        ack = decode_ack(reply)
                    except (OSError, ValueError) as exc:
                        log.error("Erro ao receber ACK: %s", exc)
                        continue
                    log.info("ACK recebido: %d", ack)
                    if ack >= base:
                        base = ack + 1

                if eof_reached and base == next_seq:
                    log.info("Todos os pacotes enviados e reconhecidos. Fim da transmissão.")
                    return True

    def serve_forever(self) -> None:
        """Receive and answer datagrams until the socket is closed."""
        while True:
            try:
                message, address = self._sock.recvfrom(BUFFER_SIZE - 1)
            except OSError as exc:
                if self._sock.fileno() == -1:
                    return
                if not isinstance(exc, TimeoutError):
                    log.error("Erro ao receber dados: %s", exc)
                continue
            if self.connected:
                self.handle(message, address)
            else:
                self.accept(message, address)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Serve files over UDP with Go-Back-N.")
    parser.add_argument("--port", type=int, default=PORT)
    parser.add_argument("--interface", default="eth0")
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(message)s")

    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
        try:
            sock.bind(("", args.port))
        except OSError as exc:
            log.error("Erro no bind: %s", exc)
            return 1
        for ip in interface_addresses(args.interface):
            log.info("Servidor rodando no IP: %s:%d", ip, args.port)
        try:
            Server(sock).serve_forever()
        except KeyboardInterrupt:
            pass
    return 0