"""Go-Back-N file client over UDP."""

from __future__ import annotations

import argparse
import logging
import random
import select
import socket
from pathlib import Path

from .protocol import (
    ACK,
    BUFFER_SIZE,
    ERROR_PREFIX,
    FIN,
    PACKET_SIZE,
    SYN,
    SYN_ACK,
    Packet,
    encode_ack,
)

LOSS_PROBABILITY = 0.1
CONNECT_ATTEMPTS = 3
CONNECT_TIMEOUT = 2.0
RECEIVE_TIMEOUT = 3.0
_MAX_NAME = 255

log = logging.getLogger(__name__)


class ConnectionFailed(ConnectionError):
    """The server did not answer the handshake."""


class TransferTimeout(TimeoutError):
    """No packet arrived from the server in time."""


class RemoteError(Exception):
    """The server answered a request with an error message."""


def received_filename(filename: str) -> str:
    """Name under which a downloaded file is saved: ``name_recebido.ext``."""
    stem, dot, extension = filename.rpartition(".")
    name = f"{stem}_recebido.{extension}" if dot else f"{filename}_recebido"
    return name[:_MAX_NAME]


def should_drop_packet(rng=None, probability: float = LOSS_PROBABILITY) -> bool:
    """Decide whether to simulate the loss of a received packet."""
    source = rng if rng is not None else random
    return source.random() < probability


class Client:
    """Fetches files from a server, acknowledging segments in order."""

    receive_timeout = RECEIVE_TIMEOUT

    def __init__(self, sock: socket.socket, address, loss_probability: float = LOSS_PROBABILITY,
                 rng=None) -> None:
        self._sock = sock
        self.address = address
        self.loss_probability = loss_probability
        self._rng = rng if rng is not None else random.Random()

    def __enter__(self) -> Client:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def connect(self, attempts: int = CONNECT_ATTEMPTS, timeout: float = CONNECT_TIMEOUT) -> None:
        """Perform the three-way handshake; raise ConnectionFailed if it fails."""
        tries = 0
        while tries < attempts:
            self._sock.sendto(SYN, self.address)
            readable, _, _ = select.select([self._sock], [], [], timeout)
            if not readable:
                tries += 1
                log.info("Tentativa %d: servidor não respondeu (timeout de %g segundos).",
                         tries, timeout)
                continue
            reply, self.address = self._sock.recvfrom(BUFFER_SIZE - 1)
            if reply.split(b"\0", 1)[0] == SYN_ACK:
                log.info("Servidor aceitou conexão")
                self._sock.sendto(ACK, self.address)
                return
        raise ConnectionFailed("não foi possível estabelecer conexão com o servidor")

    def fetch(self, filename: str, directory=None) -> Path:
        """Download ``filename``; return the path it was saved to."""
        name = received_filename(filename)
        output = Path(directory) / name if directory is not None else Path(name)
        try:
            with output.open("wb") as out:
                self._sock.sendto(f"GET {filename}".encode("utf-8"), self.address)
                self._receive_into(out)
        except (TransferTimeout, RemoteError):
            output.unlink(missing_ok=True)
            raise
        return output

    def _receive_into(self, out) -> None:
        expected = 0
        while True:
            readable, _, _ = select.select([self._sock], [], [], self.receive_timeout)
            if not readable:
                raise TransferTimeout(
                    "timeout esperando pacote do servidor; a conexão pode ter sido perdida"
                )
            raw, self.address = self._sock.recvfrom(PACKET_SIZE)
            if raw.startswith(ERROR_PREFIX):
                raise RemoteError(raw.split(b"\0", 1)[0].decode("utf-8", errors="replace"))
            try:
                packet = Packet.decode(raw)
            except ValueError as exc:
                log.warning("Pacote inválido ignorado: %s", exc)
                continue

            if should_drop_packet(self._rng, self.loss_probability) and packet.seq_num != 0:
                log.info("Simulação: pacote %d perdido (dropado artificialmente)", packet.seq_num)
                continue
            if not packet.is_valid():
                log.info("Checksum incorreto no pacote %d. Ignorando...", packet.seq_num)
                continue

            if packet.seq_num == expected:
                out.write(packet.data)
                self._sock.sendto(encode_ack(expected), self.address)
                expected += 1
                if packet.is_last:
                    return
            else:
                log.info("Esperava pacote %d, mas recebi %d. Solicitando retransmissão...",
                         expected, packet.seq_num)
                self._sock.sendto(encode_ack(max(expected - 1, 0)), self.address)

    def finish(self) -> None:
        """Tell the server the session is over."""
        self._sock.sendto(FIN, self.address)
        log.info("Conexão encerrada pelo cliente.")

    def close(self) -> None:
        self._sock.close()


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Fetch files from a Go-Back-N UDP server.")
    parser.add_argument("ip")
    parser.add_argument("port", type=int)
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(message)s")

    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    with Client(sock, (args.ip, args.port)) as client:
        try:
            client.connect()
        except ConnectionFailed as exc:
            print(f"Erro: {exc}.")
            return 1
        while True:
            try:
                line = input("Digite uma requisição GET filename.ext (ou 'FIN' para encerrar): ")
            except EOFError:
                line = "FIN"
            line = line.rstrip("\n")
            if line == "FIN":
                client.finish()
                print("Conexão encerrada pelo cliente.")
                return 0
            if not line.startswith("GET "):
                print("Formato inválido. Use: GET filename.ext")
                continue
            try:
                path = client.fetch(line[4:])
            except RemoteError as exc:
                print(exc)
                continue
            except TransferTimeout as exc:
                print(f"Erro: {exc}.")
                return 1
            except OSError as exc:
                print(f"Erro ao criar arquivo de saída: {exc}")
                continue
            print("Fim do arquivo alcançado.")
            print(f"Arquivo salvo como '{path}'.")