# gbnudp

A small file transfer service that runs over UDP. A client opens a session with
a three-way handshake (`SYN`, `SYN-ACK`, `ACK`). It then asks for files with
`GET filename.ext`. The server sends each file as numbered segments. Every
segment carries a header with its sequence number, its payload size and a CRC-32
checksum. Delivery uses Go-Back-N with a sliding window of five segments. The
client acknowledges each segment that arrives in order. If the server hears
nothing for one second, it sends every unacknowledged segment in the window
again.

## Installation

```
pip install .
```

## Running the server

```
gbnudp-server [--port PORT] [--interface NAME]
```

The server listens on UDP port 5555 (or `--port`) on all interfaces. At startup
it logs each IPv4 address of the interface given by `--interface`, which
defaults to `eth0`. If that interface does not exist, it logs none. Requested
file names are opened relative to the directory the server was started in. If
a file cannot be opened, the server answers `ERROR: Arquivo não encontrado`.
The server keeps a single session state, so it serves one client at a time.
Stop it with Ctrl-C.

## Running the client

```
gbnudp-client <IP> <PORT>
```

For example:

```
gbnudp-client 127.0.0.1 5555
```

The client sends `SYN` up to three times and waits two seconds after each one.
If the server never answers, the client exits with status 1. Once connected, it
prompts for requests:

- `GET report.pdf` downloads the file and saves it in the current directory as
  `report_recebido.pdf`. A name without an extension gets `_recebido` added at
  the end.
- `FIN` ends the session. End of input also ends it.

Any other input is rejected, and the client prompts again.

To exercise the retransmission logic, the client drops about 10 % of incoming
segments at random. It never drops segment 0, and it logs each segment it
drops. Segments that fail the checksum are ignored. When a segment arrives out
of order, the client acknowledges the last segment it accepted in order. A
segment shorter than a full payload marks the end of the file.

The client deletes the partial file in two cases:

- The server answers with an error. The client prints the error and prompts again.
- No segment arrives for three seconds. The client exits with status 1.

## Using the library

The wire format is in `gbnudp.protocol`:

```python
from gbnudp.protocol import Packet, make_packet, crc32, encode_ack, decode_ack

packet = make_packet(0, b"hello")
raw = packet.encode()
same = Packet.decode(raw)
assert same.is_valid()
assert same.is_last
assert decode_ack(encode_ack(7)) == 7
```

`gbnudp.server.Server(sock, window_size=5, timeout=1.0)` drives a bound UDP
socket:

- `accept(message, address)` advances the handshake.
- `handle(message, address)` answers `GET` and `FIN` requests.
- `send_file(path, address)` runs one Go-Back-N transfer.
- `serve_forever()` loops over incoming datagrams.

`gbnudp.server.interface_addresses(name)` lists the IPv4 addresses of an
interface.

`gbnudp.client.Client(sock, address, loss_probability=0.1, rng=None)` works as
a context manager that closes the socket on exit. Its methods are:

- `connect(attempts=3, timeout=2.0)`
- `fetch(filename, directory=None)`, which returns the path of the saved file
- `finish()`
- `close()`

It raises the following exceptions:

- `ConnectionFailed` when the handshake fails.
- `TransferTimeout` when a transfer stalls.
- `RemoteError` when the server answers with an error.

`received_filename(filename)` gives the name a download is saved under.
`should_drop_packet(rng, probability)` makes the simulated-loss decision.

## Running the tests

```
pip install .[test]
pytest
```