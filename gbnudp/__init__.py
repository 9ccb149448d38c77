"""File transfer over UDP with a three-way handshake, CRC-32 segments and Go-Back-N retransmission."""

__version__ = "1.0.0"
__all__ = ["protocol", "server", "client"]