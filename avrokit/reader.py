"""Binary decoder for the Avro encoding, reading from bytes or a stream."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import BinaryIO

from avrokit.base import AvroError

_MAX_INT_BYTES = 5
_MAX_LONG_BYTES = 10
_INT_MASK = (1 << 32) - 1
_LONG_MASK = (1 << 64) - 1


@dataclass(frozen=True)
class LogicalDuration:
    """The value of the ``duration`` logical type."""

    months: int = 0
    days: int = 0
    milliseconds: int = 0


class Reader:
    """Reads Avro-encoded primitives from a byte stream or an in-memory buffer.

    Running out of data raises EOFError; malformed data raises AvroError.
    """

    def __init__(self, stream: BinaryIO | None = None, buf_size: int = 1024) -> None:
        if stream is not None and buf_size <= 0:
            raise ValueError("buffer size must be positive")
        self._stream = stream
        self._buf_size = buf_size
        self._buf = b""
        self._pos = 0

    @classmethod
    def from_bytes(cls, data: bytes) -> Reader:
        """Create a reader over an in-memory buffer."""
        return cls().reset(data)

    def reset(self, data: bytes) -> Reader:
        """Detach from any stream and read from ``data`` instead."""
        self._stream = None
        self._buf = bytes(data)
        self._pos = 0
        return self

    def _load_more(self) -> None:
        if self._stream is None:
            self._pos = len(self._buf)
            raise EOFError("avro: unexpected end of data")
        while True:
            chunk = self._stream.read(self._buf_size)
            if chunk is None:
                continue
            if not chunk:
                raise EOFError("avro: unexpected end of data")
            self._buf = bytes(chunk)
            self._pos = 0
            return

    def _read_byte(self) -> int:
        if self._pos >= len(self._buf):
            self._load_more()
        byte = self._buf[self._pos]
        self._pos += 1
        return byte

    def read(self, size: int) -> bytes:
        """Read exactly ``size`` bytes."""
        if size < 0:
            raise ValueError("size must not be negative")
        parts = []
        remaining = size
        while remaining:
            if self._pos >= len(self._buf):
                self._load_more()
            chunk = self._buf[self._pos:self._pos + remaining]
            self._pos += len(chunk)
            remaining -= len(chunk)
            parts.append(chunk)
        return b"".join(parts)

    def read_bool(self) -> bool:
        """Read a boolean encoded as a single 0 or 1 byte."""
        byte = self._read_byte()
        if byte not in (0, 1):
            raise AvroError("avro: ReadBool: invalid bool")
        return byte == 1

    def _read_varint(self, max_bytes: int, mask: int, op: str, kind: str) -> int:
        value = 0
        for offset in range(max_bytes):
            byte = self._read_byte()
            value |= (byte & 0x7F) << (7 * offset)
            if not byte & 0x80:
                value &= mask
                return (value >> 1) ^ -(value & 1)
        raise AvroError(f"avro: {op}: {kind} overflow")

    def read_int(self) -> int:
        """Read a zig-zag encoded 32-bit integer."""
        return self._read_varint(_MAX_INT_BYTES, _INT_MASK, "ReadInt", "int")

    def read_long(self) -> int:
        """Read a zig-zag encoded 64-bit integer."""
        return self._read_varint(_MAX_LONG_BYTES, _LONG_MASK, "ReadLong", "long")

    def read_float(self) -> float:
        """Read a little-endian 32-bit float."""
        return struct.unpack("<f", self.read(4))[0]

    def read_double(self) -> float:
        """Read a little-endian 64-bit float."""
        return struct.unpack("<d", self.read(8))[0]

    def read_bytes(self) -> bytes:
        """Read length-prefixed bytes."""
        size = self.read_long()
        if size < 0:
            raise AvroError("avro: ReadBytes: invalid bytes length")
        return self.read(size)

    def read_string(self) -> str:
        """Read a length-prefixed UTF-8 string."""
        size = self.read_long()
        if size < 0:
            raise AvroError("avro: ReadString: invalid string length")
        data = self.read(size)
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise AvroError(f"avro: ReadString: {exc}") from exc

    def read_block_header(self) -> tuple[int, int]:
        """Read an array or map block header, returning (count, byte size)."""
        length = self.read_long()
        if length < 0:
            return -length, self.read_long()
        return length, 0

    def skip_n_bytes(self, n: int) -> None:
        """Skip ``n`` bytes."""
        remaining = n
        while remaining > 0:
            if self._pos >= len(self._buf):
                self._load_more()
            step = min(remaining, len(self._buf) - self._pos)
            self._pos += step
            remaining -= step

    def skip_bool(self) -> None:
        """Skip a boolean."""
        self._read_byte()

    def _skip_varint(self, max_bytes: int) -> None:
        for _ in range(max_bytes):
            if not self._read_byte() & 0x80:
                return

    def skip_int(self) -> None:
        """Skip an int, consuming at most five bytes."""
        self._skip_varint(_MAX_INT_BYTES)

    def skip_long(self) -> None:
        """Skip a long, consuming at most ten bytes."""
        self._skip_varint(_MAX_LONG_BYTES)

    def skip_float(self) -> None:
        """Skip a float."""
        self.skip_n_bytes(4)

    def skip_double(self) -> None:
        """Skip a double."""
        self.skip_n_bytes(8)

    def skip_string(self) -> None:
        """Skip a length-prefixed string."""
        size = self.read_long()
        if size > 0:
            self.skip_n_bytes(size)

    def skip_bytes(self) -> None:
        """Skip length-prefixed bytes."""
        size = self.read_long()
        if size > 0:
            self.skip_n_bytes(size)