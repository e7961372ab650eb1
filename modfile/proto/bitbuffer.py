"""Bit-level read/write buffer used by the modfile record codecs."""

import base64
import struct
from typing import Self

MAX_STRING_BYTES = 0xFFFF
STRING_LENGTH_BITS = 16


class SerializationError(RuntimeError):
    """Raised when serialization or deserialization fails."""


class BitBuffer:
    """Append-only bit stream with an independent read cursor.

    Bits are stored most-significant first inside each byte. Writes always
    go to the end of the stream; reads advance ``pointer``. A buffer loaded
    from bytes reports ``length`` as eight bits per byte, so up to seven
    zero pad bits written by ``dump`` are visible to the reader.
    """

    def __init__(self, data: bytes = b"") -> None:
        self._data = bytearray(data)
        self._length = len(data) * 8
        self._pointer = 0

    @classmethod
    def from_base64(cls, text: str) -> Self:
        return cls(base64.b64decode(text))

    @property
    def length(self) -> int:
        return self._length

    @property
    def pointer(self) -> int:
        return self._pointer

    def remaining_bits(self) -> int:
        return self._length - self._pointer

    def dump(self) -> bytes:
        return bytes(self._data)

    def dump_base64(self) -> str:
        return base64.b64encode(self._data).decode("ascii")

    def _write_bit(self, bit: int) -> None:
        index = self._length >> 3
        if index == len(self._data):
            self._data.append(0)
        if bit:
            self._data[index] |= 0x80 >> (self._length & 7)
        self._length += 1

    def _read_bit(self) -> int:
        if self._pointer >= self._length:
            raise SerializationError("read past end of buffer")
        bit = (self._data[self._pointer >> 3] >> (7 - (self._pointer & 7))) & 1
        self._pointer += 1
        return bit

    def write_uint(self, value: int, bits: int) -> None:
        if value < 0 or value >> bits:
            raise SerializationError(f"{value} does not fit in {bits} unsigned bits")
        if not self._length & 7 and not bits & 7:
            # Byte aligned fast path
            self._data.extend(value.to_bytes(bits >> 3, byteorder="big"))
            self._length += bits
            return
        for shift in range(bits - 1, -1, -1):
            self._write_bit((value >> shift) & 1)

    def read_uint(self, bits: int) -> int:
        if bits > self.remaining_bits():
            raise SerializationError(
                f"cannot read {bits} bits, only {self.remaining_bits()} remaining"
            )
        if not self._pointer & 7 and not bits & 7:
            start = self._pointer >> 3
            self._pointer += bits
            return int.from_bytes(self._data[start : start + (bits >> 3)], byteorder="big")
        value = 0
        for _ in range(bits):
            value = (value << 1) | self._read_bit()
        return value

    def write_int(self, value: int, bits: int) -> None:
        limit = 1 << (bits - 1)
        if not -limit <= value < limit:
            raise SerializationError(f"{value} does not fit in {bits} signed bits")
        self.write_uint(value & ((1 << bits) - 1), bits)

    def read_int(self, bits: int) -> int:
        value = self.read_uint(bits)
        if value & (1 << (bits - 1)):
            value -= 1 << bits
        return value

    def write_bool(self, value: bool) -> None:
        self._write_bit(1 if value else 0)

    def read_bool(self) -> bool:
        return self._read_bit() == 1

    def write_float64(self, value: float) -> None:
        self.write_uint(struct.unpack(">Q", struct.pack(">d", value))[0], 64)

    def read_float64(self) -> float:
        return struct.unpack(">d", struct.pack(">Q", self.read_uint(64)))[0]

    def write_bytes(self, data: bytes) -> None:
        for byte in data:
            self.write_uint(byte, 8)

    def read_bytes(self, count: int) -> bytes:
        return bytes(self.read_uint(8) for _ in range(count))

    def write_string(self, value: str) -> None:
        encoded = value.encode("utf-8")
        if len(encoded) > MAX_STRING_BYTES:
            raise SerializationError(f"string exceeds {MAX_STRING_BYTES} bytes")
        self.write_uint(len(encoded), STRING_LENGTH_BITS)
        self.write_bytes(encoded)

    def read_string(self) -> str:
        size = self.read_uint(STRING_LENGTH_BITS)
        try:
            return self.read_bytes(size).decode("utf-8")
        except UnicodeDecodeError as exc:
            raise SerializationError(f"invalid utf-8 string: {exc}") from exc
