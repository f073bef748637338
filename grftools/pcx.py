"""PCX primitives: pixels, the 128-byte file header and RLE coding."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from typing import BinaryIO, Iterable

HEADER_SIZE = 128
MAX_RUN = 0x3F
_RUN_FLAG = 0xC0

_HEADER_STRUCT = struct.Struct("<4B4H2H48sBBhh2h54s")


class PcxFormatError(ValueError):
    """Raised when PCX data is malformed or truncated."""


@dataclass
class CommonPixel:
    """A pixel with RGBA channels and a palette (remap) channel."""

    r: int = 0
    g: int = 0
    b: int = 0
    a: int = 0
    m: int = 0

    def is_transparent(self, rgba: bool) -> bool:
        """Whether the pixel is transparent in RGBA or paletted terms."""
        return self.a == 0 if rgba else self.m == 0

    def encode(self, has_mask: bool, rgba: bool) -> bytes:
        """Serialise the selected channels."""
        out = bytearray()
        if rgba:
            out += bytes((self.r, self.g, self.b, self.a))
        if has_mask:
            out.append(self.m)
        return bytes(out)

    @classmethod
    def decode(cls, data: bytes, has_mask: bool, rgba: bool) -> tuple[CommonPixel, int]:
        """Read a pixel from ``data``; return it with the number of bytes used."""
        needed = (4 if rgba else 0) + (1 if has_mask else 0)
        if len(data) < needed:
            raise PcxFormatError(f"pixel needs {needed} bytes, got {len(data)}")
        pixel = cls()
        pos = 0
        if rgba:
            pixel.r, pixel.g, pixel.b, pixel.a = data[0:4]
            pos = 4
        if has_mask:
            pixel.m = data[pos]
        return pixel, needed

    def make_transparent(self) -> None:
        """Clear every channel."""
        self.r = self.g = self.b = self.a = self.m = 0


def _u16(value: int) -> int:
    return value & 0xFFFF


def _s16(value: int) -> int:
    value &= 0xFFFF
    return value - 0x10000 if value & 0x8000 else value


@dataclass
class PcxHeader:
    """The fixed 128-byte PCX file header (stored little-endian)."""

    manuf: int = 10
    version: int = 5
    encoding: int = 1
    bpp: int = 8
    window: list[int] = field(default_factory=lambda: [0, 0, 65535, 65535])
    dpi: list[int] = field(default_factory=lambda: [72, 72])
    cmap: bytes = bytes(48)
    reserved: int = 0
    nplanes: int = 1
    bpl: int = -1
    palinfo: int = 1
    screen: list[int] = field(default_factory=lambda: [-1, -1])
    filler: bytes = bytes(54)

    @classmethod
    def for_width(cls, width: int) -> PcxHeader:
        """A fresh 256-colour header for an image ``width`` pixels wide."""
        header = cls()
        header.window[2] = _u16(width - 1)
        header.screen[0] = _s16(width - 1)
        header.bpl = _s16(width)
        return header

    def pack(self) -> bytes:
        """Serialise to the 128-byte on-disk form."""
        return _HEADER_STRUCT.pack(
            self.manuf, self.version, self.encoding, self.bpp,
            *(_u16(v) for v in self.window),
            *(_u16(v) for v in self.dpi),
            bytes(self.cmap).ljust(48, b"\0")[:48],
            self.reserved, self.nplanes,
            _s16(self.bpl), _s16(self.palinfo),
            *(_s16(v) for v in self.screen),
            bytes(self.filler).ljust(54, b"\0")[:54],
        )

    @classmethod
    def unpack(cls, data: bytes) -> PcxHeader:
        """Parse the first 128 bytes of ``data``."""
        if len(data) < HEADER_SIZE:
            raise PcxFormatError(f"PCX header needs {HEADER_SIZE} bytes, got {len(data)}")
        fields = _HEADER_STRUCT.unpack(bytes(data[:HEADER_SIZE]))
        return cls(
            manuf=fields[0], version=fields[1], encoding=fields[2], bpp=fields[3],
            window=list(fields[4:8]), dpi=list(fields[8:10]), cmap=fields[10],
            reserved=fields[11], nplanes=fields[12], bpl=fields[13],
            palinfo=fields[14], screen=list(fields[15:17]), filler=fields[17],
        )


def _run_bytes(value: int, count: int) -> bytes:
    if count > 1 or (value & _RUN_FLAG) == _RUN_FLAG:
        return bytes((count | _RUN_FLAG, value))
    return bytes((value,))


def _check_byte(value: int) -> int:
    if not 0 <= value <= 0xFF:
        raise ValueError(f"byte value out of range: {value}")
    return value


def rle_encode(values: Iterable[int]) -> bytes:
    """RLE-encode a sequence of palette indices."""
    out = bytearray()
    current: int | None = None
    count = 0
    for value in values:
        _check_byte(value)
        if value == current and count < MAX_RUN:
            count += 1
            continue
        if current is not None:
            out += _run_bytes(current, count)
        current, count = value, 1
    if current is not None:
        out += _run_bytes(current, count)
    return bytes(out)


def rle_encode_run(value: int, count: int) -> bytes:
    """RLE-encode ``count`` repetitions of ``value``."""
    _check_byte(value)
    if count < 0:
        raise ValueError("count must not be negative")
    out = bytearray()
    while count:
        chunk = min(count, MAX_RUN)
        out += _run_bytes(value, chunk)
        count -= chunk
    return bytes(out)


class RleDecoder:
    """Decodes a PCX RLE byte stream; runs may span successive reads."""

    def __init__(self, stream: BinaryIO) -> None:
        self._stream = stream
        self._pending = 0
        self._value = 0

    def _next_byte(self) -> int:
        chunk = self._stream.read(1)
        if not chunk:
            raise PcxFormatError("unexpected end of PCX image data")
        return chunk[0]

    def read(self, count: int) -> bytes:
        """Return the next ``count`` decoded bytes."""
        out = bytearray()
        if self._pending:
            used = min(self._pending, count)
            out += bytes((self._value,)) * used
            self._pending -= used
        while len(out) < count:
            byte = self._next_byte()
            if (byte & _RUN_FLAG) == _RUN_FLAG:
                run = byte & MAX_RUN
                self._value = self._next_byte()
                used = min(run, count - len(out))
                out += bytes((self._value,)) * used
                self._pending = run - used
            else:
                out.append(byte)
        return bytes(out)