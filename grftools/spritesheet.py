"""Sprite sheets: laying sprites out in PCX/PNG images and reading them back."""

from __future__ import annotations

import io
import logging
import struct
from dataclasses import replace
from typing import BinaryIO, Iterable, Sequence

from PIL import Image

from .pcx import (
    HEADER_SIZE,
    CommonPixel,
    PcxFormatError,
    PcxHeader,
    RleDecoder,
    rle_encode,
)

log = logging.getLogger(__name__)

PALETTE_SIZE = 768
BORDER_SIZE = 4
DIGIT_HEIGHT = 5
DIGIT_WIDTH = 4
_PALETTE_MARKER = 12
_PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"
_PNG_CHANNELS = {0: 1, 2: 3, 3: 1, 4: 2, 6: 4}

# Sprite-number glyphs, 0-F, four pixels wide and five high.
_GLYPHS = (
    ("_OO_", "O__O", "O__O", "O__O", "_OO_"),
    ("__O_", "_OO_", "__O_", "__O_", "_OOO"),
    ("OOO_", "___O", "_OO_", "O___", "OOOO"),
    ("OOO_", "___O", "_OO_", "___O", "OOO_"),
    ("__O_", "_OO_", "O_O_", "OOOO", "__O_"),
    ("OOOO", "O___", "OOO_", "___O", "OOO_"),
    ("_OO_", "O___", "OOOO", "O__O", "_OO_"),
    ("OOOO", "___O", "__O_", "_O__", "_O__"),
    ("_OO_", "O__O", "_OO_", "O__O", "_OO_"),
    ("_OO_", "O__O", "_OOO", "___O", "_OO_"),
    ("_OO_", "O__O", "OOOO", "O__O", "O__O"),
    ("OOO_", "O__O", "OOO_", "O__O", "OOO_"),
    ("_OOO", "O___", "O___", "O___", "_OOO"),
    ("OOO_", "O__O", "O__O", "O__O", "OOO_"),
    ("OOOO", "O___", "OOO_", "O___", "OOOO"),
    ("OOOO", "O___", "OOO_", "O___", "O___"),
)


class SheetError(Exception):
    """Raised when a sprite sheet cannot be written or read."""


def _colour_map(mapping: Sequence[int] | None) -> list[int]:
    if mapping is None:
        return list(range(256))
    table = list(mapping)
    if len(table) != 256:
        raise ValueError(f"colour map needs 256 entries, got {len(table)}")
    return table


def _apply_glyph_rule(pixels: Iterable[CommonPixel], map_all: bool, table: list[int]) -> None:
    """Remap pixels unless they all look like a glyph (values 0-2 only)."""
    pixels = list(pixels)
    maybe_glyph = not map_all and all(p.m < 3 for p in pixels)
    if not maybe_glyph:
        for pixel in pixels:
            pixel.m = table[pixel.m]


class PcxSheetWriter:
    """Lays sprites out in bands of a paletted PCX sprite sheet."""

    _paletted = True

    def __init__(self, stream: BinaryIO, width: int, band_height: int, palette,
                 background: int = 0, border: int = 0, border_skip: int = 0,
                 map_all: bool = False, hex_numbers: bool = False,
                 colour_map: Sequence[int] | None = None) -> None:
        if width <= 0:
            raise ValueError("sheet width must be positive")
        if band_height <= 0:
            raise ValueError("band height must be positive")
        if self._paletted or palette is not None:
            palette = bytes(palette) if palette is not None else b""
            if len(palette) != PALETTE_SIZE:
                raise ValueError(f"palette needs {PALETTE_SIZE} bytes, got {len(palette)}")
        self._stream = stream
        self._palette = palette
        self._width = width
        self._band_x = band_height
        self._band_y = band_height
        self._background = CommonPixel(m=background)
        self._border = CommonPixel(m=border, a=0xFF)
        self._border_skip = border_skip
        self._map_all = map_all
        self._hex_numbers = hex_numbers
        self._map = _colour_map(colour_map)
        self._sprite_no = -1
        self._last_digit_x = -50
        self._subx = 0
        self._px = 0
        self._cx = self._cy = 0
        self._dx = self._dy = 0
        self._total_y = 0
        self._this_band_y = band_height
        self._band = [self._blank_line() for _ in range(band_height)]
        self._body = bytearray()
        self._closed = False

    def __enter__(self) -> PcxSheetWriter:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            self.close()

    def _blank_line(self) -> list[CommonPixel]:
        return [replace(self._background) for _ in range(self._width)]

    def _ofs_x(self, x: int, check: bool = True) -> int:
        ofs = self._subx + x + self._dx
        if ofs >= self._width:
            if check:
                raise SheetError(
                    f"x offset too large: {ofs}={self._subx}+{x}+{self._dx}, width={self._width}")
            return -1
        return ofs

    def _ofs_y(self, y: int, check: bool = True) -> int:
        ofs = y + self._dy
        if ofs >= len(self._band):
            if check:
                raise SheetError(f"y offset too large: {ofs}, band has {len(self._band)} lines")
            return -1
        return ofs

    def _mapped(self, value: int) -> int:
        mapped = self._map[value]
        if mapped == -1:
            raise SheetError(f"putting colour {value} but it has no map")
        return mapped

    def _put(self, x: int, y: int, colour: CommonPixel) -> None:
        pixel = replace(colour, m=self._mapped(colour.m))
        self._band[self._ofs_y(y)][self._ofs_x(x)] = pixel

    def _alloc_lines(self, lines: int) -> None:
        while len(self._band) < lines:
            self._band.append(self._blank_line())

    def _emit_line(self, row: list[CommonPixel]) -> None:
        self._body += rle_encode(p.m for p in row)

    def _new_band(self) -> None:
        self._total_y += self._this_band_y
        for row in self._band[:self._this_band_y]:
            self._emit_line(row)
        self._band = [self._blank_line() for _ in self._band]
        self._subx = 0
        self._px = 0
        self._this_band_y = self._band_y

    def new_sprite(self) -> None:
        """Advance the sprite number shown above the next sprite."""
        self._sprite_no += 1

    def set_size(self, sx: int, sy: int) -> None:
        """Reserve room for the next sprite and draw its frame and number."""
        sx += BORDER_SIZE
        sy += BORDER_SIZE + DIGIT_HEIGHT + 1
        self._subx += ((self._px + self._band_x) // self._band_x) * self._band_x
        if self._subx + sx >= self._width:
            self._new_band()
            self._last_digit_x = -50
        if sy > self._this_band_y:
            self._this_band_y = -(-sy // self._band_y) * self._band_y
            self._alloc_lines(self._this_band_y)
        self._cx = self._cy = 0
        self._px = sx
        self._dx = self._dy = 1
        if self._border_skip:
            self._draw_border(sx - 2, sy - 2)
        self._show_sprite_number()
        self._dx += 1
        self._dy += 1 + DIGIT_HEIGHT + 1

    def _draw_border(self, bx: int, by: int) -> None:
        for i in range(0, 2 * bx + 2 * by, self._border_skip):
            self._border.m = i & 8
            if i < bx:
                self._put(i, 0, self._border)
            elif i < bx + by:
                self._put(0, i - bx, self._border)
            elif i < 2 * bx + by:
                self._put(i - bx - by, by, self._border)
            else:
                self._put(bx, i - 2 * bx - by, self._border)

    def _show_sprite_number(self) -> None:
        text = f"{self._sprite_no:X}" if self._hex_numbers else str(self._sprite_no)
        step = DIGIT_WIDTH + 1
        new_last = self._subx + len(text) * step + self._dx
        if new_last >= self._width:
            return
        if self._subx + self._dx < self._last_digit_x + 2 * step:
            return
        self._last_digit_x = new_last
        for index, char in enumerate(text):
            digit = ord(char) - ord("0")
            if digit > 9:
                digit = ord(char) - ord("A")
            if not 0 <= digit < len(_GLYPHS):
                continue
            for y, line in enumerate(_GLYPHS[digit]):
                for x, cell in enumerate(line):
                    if cell == "O":
                        self._put(x + index * step, y, self._border)

    def sprite_position(self) -> tuple[int, int]:
        """Sheet coordinates of the current sprite's top-left pixel."""
        return self._subx + self._dx, self._total_y + self._dy

    def next_pixel(self, pixel: CommonPixel) -> None:
        """Store the next pixel of the current sprite row."""
        x = self._ofs_x(self._cx)
        y = self._ofs_y(self._cy)
        self._mapped(pixel.m)
        self._band[y][x] = replace(pixel)
        self._cx += 1

    def new_row(self) -> None:
        """Move to the start of the next sprite row."""
        self._cx = 0
        self._cy += 1

    def sprite_done(self, sx: int, sy: int) -> None:
        """Finish the sprite, applying the colour map unless it is a glyph."""
        x0 = self._ofs_x(0, check=False)
        y0 = self._ofs_y(0, check=False)
        cells = (self._band[y0 + cy][x0 + cx] for cx in range(sx) for cy in range(sy))
        _apply_glyph_rule(cells, self._map_all, self._map)

    def _finish(self) -> None:
        header = PcxHeader.for_width(self._width)
        header.window[3] = (self._total_y - 1) & 0xFFFF
        header.screen[1] = self._total_y - 1
        self._stream.write(header.pack() + bytes(self._body)
                           + bytes((_PALETTE_MARKER,)) + self._palette)

    def close(self) -> None:
        """Flush the last band and write out the finished image."""
        if self._closed:
            return
        if self._px:
            self._new_band()
        self._finish()
        self._closed = True


class PngSheetWriter(PcxSheetWriter):
    """Sprite-sheet writer producing a paletted or RGBA PNG image."""

    def __init__(self, stream: BinaryIO, width: int, band_height: int, palette,
                 paletted: bool = True, background: int = 0, border: int = 0,
                 border_skip: int = 0, map_all: bool = False, hex_numbers: bool = False,
                 colour_map: Sequence[int] | None = None) -> None:
        self._paletted = paletted
        self._cache = bytearray()
        super().__init__(stream, width, band_height, palette, background, border,
                         border_skip, map_all, hex_numbers, colour_map)

    def _emit_line(self, row: list[CommonPixel]) -> None:
        if self._paletted:
            self._cache += bytes(p.m for p in row)
        else:
            for p in row:
                self._cache += bytes((p.r, p.g, p.b, p.a))

    def _finish(self) -> None:
        if not self._cache:
            return
        mode = "P" if self._paletted else "RGBA"
        image = Image.frombytes(mode, (self._width, self._total_y), bytes(self._cache))
        if self._paletted:
            image.putpalette(self._palette)
        image.save(self._stream, format="PNG")
        self._cache.clear()

    def close(self) -> None:
        """Flush the last band and write out the PNG image."""
        super().close()


class PcxSheetReader:
    """Reads sprites back out of a paletted PCX sprite sheet, top to bottom."""

    _paletted = True

    def __init__(self, stream: BinaryIO, known_palettes: Iterable, force: bool = False,
                 map_all: bool = False, colour_map: Sequence[int] | None = None) -> None:
        self._known = [bytes(p) for p in known_palettes]
        self._force = force
        self._map_all = map_all
        self._map = _colour_map(colour_map)
        self._band: list[list[CommonPixel]] = []
        self._total_y = 0
        self.width = 0
        self.height = 0
        self._load(stream.read())

    def _check_palette(self, palette: bytes) -> None:
        if bytes(palette) in self._known:
            return
        if self._force:
            log.warning("Encoding despite unrecognized palette.")
            return
        raise SheetError("Unrecognized palette, aborting. "
                         "Use force to override this check.")

    def _load(self, data: bytes) -> None:
        try:
            header = PcxHeader.unpack(data)
        except PcxFormatError as exc:
            raise SheetError(str(exc)) from exc
        if header.nplanes == 3:
            raise SheetError("Cannot read truecolour PCX files")
        if header.bpp != 8 or header.nplanes != 1:
            raise SheetError("PCX file is not a 256 colour file")
        if len(data) < PALETTE_SIZE:
            raise SheetError("Could not read palette from PCX file")
        self._check_palette(data[-PALETTE_SIZE:])
        if header.bpl <= 0:
            raise SheetError(f"invalid PCX line width {header.bpl}")
        self.width = header.bpl
        self.height = header.window[3] - header.window[1] + 1
        self._decoder = RleDecoder(io.BytesIO(data[HEADER_SIZE:]))

    def _read_line(self) -> list[CommonPixel]:
        try:
            return [CommonPixel(m=v) for v in self._decoder.read(self.width)]
        except PcxFormatError as exc:
            raise SheetError(str(exc)) from exc

    def _expire_lines(self, count: int) -> None:
        lines = len(self._band)
        for i in range(count):
            row = self._band.pop(0)
            if i + self._total_y + lines < self.height:
                row = self._read_line()
            self._band.append(row)

    def _pixel_at(self, x: int, y: int) -> CommonPixel:
        if x >= self.width or y >= len(self._band):
            return CommonPixel(m=255)
        return replace(self._band[y][x])

    def read_sprite(self, x: int, y: int, sx: int, sy: int) -> list[list[CommonPixel]]:
        """Return the ``sx`` by ``sy`` sprite at (``x``, ``y``) as rows of pixels."""
        if x < 0 or y < 0:
            raise SheetError(f"sprite position ({x}, {y}) is negative")
        if y + sy > self.height:
            raise SheetError(
                "Sprite y extends beyond end of the spritesheet. "
                f"Spritesheet has {self.height} lines, sprite wants {y}..{y + sy - 1}")
        if y < self._total_y:
            raise SheetError("sprites must be read in order of increasing y")
        if sy > len(self._band):
            for _ in range(sy - len(self._band)):
                self._band.append(self._read_line())
        if y > self._total_y:
            self._expire_lines(y - self._total_y)
            self._total_y = y
        rows = [[self._pixel_at(x + cx, cy) for cx in range(sx)] for cy in range(sy)]
        _apply_glyph_rule((p for row in rows for p in row), self._map_all, self._map)
        return rows


def _png_chunks(data: bytes) -> dict[bytes, bytes]:
    chunks: dict[bytes, bytes] = {}
    pos = len(_PNG_SIGNATURE)
    while pos + 8 <= len(data):
        length, kind = struct.unpack(">I4s", data[pos:pos + 8])
        chunks.setdefault(kind, data[pos + 8:pos + 8 + length])
        pos += 12 + length
        if kind == b"IEND":
            break
    return chunks


class PngSheetReader(PcxSheetReader):
    """Reads sprites out of a paletted or RGBA PNG sprite sheet."""

    def __init__(self, stream: BinaryIO, known_palettes: Iterable, paletted: bool = True,
                 force: bool = False, map_all: bool = False,
                 colour_map: Sequence[int] | None = None) -> None:
        self._paletted = paletted
        self._raw = b""
        self._row = 0
        super().__init__(stream, known_palettes, force, map_all, colour_map)

    def _load(self, data: bytes) -> None:
        if data[:len(_PNG_SIGNATURE)] != _PNG_SIGNATURE:
            raise SheetError("Unrecognized file signature")
        chunks = _png_chunks(data)
        ihdr = chunks.get(b"IHDR", b"")
        if len(ihdr) < 13:
            raise SheetError("PNG file has no valid header")
        width, height, depth, colour_type = struct.unpack(">IIBB", ihdr[:10])
        channels = _PNG_CHANNELS.get(colour_type)
        if channels is None:
            raise SheetError(f"Unknown PNG colour type {colour_type}")
        if self._paletted:
            if channels >= 3:
                raise SheetError("Cannot read true colour PNG files")
            if channels != 1 or depth != 8 or colour_type != 3:
                raise SheetError("Cannot read non-paletted PNG files")
            if len(chunks.get(b"PLTE", b"")) != PALETTE_SIZE:
                raise SheetError("PNG file is not a 256 colour file")
            self._check_palette(chunks[b"PLTE"])
        elif channels != 4:
            raise SheetError("Cannot read 32bpp PNG files without alpha layer")
        try:
            with Image.open(io.BytesIO(data)) as image:
                image.load()
                if self._paletted:
                    if image.mode != "P":
                        raise SheetError("Cannot read non-paletted PNG files")
                    raw = image.tobytes()
                else:
                    raw = image.convert("RGBA").tobytes()
        except (OSError, ValueError, SyntaxError) as exc:
            raise SheetError(f"Cannot decode PNG file: {exc}") from exc
        self.width = width
        self.height = height
        self._raw = raw
        self._row = 0

    def _read_line(self) -> list[CommonPixel]:
        if self._row >= self.height:
            raise SheetError("read past the end of the PNG image")
        step = 1 if self._paletted else 4
        start = self._row * self.width * step
        chunk = self._raw[start:start + self.width * step]
        self._row += 1
        if self._paletted:
            return [CommonPixel(m=v) for v in chunk]
        return [CommonPixel(*chunk[i:i + 4]) for i in range(0, len(chunk), 4)]

    def read_sprite(self, x: int, y: int, sx: int, sy: int) -> list[list[CommonPixel]]:
        """Return the ``sx`` by ``sy`` sprite at (``x``, ``y``) as rows of pixels."""
        return super().read_sprite(x, y, sx, sy)