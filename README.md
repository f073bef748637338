# grftools

A library of building blocks for working with TTD-style graphics sets:
sprite sheets in PCX and PNG, NFO file headers, a message catalog with its
own `%`-style formatter, and a few small helpers that go with them.

## Installing

Install the package with any standard Python installer; it needs Python 3.10
or later and Pillow. The `test` extra pulls in pytest.

## What is inside

| Module                 | Purpose |
|------------------------|---------|
| `grftools.md5`         | An MD5 implementation (`MD5`, `md5`) with `update`, `copy`, `digest` and `hexdigest`. |
| `grftools.path`        | Splitting and merging DOS-style paths (`fnsplit`, `fnmerge`, `PathFlag`, `SplitPath`). |
| `grftools.pcx`         | PCX headers (`PcxHeader`), pixels (`CommonPixel`) and the PCX run-length code (`rle_encode`, `rle_encode_run`, `RleDecoder`). |
| `grftools.spritesheet` | Writing sprites into banded, numbered sheets and reading them back (`PcxSheetWriter`, `PcxSheetReader`, `PngSheetWriter`, `PngSheetReader`). |
| `grftools.messages`    | Messages with per-language texts and properties (`MessageCatalog`, `MessageData`, `MessageProps`, `OutputStream`) and integer rendering (`format_int`). |
| `grftools.nfofile`     | NFO header detection, parsing and rendering (`looks_like_nfo`, `parse_header`, `NfoHeader`, `sprite_number`). |

## Examples

Hashing data:

```python
from grftools.md5 import MD5

digest = MD5(b"abc")
digest.update(b"def")
print(digest.hexdigest())
```

Splitting a path into drive, directory, name and extension:

```python
from grftools.path import fnsplit, fnmerge

parts = fnsplit("C:/sprites/trains.pcx")
print(parts.drive, parts.directory, parts.name, parts.extension, parts.flags)
print(fnmerge("C", "sprites", "trains", "pcx"))
```

Run-length encoding a scan line the way PCX files store it:

```python
import io
from grftools.pcx import rle_encode, RleDecoder

encoded = rle_encode([0, 0, 0, 0, 0xC5, 7])
decoder = RleDecoder(io.BytesIO(encoded))
print(decoder.read(6))
```

Writing one sprite into a PCX sheet and reading it back:

```python
import io
from grftools.pcx import CommonPixel
from grftools.spritesheet import PcxSheetWriter, PcxSheetReader

palette = bytes(768)
buffer = io.BytesIO()
with PcxSheetWriter(buffer, 200, 16, palette) as writer:
    writer.new_sprite()
    writer.set_size(4, 2)
    x, y = writer.sprite_position()
    for row in range(2):
        for col in range(4):
            writer.next_pixel(CommonPixel(m=10 + col))
        writer.new_row()
    writer.sprite_done(4, 2)

buffer.seek(0)
reader = PcxSheetReader(buffer, [palette])
rows = reader.read_sprite(x, y, 4, 2)
print([pixel.m for pixel in rows[0]])
```

The writer frames each sprite and draws its number above it; a reader
refuses a sheet whose palette is not among `known_palettes` unless `force`
is set. Sprites must be read in order of increasing `y`.

Rendering a message:

```python
from grftools.messages import MessageCatalog, MessageProps

catalog = MessageCatalog()
catalog.add_message("SPRITE", MessageProps.MAKE_COMMENT)
catalog.set_message_text("SPRITE", "default", "Sprite %d")
print(catalog.render("SPRITE", "", 5))   # //!!Sprite 5
```

Parsing an NFO header:

```python
from grftools.nfofile import parse_header

lines = [
    "// Sprite list",
    "// (Info version 7)",
    "// Format: spritenum imagefile depth xpos ypos xsize ysize xrel yrel zoom flags",
    "    0 * 4\t 01 00 00 00",
]
header, rest = parse_header(lines)
print(header.version, rest)
print(header.render())
```

## Errors

A sheet that cannot be written or read raises `SheetError`; malformed PCX
data raises `PcxFormatError`; a bad message format or argument raises
`FormatError`; a file that is not NFO, or has an unsupported info version,
raises `NfoFormatError`.

## What this package does not do

There is no command-line program: nothing here renumbers or lints an NFO
file end to end. Real-sprite lines inside an NFO file are not checked,
pseudo-sprite contents are not parsed, and no usage text is shipped. The
message catalog starts empty; it holds only the messages and extra texts
that the caller adds.

## Running the tests

The tests live in `tests/` and use pytest.