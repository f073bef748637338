"""NFO file headers: detection, version handling and the escapes table."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable, Mapping

_NFO_START_CHARS = " \t\n*0123456789/;#*"
_INFO_VERSION = re.compile(r"//\s*\(Info\s*version\s*([+-]?\d+)")
_HEX_PREFIX = re.compile(r"([+-]?)(?:0[xX](?=[0-9a-fA-F]))?([0-9a-fA-F]+)")
_FORMAT_PREFIX = "// Format: "
_ESCAPES_PREFIX = "// Escapes: "
_ESCAPES_LABEL = "// Escapes:"
_COMMENT_PREFIX = "// "
DEFAULT_TITLE = "// NFO sprite list"
_KNOWN_VERSIONS = (4, 5, 6, 7, 32)


class NfoFormatError(ValueError):
    """Raised when a file cannot be processed as NFO."""

    def __init__(self, message: str, *args) -> None:
        self.message = message
        self.arguments = args
        detail = f" ({', '.join(map(str, args))})" if args else ""
        super().__init__(f"{message}{detail}")


def looks_like_nfo(text: str) -> bool:
    """Whether ``text`` starts with a character an NFO file may start with."""
    return bool(text) and text[0] in _NFO_START_CHARS


def _hex_value(text: str) -> int:
    match = _HEX_PREFIX.match(text)
    if match is None:
        return 0
    value = int(match.group(2), 16)
    return -value if match.group(1) == "-" else value


@dataclass
class NfoHeader:
    """The header of an NFO file: version, custom escapes and extra comment lines."""

    version: int = 4
    has_header: bool = False
    title_line: str | None = None
    format_line: str | None = None
    escapes: dict[str, int] = field(default_factory=dict)
    extra_lines: list[str] = field(default_factory=list)
    messages: list[tuple[str, tuple]] = field(default_factory=list)

    def set_version(self, version: int) -> None:
        """Raise the version to at least ``version``."""
        self.version = max(version, self.version)

    def try_set_version(self, version: int) -> bool:
        """Require ``version``; False if a declared pre-7 header forbids it."""
        if self.has_header and self.version >= version:
            return True
        if self.has_header and self.version <= 6 and version >= 7:
            return False
        self.set_version(version)
        return True

    def _parse_escapes(self, line: str) -> None:
        byte = 0
        for token in line[len(_ESCAPES_PREFIX):].split():
            if token == "=":
                byte -= 1
            elif token.startswith("@"):
                byte = _hex_value(token[1:])
            else:
                self.escapes.setdefault(token, byte)
                byte += 1

    def _render_escapes(self, defaults: Mapping[str, int]) -> str:
        merged = {name: byte for name, byte in self.escapes.items() if name not in defaults}
        for name, byte in defaults.items():
            merged.setdefault(name, byte)
        # Negative bytes cannot be expressed by filling up from -1, so they are dropped.
        ordered = sorted(((n, b) for n, b in merged.items() if b >= 0), key=lambda nb: nb[1])
        parts = [_ESCAPES_LABEL]
        if not ordered:
            return "".join(parts)
        filler = ordered[0][0]
        old = -1
        for act in range(255):
            for name, byte in ordered:
                if ord(name[0]) != act:
                    continue
                if byte == old:
                    parts.append(" =")
                    old -= 1
                elif byte < old:
                    parts.append("\n" + _ESCAPES_LABEL)
                    old = -1
                old += 1
                while old != byte:
                    parts.append(" " + filler)
                    old += 1
                parts.append(" " + name)
        return "".join(parts)

    def render(self, default_escapes: Mapping[str, int] | None = None) -> str:
        """Render the header lines; default escapes always keep their own bytes.

        The format line is written only if one is known.
        """
        lines = [self.title_line or DEFAULT_TITLE, f"// (Info version {self.version})"]
        if self.version > 6:
            lines.append(self._render_escapes(default_escapes or {}))
            lines.extend(self.extra_lines)
        if self.format_line is not None:
            lines.append(self.format_line)
        return "".join(line + "\n" for line in lines)


def parse_header(lines: Iterable[str], force: bool = False) -> tuple[NfoHeader, list[str]]:
    """Parse the header of an NFO file given as lines.

    Returns the header and the remaining lines, starting at the first sprite.
    Raises NfoFormatError when the file should be skipped.
    """
    lines = [line.rstrip("\n") for line in lines]
    header = NfoHeader()
    text = "".join(line + "\n" for line in lines)
    if not looks_like_nfo(text):
        header.messages.append(("APPARENTLY_NOT_NFO", ()))
        if not force:
            raise NfoFormatError("APPARENTLY_NOT_NFO")

    pos = 0

    def getline() -> str:
        nonlocal pos
        line = lines[pos] if pos < len(lines) else ""
        pos += 1
        return line

    sprite = getline()
    if sprite.startswith(_COMMENT_PREFIX):
        header.has_header = True
        header.title_line = sprite
        sprite = getline()
        match = _INFO_VERSION.match(sprite)
        if match or not sprite.strip():
            if match:
                header.version = int(match.group(1))
            version = header.version
            if version not in _KNOWN_VERSIONS:
                header.messages.append(("UNKNOWN_VERSION", (version,)))
                if version > 7:
                    raise NfoFormatError("UNKNOWN_VERSION", version)
                header.messages.append(("PARSING_FILE", ()))
            if version > 2:
                sprite = getline()
            if version > 6:
                while not sprite.startswith(_FORMAT_PREFIX):
                    if sprite.startswith(_ESCAPES_PREFIX):
                        header._parse_escapes(sprite)
                    elif not sprite.startswith(_COMMENT_PREFIX):
                        raise NfoFormatError("APPARENTLY_NOT_NFO")
                    else:
                        header.extra_lines.append(sprite)
                    sprite = getline()
            if version > 2:
                header.format_line = sprite
        else:
            header.messages.append(("UNKNOWN_VERSION", (1,)))
            header.messages.append(("PARSING_FILE", ()))
        getline()
    pos -= 1
    header.set_version(4)
    return header, lines[pos:]


def sprite_number(diff: bool, use_old_numbers: bool, old_number: int, current_number: int) -> int:
    """The sprite number to print: -1 in diff mode, else the old or current one."""
    if diff:
        return -1
    return old_number if use_old_numbers else current_number