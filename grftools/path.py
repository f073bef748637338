"""Splitting and merging of DOS-style path names."""

from __future__ import annotations

import enum
from dataclasses import dataclass

MAXPATH = 1024
MAXDRIVE = 3
MAXDIR = 1024
MAXFILE = 1024
MAXEXT = 32

_NUL = "\0"


class PathFlag(enum.IntFlag):
    """Which components were present in a split path."""

    NONE = 0
    WILDCARDS = 0x01
    EXTENSION = 0x02
    FILENAME = 0x04
    DIRECTORY = 0x08
    DRIVE = 0x10


@dataclass(frozen=True)
class SplitPath:
    """The components of a path name."""

    drive: str
    directory: str
    name: str
    extension: str
    flags: PathFlag


def _bounded(text: str, limit: int) -> str:
    return text[:max(limit - 1, 0)]


class _Buffer:
    """NUL-terminated character buffer with a leading NUL sentinel."""

    def __init__(self, text: str) -> None:
        self.chars = [_NUL, *text, _NUL]

    def __getitem__(self, index: int) -> str:
        if index < 0 or index >= len(self.chars):
            return _NUL
        return self.chars[index]

    def cut(self, index: int) -> None:
        self.chars[index] = _NUL

    def string_at(self, index: int, limit: int) -> str:
        end = self.chars.index(_NUL, index)
        return _bounded("".join(self.chars[index:end]), limit)


def _dot_found(buf: _Buffer, pos: int) -> bool:
    if buf[pos - 1] == ".":
        pos -= 1
    pos -= 1
    char = buf[pos]
    if char == ":":
        return buf[pos - 2] == _NUL
    return char in ("/", "\\", _NUL)


def fnsplit(path: str) -> SplitPath:
    """Split ``path`` into drive, directory, name and extension."""
    text = path.lstrip(" ")
    if len(text) > MAXPATH:
        text = text[:MAXPATH - 1]
    buf = _Buffer(text)

    drive = directory = name = extension = ""
    flags = PathFlag.NONE
    seen_name = False
    pos = len(text) + 1

    while True:
        pos -= 1
        char = buf[pos]
        if char == ".":
            if not seen_name and buf[pos + 1] == _NUL:
                seen_name = _dot_found(buf, pos)
            if not seen_name and not flags & PathFlag.EXTENSION:
                flags |= PathFlag.EXTENSION
                extension = buf.string_at(pos, MAXEXT)
                buf.cut(pos)
            continue
        if char in ("*", "?"):
            if not seen_name:
                flags |= PathFlag.WILDCARDS
            continue
        if char == ":" and pos != 2:
            continue
        if char not in (":", _NUL, "/", "\\"):
            continue
        if char in (":", _NUL) and seen_name:
            if buf[pos + 1] != _NUL:
                flags |= PathFlag.DIRECTORY
            directory = buf.string_at(pos + 1, MAXDIR)
            buf.cut(pos + 1)
            break
        if not seen_name:
            seen_name = True
            if buf[pos + 1] != _NUL:
                flags |= PathFlag.FILENAME
            name = buf.string_at(pos + 1, MAXFILE)
            buf.cut(pos + 1)
            if buf[pos] == _NUL or (buf[pos] == ":" and pos == 2):
                break
        continue

    if buf[pos] == ":":
        if buf[1] != _NUL:
            flags |= PathFlag.DRIVE
        drive = buf.string_at(1, MAXDRIVE)

    return SplitPath(drive, directory, name, extension, flags)


def fnmerge(drive: str | None = "", directory: str | None = "",
            name: str | None = "", extension: str | None = "") -> str:
    """Join path components, adding the separators that are missing."""
    result = ""
    if drive:
        result += drive[0] + ":"
    if directory:
        result += _bounded(directory, MAXPATH - len(result))
        if not result.endswith(("\\", "/")):
            result += "/"
    if name:
        result += _bounded(name, MAXPATH - len(result))
    if extension:
        if not extension.startswith("."):
            result += "."
        result += _bounded(extension, MAXPATH - len(result))
    return result