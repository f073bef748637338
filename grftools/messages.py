"""Program messages: per-language texts, message properties and formatting."""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass, field
from typing import Any, Hashable, Iterator

DEFAULT_LANGUAGE = "default"
UNDEFINED_TEXT = "UNDEFINED_TEXT"
COMMENT_MARK = "!!"
OFFSET_EXTRA = "OFFSET"

_STACK_NAMES = (None, "byte", "word", "textID", "dword", "date")
_DIGITS = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"
_NUMBER = re.compile(r"[0-9]+")
_STREAM_MASK = 0x30


class MessageProps(enum.IntFlag):
    """Properties that control how a message is rendered."""

    NONE = 0
    MAKE_COMMENT = 0x01
    USE_PREFIX = 0x02
    HAS_OFFSET = 0x04
    NO_CONSOLE = 0x08


class OutputStream(enum.IntEnum):
    """Where a message is sent once rendered."""

    ERROR = 0x00
    OUT = 0x10
    NFO = 0x20
    NULL = 0x30


class FormatError(ValueError):
    """Raised when a message format string or its arguments are invalid."""


def format_int(value: int, base: int = 10, pad: int = 0) -> str:
    """Render ``value`` in ``base`` with upper-case digits, zero-padded to ``pad``."""
    if not 2 <= base <= len(_DIGITS):
        raise ValueError(f"unsupported base {base}")
    value = int(value)
    sign = "-" if value < 0 else ""
    magnitude = -value if value < 0 else value
    digits = []
    while True:
        magnitude, rem = divmod(magnitude, base)
        digits.append(_DIGITS[rem])
        if not magnitude:
            break
    text = "".join(reversed(digits))
    return sign + text.rjust(max(pad - len(sign), 0), "0")


@dataclass
class MessageData:
    """A message's properties and its text in each language."""

    props: int = 0
    default_text: str | None = None
    texts: dict[Hashable, str] = field(default_factory=dict, init=False)

    def __post_init__(self) -> None:
        self.props = int(self.props)
        if self.default_text is not None:
            self.set_text(DEFAULT_LANGUAGE, self.default_text)

    def set_text(self, language: Hashable, text: str) -> None:
        """Set the text for ``language``, replacing any earlier one."""
        self.texts[language] = text

    def text(self, language: Hashable = DEFAULT_LANGUAGE) -> str:
        """Text in ``language``, else in the default language, else UNDEFINED_TEXT."""
        if language in self.texts:
            return self.texts[language]
        return self.texts.get(DEFAULT_LANGUAGE, UNDEFINED_TEXT)

    def is_console_message(self) -> bool:
        """Whether the message is also meant for the console."""
        return not self.props & MessageProps.NO_CONSOLE

    def is_make_comment(self) -> bool:
        """Whether the message is written as a comment."""
        return bool(self.props & MessageProps.MAKE_COMMENT)

    def output_stream(self) -> OutputStream:
        """The stream the rendered message goes to."""
        return OutputStream(self.props & _STREAM_MASK)


UNKNOWN_MESSAGE = MessageData(0, "UNKNOWN_MESSAGE")


class MessageCatalog:
    """Holds messages and extra texts for every language, and renders them."""

    def __init__(self, language: Hashable = DEFAULT_LANGUAGE, comment_prefix: str = "//") -> None:
        self.language = language
        self.comment_prefix = comment_prefix
        self.language_names: dict[int, str] = {}
        self._messages: dict[Hashable, MessageData] = {}
        self._extras: dict[Hashable, dict[Hashable, str]] = {}

    def add_message(self, message_id: Hashable, props: int) -> bool:
        """Register a message; False if the id is already known."""
        if message_id in self._messages:
            return False
        self._messages[message_id] = MessageData(props)
        return True

    def set_message_text(self, message_id: Hashable, language: Hashable, text: str) -> bool:
        """Set a message's text in ``language``; False if the id is unknown."""
        data = self._messages.get(message_id)
        if data is None:
            return False
        data.set_text(language, text)
        return True

    def set_extra_text(self, extra_id: Hashable, language: Hashable, text: str) -> None:
        """Add an extra text; an existing text for that language is kept."""
        self._extras.setdefault(extra_id, {}).setdefault(language, text)

    def message_data(self, message_id: Hashable) -> MessageData:
        """The message's data, or UNKNOWN_MESSAGE for an unknown id."""
        return self._messages.get(message_id, UNKNOWN_MESSAGE)

    def extra_text(self, extra_id: Hashable) -> str:
        """Extra text in the current language, with default-language fallback."""
        texts = self._extras.get(extra_id)
        if texts is None:
            return UNDEFINED_TEXT
        if self.language in texts:
            return texts[self.language]
        return texts.get(DEFAULT_LANGUAGE, UNDEFINED_TEXT)

    def format(self, fmt: str, *args: Any) -> str:
        """Expand a message format string with ``args``."""
        return self._format(fmt, iter(args))

    def render(self, message_id: Hashable, prefix: str = "", *args: Any) -> str:
        """Compose a message with its prefix, offset and comment marks, then format it."""
        data = self.message_data(message_id)
        text = data.text(self.language)
        if data.props & MessageProps.HAS_OFFSET:
            text = self.extra_text(OFFSET_EXTRA) + text
        if data.props & MessageProps.USE_PREFIX:
            text = prefix + text
        if data.props & MessageProps.MAKE_COMMENT:
            text = self.comment_prefix + COMMENT_MARK + text
        return self.format(text, *args)

    @staticmethod
    def _next(args: Iterator[Any], conversion: str) -> Any:
        try:
            return next(args)
        except StopIteration:
            raise FormatError(f"missing argument for %{conversion}") from None

    def _extra_arg(self, args: Iterator[Any], conversion: str) -> str | None:
        extra_id = self._next(args, conversion)
        if extra_id == -1:
            return None
        if extra_id not in self._extras:
            raise FormatError(f"bad extra text id {extra_id!r}")
        return self.extra_text(extra_id)

    def _format(self, fmt: str, args: Iterator[Any]) -> str:
        out: list[str] = []
        i = 0
        end = len(fmt)
        while i < end:
            char = fmt[i]
            i += 1
            if char != "%":
                out.append(char)
                continue
            pad = 0
            match = _NUMBER.match(fmt, i)
            if match:
                pad = int(match.group())
                i += len(str(pad))
            if i >= end:
                raise FormatError("format string ends inside a conversion")
            conv = fmt[i]
            i += 1
            if conv == "c":
                value = self._next(args, conv)
                out.append(chr(value & 0xFF) if isinstance(value, int) else str(value))
            elif conv == "d":
                out.append(format_int(int(self._next(args, conv)), 10, pad))
            elif conv == "t":
                out.append(str(self._next(args, conv)))
            elif conv == "s":
                text = self._extra_arg(args, conv)
                if text is not None:
                    out.append(text)
            elif conv == "S":
                text = self._extra_arg(args, conv)
                if text is not None:
                    out.append(self._format(text, args))
            elif conv == "x":
                out.append(self._hex(int(self._next(args, conv)) & 0xFFFFFFFF, pad))
            elif conv == "L":
                lang_id = self._next(args, conv)
                name = self.language_names.get(lang_id)
                if name is None:
                    raise FormatError(f"unknown language id {lang_id!r}")
                out.append(self.format(name, lang_id))
            elif conv == "K":
                index = self._next(args, conv)
                if not 0 < index < len(_STACK_NAMES):
                    raise FormatError(f"bad stack size index {index!r}")
                out.append(_STACK_NAMES[index])
            else:
                out.append(conv)
        return "".join(out)

    @staticmethod
    def _hex(value: int, pad: int) -> str:
        if not pad or pad & 1:
            return format_int(value, 16)
        parts = []
        while pad or value:
            parts.append(format_int(value & 0xFF, 16, 2))
            value >>= 8
            if pad:
                pad -= 2
        return " ".join(parts)