import pytest

from grftools.messages import (
    COMMENT_MARK,
    DEFAULT_LANGUAGE,
    OFFSET_EXTRA,
    UNDEFINED_TEXT,
    FormatError,
    MessageCatalog,
    MessageData,
    MessageProps,
    OutputStream,
    format_int,
)


@pytest.fixture
def catalog():
    cat = MessageCatalog()
    cat.set_extra_text("GREETING", DEFAULT_LANGUAGE, "hello")
    cat.set_extra_text("NESTED", DEFAULT_LANGUAGE, "n=%d")
    cat.set_extra_text(OFFSET_EXTRA, DEFAULT_LANGUAGE, "Offset %d: ")
    return cat


@pytest.mark.parametrize("value", [0, 1, 9, 10, 255, 4096, 123456789])
@pytest.mark.parametrize("base", [2, 10, 16])
def test_format_int_round_trip(value, base):
    assert int(format_int(value, base), base) == value


def test_format_int_padding_and_sign():
    text = format_int(7, 10, 4)
    assert len(text) == 4 and int(text) == 7
    assert int(format_int(-42, 10)) == -42
    assert format_int(10, 16) == "A"


def test_format_int_bad_base():
    with pytest.raises(ValueError):
        format_int(1, 1)


def test_message_data_fallback():
    data = MessageData(0, "base")
    data.set_text("fr", "base-fr")
    assert data.text("fr") == "base-fr"
    assert data.text("de") == "base"
    assert MessageData(0).text("de") == UNDEFINED_TEXT


def test_message_data_props():
    data = MessageData(MessageProps.NO_CONSOLE | OutputStream.NFO)
    assert not data.is_console_message()
    assert not data.is_make_comment()
    assert data.output_stream() is OutputStream.NFO
    comment = MessageData(MessageProps.MAKE_COMMENT)
    assert comment.is_make_comment()
    assert comment.is_console_message()
    assert comment.output_stream() is OutputStream.ERROR


def test_add_and_lookup_messages(catalog):
    assert catalog.add_message("M1", 0)
    assert not catalog.add_message("M1", MessageProps.MAKE_COMMENT)
    assert catalog.message_data("M1").props == 0
    assert catalog.set_message_text("M1", DEFAULT_LANGUAGE, "text")
    assert not catalog.set_message_text("MISSING", DEFAULT_LANGUAGE, "text")
    assert catalog.message_data("M1").text() == "text"
    assert catalog.message_data("MISSING").text() == "UNKNOWN_MESSAGE"


def test_extra_text_is_not_overwritten(catalog):
    catalog.set_extra_text("GREETING", DEFAULT_LANGUAGE, "other")
    assert catalog.extra_text("GREETING") == "hello"
    assert catalog.extra_text("NOPE") == UNDEFINED_TEXT


def test_extra_text_language_fallback():
    cat = MessageCatalog(language="fr")
    cat.set_extra_text("E", DEFAULT_LANGUAGE, "base")
    cat.set_extra_text("F", "fr", "french")
    cat.set_extra_text("G", "de", "german")
    assert cat.extra_text("E") == "base"
    assert cat.extra_text("F") == "french"
    assert cat.extra_text("G") == UNDEFINED_TEXT


def test_format_simple_conversions(catalog):
    assert catalog.format("a%db", 12) == "a12b"
    assert catalog.format("%t!", "file.c") == "file.c!"
    assert catalog.format("%c%c", ord("o"), ord("k")) == "ok"
    assert catalog.format("100%%") == "100%"
    assert catalog.format("%s world", "GREETING") == "hello world"
    assert catalog.format("[%s]", -1) == "[]"


def test_format_nested_extra_consumes_args(catalog):
    assert catalog.format("%S/%d", "NESTED", 5, 6) == "n=5/6"


def test_format_stack_names(catalog):
    assert catalog.format("%K %K", 1, 2) == "byte word"


def test_format_hex_bytes_little_endian(catalog):
    text = catalog.format("%8x", 0x1234)
    parts = text.split(" ")
    assert len(parts) == 4
    assert all(len(p) == 2 for p in parts)
    assert int.from_bytes(bytes(int(p, 16) for p in parts), "little") == 0x1234


def test_format_hex_plain(catalog):
    assert int(catalog.format("%x", 0xBEEF), 16) == 0xBEEF
    assert int(catalog.format("%3x", 0xBEEF), 16) == 0xBEEF


def test_format_language_name(catalog):
    catalog.language_names[3] = "lang %d"
    assert catalog.format("%L", 3) == "lang 3"
    with pytest.raises(FormatError):
        catalog.format("%L", 4)


@pytest.mark.parametrize(
    "fmt,args",
    [("%s", ("UNKNOWN",)), ("%d",()), ("abc%", ()), ("%K", (0,)), ("%K", (9,))],
)
def test_format_errors(catalog, fmt, args):
    with pytest.raises(FormatError):
        catalog.format(fmt, *args)


def test_render_comment_prefix_and_offset(catalog):
    catalog.comment_prefix = "#"
    props = MessageProps.MAKE_COMMENT | MessageProps.USE_PREFIX | MessageProps.HAS_OFFSET
    catalog.add_message("M", props)
    catalog.set_message_text("M", DEFAULT_LANGUAGE, "value %d")
    rendered = catalog.render("M", "P:", 3, 9)
    assert rendered == "#" + COMMENT_MARK + "P:" + catalog.format("Offset %d: ", 3) + "value 9"


def test_render_without_flags_ignores_prefix(catalog):
    catalog.add_message("PLAIN", 0)
    catalog.set_message_text("PLAIN", DEFAULT_LANGUAGE, "count %d")
    assert catalog.render("PLAIN", "ignored", 4) == "count 4"
    assert catalog.render("NOT_THERE") == "UNKNOWN_MESSAGE"