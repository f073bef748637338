import io

import pytest

from grftools.pcx import (
    HEADER_SIZE,
    CommonPixel,
    PcxFormatError,
    PcxHeader,
    RleDecoder,
    rle_encode,
    rle_encode_run,
)


def test_pixel_encode_all_channels():
    assert CommonPixel(1, 2, 3, 4, 5).encode(True, True) == bytes([1, 2, 3, 4, 5])


def test_pixel_encode_mask_only():
    assert CommonPixel(1, 2, 3, 4, 5).encode(True, False) == bytes([5])


def test_pixel_decode_round_trip():
    original = CommonPixel(10, 20, 30, 40, 50)
    data = original.encode(True, True) + b"extra"
    pixel, used = CommonPixel.decode(data, True, True)
    assert pixel == original
    assert used == 5


def test_pixel_decode_too_short():
    with pytest.raises(PcxFormatError):
        CommonPixel.decode(b"\x01\x02", True, True)


def test_pixel_transparency_and_clear():
    pixel = CommonPixel(9, 9, 9, 0, 7)
    assert pixel.is_transparent(True)
    assert not pixel.is_transparent(False)
    pixel.make_transparent()
    assert pixel == CommonPixel()
    assert pixel.is_transparent(False)


def test_header_size_and_magic():
    data = PcxHeader().pack()
    assert len(data) == HEADER_SIZE
    assert data[:4] == bytes([10, 5, 1, 8])


def test_header_for_width_fields():
    header = PcxHeader.for_width(640)
    assert header.window[2] == 639
    assert header.screen[0] == 639
    assert header.bpl == 640
    data = header.pack()
    assert data[66:68] == (640).to_bytes(2, "little")


def test_header_round_trip():
    header = PcxHeader.for_width(320)
    header.window[3] = -1
    parsed = PcxHeader.unpack(header.pack())
    assert parsed.window == [0, 0, 319, 65535]
    assert parsed.bpl == 320
    assert parsed.nplanes == 1
    assert parsed.pack() == header.pack()


def test_header_unpack_short():
    with pytest.raises(PcxFormatError):
        PcxHeader.unpack(b"\x0a" * 10)


def test_rle_literal_bytes():
    assert rle_encode([1, 2, 3]) == bytes([1, 2, 3])


def test_rle_high_byte_needs_prefix():
    assert rle_encode([0xC0]) == bytes([0xC1, 0xC0])


def test_rle_long_run_splits():
    assert rle_encode([7] * 100) == rle_encode_run(7, 100)
    assert rle_encode_run(7, 100)[0] == 0xFF


def test_rle_empty():
    assert rle_encode([]) == b""
    assert rle_encode_run(3, 0) == b""


def test_rle_rejects_bad_values():
    with pytest.raises(ValueError):
        rle_encode([256])
    with pytest.raises(ValueError):
        rle_encode_run(1, -1)


@pytest.mark.parametrize("values", [
    [0, 0, 0, 1, 2, 2, 0xFF, 0xC3, 0xC3],
    list(range(256)),
    [5] * 200 + [6] * 3,
])
def test_rle_round_trip(values):
    decoder = RleDecoder(io.BytesIO(rle_encode(values)))
    assert decoder.read(len(values)) == bytes(values)


def test_decoder_run_spans_reads():
    decoder = RleDecoder(io.BytesIO(bytes([0xC5, 9, 4])))
    assert decoder.read(2) == bytes([9, 9])
    assert decoder.read(4) == bytes([9, 9, 9, 4])


def test_decoder_truncated():
    decoder = RleDecoder(io.BytesIO(bytes([0xC5])))
    with pytest.raises(PcxFormatError):
        decoder.read(5)