"""Pure-Python MD5 message digest (RFC 1321)."""

from __future__ import annotations

import struct

_MASK = 0xFFFFFFFF
_COUNT_MASK = (1 << 64) - 1

_INITIAL_STATE = (0x67452301, 0xEFCDAB89, 0x98BADCFE, 0x10325476)

_T = (
    0xD76AA478, 0xE8C7B756, 0x242070DB, 0xC1BDCEEE,
    0xF57C0FAF, 0x4787C62A, 0xA8304613, 0xFD469501,
    0x698098D8, 0x8B44F7AF, 0xFFFF5BB1, 0x895CD7BE,
    0x6B901122, 0xFD987193, 0xA679438E, 0x49B40821,
    0xF61E2562, 0xC040B340, 0x265E5A51, 0xE9B6C7AA,
    0xD62F105D, 0x02441453, 0xD8A1E681, 0xE7D3FBC8,
    0x21E1CDE6, 0xC33707D6, 0xF4D50D87, 0x455A14ED,
    0xA9E3E905, 0xFCEFA3F8, 0x676F02D9, 0x8D2A4C8A,
    0xFFFA3942, 0x8771F681, 0x6D9D6122, 0xFDE5380C,
    0xA4BEEA44, 0x4BDECFA9, 0xF6BB4B60, 0xBEBFBC70,
    0x289B7EC6, 0xEAA127FA, 0xD4EF3085, 0x04881D05,
    0xD9D4D039, 0xE6DB99E5, 0x1FA27CF8, 0xC4AC5665,
    0xF4292244, 0x432AFF97, 0xAB9423A7, 0xFC93A039,
    0x655B59C3, 0x8F0CCC92, 0xFFEFF47D, 0x85845DD1,
    0x6FA87E4F, 0xFE2CE6E0, 0xA3014314, 0x4E0811A1,
    0xF7537E82, 0xBD3AF235, 0x2AD7D2BB, 0xEB86D391,
)

_SHIFTS = ((7, 12, 17, 22), (5, 9, 14, 20), (4, 11, 16, 23), (6, 10, 15, 21))

_BLOCK = 64


def _rotate_left(value: int, amount: int) -> int:
    return ((value << amount) | (value >> (32 - amount))) & _MASK


def _compress(state: tuple[int, int, int, int], block: bytes) -> tuple[int, int, int, int]:
    """Run the four MD5 rounds over one 64-byte block."""
    words = struct.unpack("<16I", block)
    a, b, c, d = state
    for step in range(64):
        rnd = step // 16
        if rnd == 0:
            mixed = (b & c) | (~b & d)
            index = step
        elif rnd == 1:
            mixed = (b & d) | (c & ~d)
            index = (1 + 5 * step) % 16
        elif rnd == 2:
            mixed = b ^ c ^ d
            index = (5 + 3 * step) % 16
        else:
            mixed = c ^ (b | (~d & _MASK))
            index = (7 * step) % 16
        total = (a + (mixed & _MASK) + words[index] + _T[step]) & _MASK
        rotated = _rotate_left(total, _SHIFTS[rnd][step % 4])
        a, d, c, b = d, c, b, (b + rotated) & _MASK
    return (
        (state[0] + a) & _MASK,
        (state[1] + b) & _MASK,
        (state[2] + c) & _MASK,
        (state[3] + d) & _MASK,
    )


def _as_bytes(data) -> bytes:
    if isinstance(data, str):
        raise TypeError("strings must be encoded before hashing")
    return bytes(memoryview(data))


class MD5:
    """Incremental MD5 hasher with an interface like hashlib's."""

    name = "md5"
    digest_size = 16
    block_size = _BLOCK

    def __init__(self, data=b"") -> None:
        self._state = _INITIAL_STATE
        self._length = 0
        self._pending = b""
        if data:
            self.update(data)

    def update(self, data) -> None:
        """Append bytes to the message."""
        chunk = _as_bytes(data)
        if not chunk:
            return
        self._length = (self._length + len(chunk)) & (_COUNT_MASK >> 3)
        buffer = self._pending + chunk
        full = len(buffer) - len(buffer) % _BLOCK
        state = self._state
        for start in range(0, full, _BLOCK):
            state = _compress(state, buffer[start:start + _BLOCK])
        self._state = state
        self._pending = buffer[full:]

    def copy(self) -> MD5:
        """Return an independent hasher in the same state."""
        clone = MD5()
        clone._state = self._state
        clone._length = self._length
        clone._pending = self._pending
        return clone

    def digest(self) -> bytes:
        """Return the 16-byte digest of the data so far."""
        bit_length = (self._length << 3) & _COUNT_MASK
        pad_len = ((55 - self._length) % _BLOCK) + 1
        tail = self._pending + b"\x80" + b"\x00" * (pad_len - 1) + struct.pack("<Q", bit_length)
        state = self._state
        for start in range(0, len(tail), _BLOCK):
            state = _compress(state, tail[start:start + _BLOCK])
        return struct.pack("<4I", *state)

    def hexdigest(self) -> str:
        """Return the digest as lower-case hexadecimal."""
        return self.digest().hex()


def md5(data=b"") -> MD5:
    """Create a hasher primed with ``data``."""
    return MD5(data)