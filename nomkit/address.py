"""Bech32 account addresses and Bitcoin address decoding."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from typing import Iterable

ADDRESS_HRP = "nomic"
ADDRESS_LENGTH = 20

_CHARSET = "qpzry9x8gf2tvdw0s3jn54khce6mua7l"
_CHARSET_MAP = {c: i for i, c in enumerate(_CHARSET)}
_GENERATORS = (0x3B6A57B2, 0x26508E6D, 0x1EA119FA, 0x3D4233DD, 0x2A1462B3)
_BECH32_CONST = 1
_BECH32M_CONST = 0x2BC830A3

_BASE58_ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"
_BASE58_MAP = {c: i for i, c in enumerate(_BASE58_ALPHABET)}
_SEGWIT_HRPS = ("bc", "tb", "bcrt")
_P2PKH_VERSIONS = (0x00, 0x6F)
_P2SH_VERSIONS = (0x05, 0xC4)


class AddressError(ValueError):
    """Raised when an address cannot be encoded or decoded."""


def _polymod(values: Iterable[int]) -> int:
    chk = 1
    for value in values:
        top = chk >> 25
        chk = ((chk & 0x1FFFFFF) << 5) ^ value
        for i, gen in enumerate(_GENERATORS):
            if (top >> i) & 1:
                chk ^= gen
    return chk


def _hrp_expand(hrp: str) -> list[int]:
    return [ord(c) >> 5 for c in hrp] + [0] + [ord(c) & 31 for c in hrp]


def _checksum(hrp: str, data: list[int], const: int) -> list[int]:
    pm = _polymod(_hrp_expand(hrp) + data + [0] * 6) ^ const
    return [(pm >> (5 * (5 - i))) & 31 for i in range(6)]


def convert_bits(data: Iterable[int], from_bits: int, to_bits: int, pad: bool) -> list[int]:
    """Regroup a sequence of ``from_bits``-wide values into ``to_bits``-wide values."""
    acc = 0
    bits = 0
    out: list[int] = []
    max_value = (1 << to_bits) - 1
    for value in data:
        if value < 0 or value >> from_bits:
            raise AddressError(f"invalid {from_bits}-bit value: {value}")
        acc = (acc << from_bits) | value
        bits += from_bits
        while bits >= to_bits:
            bits -= to_bits
            out.append((acc >> bits) & max_value)
    if pad:
        if bits:
            out.append((acc << (to_bits - bits)) & max_value)
    elif bits >= from_bits or ((acc << (to_bits - bits)) & max_value):
        raise AddressError("invalid padding")
    return out


def bech32_encode(hrp: str, data: Iterable[int]) -> str:
    """Encode 5-bit values under a human-readable part as a bech32 string."""
    values = list(data)
    if not hrp:
        raise AddressError("empty human-readable part")
    if any(v < 0 or v > 31 for v in values):
        raise AddressError("data values must be 5-bit")
    hrp = hrp.lower()
    combined = values + _checksum(hrp, values, _BECH32_CONST)
    return hrp + "1" + "".join(_CHARSET[v] for v in combined)


def _decode(text: str) -> tuple[str, list[int], int]:
    if any(ord(c) < 33 or ord(c) > 126 for c in text):
        raise AddressError("invalid character in bech32 string")
    if text.lower() != text and text.upper() != text:
        raise AddressError("mixed case in bech32 string")
    text = text.lower()
    pos = text.rfind("1")
    if pos < 1 or pos + 7 > len(text):
        raise AddressError("invalid bech32 separator position")
    hrp = text[:pos]
    try:
        data = [_CHARSET_MAP[c] for c in text[pos + 1:]]
    except KeyError as exc:
        raise AddressError(f"invalid bech32 character: {exc.args[0]!r}") from None
    const = _polymod(_hrp_expand(hrp) + data)
    if const not in (_BECH32_CONST, _BECH32M_CONST):
        raise AddressError("invalid bech32 checksum")
    return hrp, data[:-6], const


def bech32_decode(text: str) -> tuple[str, list[int]]:
    """Decode a bech32 or bech32m string into its hrp and 5-bit data values."""
    hrp, data, _ = _decode(text)
    return hrp, data


def encode_address(data: bytes) -> str:
    """Encode raw address bytes with the account prefix."""
    return bech32_encode(ADDRESS_HRP, convert_bits(data, 8, 5, True))


def decode_address(text: str) -> bytes:
    """Decode a bech32 address of any prefix into its raw bytes."""
    _, data = bech32_decode(text)
    return bytes(convert_bits(data, 5, 8, False))


@dataclass(frozen=True, order=True)
class Address:
    """A 20-byte account address, shown in bech32 with the account prefix."""

    data: bytes

    def __post_init__(self) -> None:
        raw = bytes(self.data)
        if len(raw) != ADDRESS_LENGTH:
            raise AddressError(f"address must be {ADDRESS_LENGTH} bytes, got {len(raw)}")
        object.__setattr__(self, "data", raw)

    @classmethod
    def parse(cls, text: str) -> "Address":
        hrp, data = bech32_decode(text)
        if hrp != ADDRESS_HRP:
            raise AddressError(f"invalid address prefix: {hrp!r}")
        return cls(bytes(convert_bits(data, 5, 8, False)))

    def __str__(self) -> str:
        return encode_address(self.data)


def _segwit_script(text: str) -> bytes | None:
    try:
        hrp, data, const = _decode(text)
    except AddressError:
        return None
    if hrp not in _SEGWIT_HRPS:
        return None
    if not data:
        raise AddressError("empty witness data")
    version = data[0]
    if version > 16:
        raise AddressError(f"invalid witness version: {version}")
    program = bytes(convert_bits(data[1:], 5, 8, False))
    if not 2 <= len(program) <= 40:
        raise AddressError("invalid witness program length")
    if version == 0 and len(program) not in (20, 32):
        raise AddressError("invalid witness v0 program length")
    expected = _BECH32_CONST if version == 0 else _BECH32M_CONST
    if const != expected:
        raise AddressError("invalid checksum variant for witness version")
    opcode = 0x50 + version if version else 0
    return bytes([opcode, len(program)]) + program


def _base58check_decode(text: str) -> bytes:
    if not text:
        raise AddressError("empty base58 string")
    num = 0
    for char in text:
        try:
            num = num * 58 + _BASE58_MAP[char]
        except KeyError:
            raise AddressError(f"invalid base58 character: {char!r}") from None
    leading = len(text) - len(text.lstrip("1"))
    raw = b"\x00" * leading + num.to_bytes((num.bit_length() + 7) // 8, "big")
    if len(raw) < 5:
        raise AddressError("base58 payload too short")
    payload, checksum = raw[:-4], raw[-4:]
    digest = hashlib.sha256(hashlib.sha256(payload).digest()).digest()
    if digest[:4] != checksum:
        raise AddressError("invalid base58 checksum")
    return payload


def bitcoin_script_pubkey(address: str) -> bytes:
    """Return the output script paying to a Bitcoin address."""
    script = _segwit_script(address)
    if script is not None:
        return script
    payload = _base58check_decode(address)
    if len(payload) != 21:
        raise AddressError("invalid base58 address length")
    version, digest = payload[0], payload[1:]
    if version in _P2PKH_VERSIONS:
        return b"\x76\xa9\x14" + digest + b"\x88\xac"
    if version in _P2SH_VERSIONS:
        return b"\xa9\x14" + digest + b"\x87"
    raise AddressError(f"unknown address version: {version}")