"""Destinations for bridged funds: a local account or an IBC transfer."""

from __future__ import annotations

import base64
import binascii
import hashlib
import re
import struct
from dataclasses import dataclass
from typing import Mapping

from .address import Address, AddressError
from .app import AppError

_ADDRESS_TAG = 0
_IBC_TAG = 1
_ADDRESS_LENGTH = 20
_U8_MAX = 0xFF
_U16_MAX = 0xFFFF
_U64_MAX = 2**64 - 1

_IDENTIFIER_CHARS = re.compile(r"[A-Za-z0-9._+\-#\[\]<>]+")
_CHANNEL_PATTERN = re.compile(r"channel-[0-9]+")
_PORT_LENGTH = (2, 128)
_CHANNEL_LENGTH = (8, 64)


class _Reader:
    """Consumes bytes from the front of a buffer."""

    def __init__(self, data: bytes) -> None:
        self._data = bytes(data)
        self._pos = 0

    def take(self, count: int) -> bytes:
        end = self._pos + count
        if end > len(self._data):
            raise AppError("Unexpected end of input")
        chunk = self._data[self._pos:end]
        self._pos = end
        return chunk

    def u8(self) -> int:
        return self.take(1)[0]

    def u16(self) -> int:
        return struct.unpack(">H", self.take(2))[0]

    def u64(self) -> int:
        return struct.unpack(">Q", self.take(8))[0]


def _short_bytes(text: str, name: str) -> bytes:
    raw = text.encode("utf-8")
    if len(raw) > _U8_MAX:
        raise AppError(f"{name} is longer than {_U8_MAX} bytes")
    return bytes([len(raw)]) + raw


def _signer_bytes(text: str, name: str) -> bytes:
    raw = text.encode("utf-8")
    if len(raw) > _U16_MAX:
        raise AppError(f"{name} is longer than {_U16_MAX} bytes")
    return struct.pack(">H", len(raw)) + raw


def _text(raw: bytes, name: str) -> str:
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise AppError(f"{name} is not valid UTF-8") from exc


def _valid_identifier(text: str, bounds: tuple[int, int]) -> bool:
    low, high = bounds
    return low <= len(text) <= high and bool(_IDENTIFIER_CHARS.fullmatch(text))


@dataclass(frozen=True)
class IbcDest:
    """An outgoing IBC transfer of nBTC.

    ``port_id`` and ``channel_id`` hold the raw source port and channel;
    ``source_port()`` and ``source_channel()`` return them validated.
    """

    port_id: str
    channel_id: str
    receiver: str
    sender: str
    timeout_timestamp: int
    memo: str = ""

    def encode(self) -> bytes:
        """Encode as length-prefixed fields followed by a big-endian timeout."""
        if not 0 <= self.timeout_timestamp <= _U64_MAX:
            raise AppError("timeout_timestamp does not fit in 64 bits")
        return b"".join(
            (
                _short_bytes(self.port_id, "source_port"),
                _short_bytes(self.channel_id, "source_channel"),
                _signer_bytes(self.receiver, "receiver"),
                _signer_bytes(self.sender, "sender"),
                struct.pack(">Q", self.timeout_timestamp),
                _short_bytes(self.memo, "memo"),
            )
        )

    @classmethod
    def _read(cls, reader: _Reader) -> "IbcDest":
        port_id = _text(reader.take(reader.u8()), "source_port")
        channel_id = _text(reader.take(reader.u8()), "source_channel")
        receiver = _text(reader.take(reader.u16()), "receiver")
        sender = _text(reader.take(reader.u16()), "sender")
        timeout_timestamp = reader.u64()
        memo = _text(reader.take(reader.u8()), "memo")
        return cls(port_id, channel_id, receiver, sender, timeout_timestamp, memo)

    @classmethod
    def decode(cls, data: bytes) -> "IbcDest":
        return cls._read(_Reader(data))

    def sender_address(self) -> Address:
        """The sender parsed as a local account address."""
        try:
            return Address.parse(self.sender)
        except AddressError as exc:
            raise AppError(str(exc)) from exc

    def source_channel(self) -> str:
        """The source channel id, validated as ``channel-<n>``."""
        if not (
            _valid_identifier(self.channel_id, _CHANNEL_LENGTH)
            and _CHANNEL_PATTERN.fullmatch(self.channel_id)
        ):
            raise AppError("Invalid channel id")
        return self.channel_id

    def source_port(self) -> str:
        """The source port id, validated as an IBC identifier."""
        if not _valid_identifier(self.port_id, _PORT_LENGTH):
            raise AppError("Invalid port id")
        return self.port_id

    def memo_text(self) -> str:
        """The memo, checked to fit its one-byte length prefix."""
        _short_bytes(self.memo, "memo")
        return self.memo


@dataclass(frozen=True)
class Dest:
    """Where deposited funds go: exactly one of a local address or an IBC transfer."""

    address: Address | None = None
    ibc: IbcDest | None = None

    def __post_init__(self) -> None:
        if (self.address is None) == (self.ibc is None):
            raise AppError("Dest needs exactly one of address or ibc")

    def encode(self) -> bytes:
        if self.address is not None:
            return bytes([_ADDRESS_TAG]) + self.address.data
        assert self.ibc is not None
        return bytes([_IBC_TAG]) + self.ibc.encode()

    @classmethod
    def decode(cls, data: bytes) -> "Dest":
        reader = _Reader(data)
        tag = reader.u8()
        if tag == _ADDRESS_TAG:
            return cls(address=Address(reader.take(_ADDRESS_LENGTH)))
        if tag == _IBC_TAG:
            return cls(ibc=IbcDest._read(reader))
        raise AppError(f"Unknown Dest variant: {tag}")

    def to_base64(self) -> str:
        return base64.b64encode(self.encode()).decode("ascii")

    @classmethod
    def from_base64(cls, text: str) -> "Dest":
        try:
            raw = base64.b64decode(text, validate=True)
        except (binascii.Error, ValueError):
            raise AppError("Failed to decode base64") from None
        return cls.decode(raw)

    def commitment_bytes(self) -> bytes:
        """Bytes committed to in a deposit script."""
        if self.address is not None:
            return self.address.data
        assert self.ibc is not None
        return hashlib.sha256(self.ibc.encode()).digest()

    def to_receiver_addr(self) -> str:
        if self.address is not None:
            return str(self.address)
        assert self.ibc is not None
        return self.ibc.receiver

    def to_output_script(self, recovery_scripts: Mapping[Address, bytes]) -> bytes | None:
        """The recovery script registered for an address destination, if any."""
        if self.address is None:
            return None
        script = recovery_scripts.get(self.address)
        return bytes(script) if script is not None else None