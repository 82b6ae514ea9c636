"""Application rules: upgrade windows, IBC fees, reward timing and nBTC memos."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timezone

from .address import AddressError, bitcoin_script_pubkey

CONSENSUS_VERSION = 10
IBC_FEE_USATS = 1_000_000
DECLARE_FEE_USATS = 100_000_000
REWARD_TIMER_PERIOD = 120

_IBC_FEE_NUMERATOR = 5
_IBC_FEE_DENOMINATOR = 1000
_UPGRADE_HOUR = 17
_UPGRADE_MINUTES = 10
_HEX_PATTERN = re.compile(r"(?:[0-9a-fA-F]{2})*")


class AppError(Exception):
    """Raised when an application rule rejects its input."""


def in_upgrade_window(now_seconds: int) -> bool:
    """Whether a Unix time falls on a weekday between 17:00 and 17:10 UTC."""
    try:
        now = datetime.fromtimestamp(now_seconds, tz=timezone.utc)
    except (OverflowError, OSError, ValueError) as exc:
        raise AppError(f"timestamp out of range: {now_seconds}") from exc
    valid_weekday = now.weekday() < 5
    valid_time = now.hour == _UPGRADE_HOUR and now.minute < _UPGRADE_MINUTES
    return valid_weekday and valid_time


def ibc_fee(amount: int) -> int:
    """The fee taken from an IBC transfer: 0.5% of the amount, rounded down."""
    if amount < 0:
        raise AppError("amount must not be negative")
    return amount * _IBC_FEE_NUMERATOR // _IBC_FEE_DENOMINATOR


@dataclass
class RewardTimer:
    """Fires at most once per reward period."""

    last_period: int = 0

    def tick(self, now: int) -> bool:
        """Return True and restart the period if a full period has passed."""
        if now - self.last_period < REWARD_TIMER_PERIOD:
            return False
        self.last_period = now
        return True


@dataclass(frozen=True)
class NbtcMemo:
    """A transfer memo: either empty or a withdrawal to an output script."""

    script: bytes | None = None

    @property
    def is_withdraw(self) -> bool:
        return self.script is not None

    @classmethod
    def parse(cls, text: str) -> "NbtcMemo":
        """Parse ``""`` or ``withdraw:<bitcoin address or script hex>``."""
        if not text:
            return cls()
        parts = text.split(":")
        if len(parts) != 2:
            raise AppError("Invalid memo")
        action, dest = parts
        if action != "withdraw":
            raise AppError("Only withdraw memo action is supported")
        try:
            script = bitcoin_script_pubkey(dest)
        except AddressError:
            if not _HEX_PATTERN.fullmatch(dest):
                raise AppError(f"invalid script hex: {dest!r}") from None
            script = bytes.fromhex(dest)
        return cls(script)