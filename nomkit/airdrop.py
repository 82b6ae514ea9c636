"""Airdrop account balances and their initialisation from snapshots."""

from __future__ import annotations

import copy
import csv
import io
import logging
import re
from dataclasses import dataclass, field

from .address import Address, AddressError, decode_address

log = logging.getLogger(__name__)

MAX_STAKED = 1_000_000_000
AIRDROP_II_TOTAL = 3_500_000_000_000

_PRECISION = 1_000_000
_AIRDROP1_CAP = 1_000_000_000
_AIRDROP1_STAKED_WEIGHT = 4
_UNITS_PER_NOM_NUMERATOR = 20_299325
_UNITS_PER_NOM_DENOMINATOR = 1_000_000
_U64_MAX = 2**64 - 1
_U64_PATTERN = re.compile(r"\+?[0-9]+")


class AirdropError(Exception):
    """Raised when an airdrop operation is not allowed or input is invalid."""


@dataclass
class Part:
    """One airdrop allocation of an account."""

    locked: int = 0
    claimable: int = 0
    claimed: int = 0

    def unlock(self) -> None:
        self.claimable += self.locked
        self.locked = 0

    def claim(self) -> int:
        """Move the claimable balance to claimed and return the amount."""
        amount = self.claimable
        if amount == 0:
            raise AirdropError("No balance to claim")
        self.claimed += amount
        self.claimable = 0
        return amount

    def is_empty(self) -> bool:
        return self == Part()

    def total(self) -> int:
        return self.locked + self.claimable + self.claimed


@dataclass
class Account:
    """Airdrop allocations held by one address."""

    airdrop1: Part = field(default_factory=Part)
    airdrop2: Part = field(default_factory=Part)
    joined: bool = False

    def is_empty(self) -> bool:
        return self == Account()


def _parse_u64(text: str) -> int | None:
    if not _U64_PATTERN.fullmatch(text):
        return None
    value = int(text)
    return value if value <= _U64_MAX else None


def _parse_bool(text: str) -> bool:
    if text == "true":
        return True
    if text == "false":
        return False
    raise AirdropError(f"invalid boolean field: {text!r}")


def _read_records(data: bytes | str) -> list[list[str]]:
    text = data.decode("utf-8") if isinstance(data, (bytes, bytearray)) else data
    rows = [row for row in csv.reader(io.StringIO(text)) if row]
    if not rows:
        return []
    header, records = rows[0], rows[1:]
    for record in records:
        if len(record) != len(header):
            raise AirdropError(
                f"record has {len(record)} fields, header has {len(header)}"
            )
    return records


def _score(staked: int, _count: int) -> int:
    return min(staked, MAX_STAKED)


Recipient = tuple[Address, list[tuple[int, int]], int]


def _recipients_from_csv(data: bytes | str) -> list[Recipient]:
    recipients: list[Recipient] = []
    for record in _read_records(data):
        if len(record[0]) != 44:
            continue
        address = Address.parse(record[0])
        values: list[int] = []
        claims = 0
        for item in record[1:]:
            number = _parse_u64(item)
            if number is None:
                claims += _parse_bool(item)
            else:
                values.append(number)
        pairs = list(zip(values[0::2], values[1::2]))
        recipients.append((address, pairs, claims))
    return recipients


class Airdrop:
    """Airdrop accounts keyed by address."""

    def __init__(self) -> None:
        self.accounts: dict[Address, Account] = {}

    def get(self, address: Address) -> Account | None:
        account = self.accounts.get(address)
        return copy.deepcopy(account) if account is not None else None

    def signer_account(self, signer: Address | None) -> Account:
        """Return the live account of the signer."""
        if signer is None:
            raise AirdropError("Unauthorized account action")
        try:
            return self.accounts[signer]
        except KeyError:
            raise AirdropError("No airdrop account for signer") from None

    def claim_airdrop1(self, signer: Address | None) -> int:
        """Claim the first airdrop; returns the amount to pay out."""
        return self.signer_account(signer).airdrop1.claim()

    def claim_airdrop2(self, signer: Address | None) -> int:
        """Claim the second airdrop; returns the amount to pay out."""
        return self.signer_account(signer).airdrop2.claim()

    def join_accounts(self, signer: Address | None, dest_addr: Address) -> None:
        """Move the signer's allocations into the destination account."""
        account = self.signer_account(signer)
        if account.joined:
            raise AirdropError("Account already joined")
        if account.is_empty():
            raise AirdropError("Account has no airdrop balance")

        source = copy.deepcopy(account)
        self.accounts[signer] = Account()
        dest = self.accounts.setdefault(dest_addr, Account())

        for dest_part, src_part in (
            (dest.airdrop1, source.airdrop1),
            (dest.airdrop2, source.airdrop2),
        ):
            if dest_part.claimable > 0 or dest_part.claimed > 0:
                dest_part.claimable += src_part.locked
            else:
                dest_part.locked += src_part.locked
            dest_part.claimable += src_part.claimable
            dest_part.claimed += src_part.claimed

        dest.joined = True

    def init_from_airdrop2_csv(self, data: bytes | str) -> int:
        """Allocate the second airdrop from a snapshot; returns the total minted."""
        log.info("Initializing balances from airdrop 2 snapshot...")

        recipients = _recipients_from_csv(data)
        if not recipients:
            raise AirdropError("Snapshot has no recipients")
        network_count = len(recipients[0][1])
        if network_count == 0:
            raise AirdropError("Snapshot has no networks")

        totals = [0] * network_count
        for _, networks, _ in recipients:
            if len(networks) > network_count:
                raise AirdropError("Recipient has more networks than the first row")
            for i, (staked, count) in enumerate(networks):
                totals[i] += _score(staked, count)
        if any(total == 0 for total in totals):
            raise AirdropError("Network has a total score of zero")

        unom_per_network = AIRDROP_II_TOTAL // network_count
        unom_per_score = [unom_per_network * _PRECISION // total for total in totals]

        airdrop_total = 0
        for address, networks, _ in recipients:
            unom = sum(
                _score(staked, count) * rate // _PRECISION
                for (staked, count), rate in zip(networks, unom_per_score)
            )
            self.accounts.setdefault(address, Account()).airdrop2.claimable = unom
            airdrop_total += unom

        log.info(
            "Total amount minted for airdrop 2: %d uNOM across %d accounts",
            airdrop_total,
            len(recipients),
        )
        return airdrop_total

    def _init_airdrop1_amount(self, address: Address, liquid: int, staked: int) -> int:
        units = min(liquid, _AIRDROP1_CAP) + min(staked, _AIRDROP1_CAP) * _AIRDROP1_STAKED_WEIGHT
        amount = units * _UNITS_PER_NOM_DENOMINATOR // _UNITS_PER_NOM_NUMERATOR
        self.accounts.setdefault(address, Account()).airdrop1.claimable = amount
        return amount

    def init_from_airdrop1_csv(self, data: bytes | str) -> int:
        """Allocate the first airdrop from a snapshot; returns the total minted."""
        log.info("Initializing balances from airdrop 1 snapshot...")

        minted = 0
        accounts = 0
        for record in _read_records(data):
            if len(record) < 3:
                raise AirdropError("Airdrop 1 record needs address, liquid and staked")
            try:
                address = Address(decode_address(record[0]))
            except AddressError as exc:
                raise AirdropError(f"Invalid address {record[0]!r}: {exc}") from exc
            liquid = _parse_u64(record[1])
            staked = _parse_u64(record[2])
            if liquid is None or staked is None:
                raise AirdropError(f"Invalid amounts in record for {record[0]}")
            minted += self._init_airdrop1_amount(address, liquid, staked)
            accounts += 1

        log.info(
            "Total amount minted for airdrop 1: %d uNOM across %d accounts",
            minted,
            accounts,
        )
        return minted