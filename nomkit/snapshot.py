"""Build an airdrop snapshot CSV from chain genesis exports."""

from __future__ import annotations

import argparse
import csv
import json
import logging
import math
import sys
from pathlib import Path
from typing import Any

from .address import decode_address, encode_address

log = logging.getLogger(__name__)

_U64_MAX = 2**64 - 1

Recipients = dict[bytes, tuple[int, int]]
Network = tuple[str, Recipients]


def _as_u64(value: float) -> int:
    """Convert a float to u64 the saturating, truncating way."""
    if math.isnan(value) or value <= 0:
        return 0
    if value >= _U64_MAX:
        return _U64_MAX
    return int(value)


def process_input(path: str | Path, skip_validators: int, trim_decimals: int) -> Network:
    """Read one genesis export and return its chain id and recipients."""
    data = json.loads(Path(path).read_text())
    chain_id = data["chain_id"]
    if not isinstance(chain_id, str):
        raise ValueError("chain_id must be a string")
    return chain_id, get_recipients(data, skip_validators, trim_decimals)


def get_included_vals(data: dict[str, Any], skip_validators: int) -> dict[str, float]:
    """Bonded, unjailed validators by operator address, with their token/share rate.

    The ``skip_validators`` largest validators by tokens are left out.
    """
    vals: list[tuple[str, int, float]] = []
    for validator in data["app_state"]["staking"]["validators"]:
        if validator["jailed"] or validator["status"] != "BOND_STATUS_BONDED":
            continue
        tokens = int(validator["tokens"])
        shares = float(validator["delegator_shares"])
        rate = tokens / shares if shares else (math.inf if tokens else math.nan)
        vals.append((validator["operator_address"], tokens, rate))

    vals.sort(key=lambda v: v[1], reverse=True)
    return {address: rate for address, _, rate in vals[skip_validators:]}


def get_recipients(data: dict[str, Any], skip_validators: int, trim_decimals: int) -> Recipients:
    """Sum delegated tokens and delegation counts per delegator."""
    vals = get_included_vals(data, skip_validators)
    scale = 10.0**trim_decimals

    recipients: Recipients = {}
    for delegation in data["app_state"]["staking"]["delegations"]:
        rate = vals.get(delegation["validator_address"])
        if rate is None:
            continue
        shares = float(delegation["shares"])
        tokens = _as_u64(shares * rate / scale)
        key = decode_address(delegation["delegator_address"])
        staked, count = recipients.get(key, (0, 0))
        recipients[key] = (staked + tokens, count + 1)
    return recipients


def to_rows(networks: list[Network], min_balance: int) -> list[list[str]]:
    """Combine networks into sorted CSV rows, header first."""
    headers = ["address"] + [
        column
        for chain_id, _ in networks
        for column in (f"{chain_id}_staked", f"{chain_id}_count")
    ]

    combined: dict[str, tuple[list[int], list[str]]] = {}
    for i, (_, recipients) in enumerate(networks):
        width = (i + 1) * 2
        for address, (staked, count) in recipients.items():
            balance, fields = combined.setdefault(
                encode_address(address), ([0], ["0"] * (width - 2))
            )
            balance[0] += staked
            fields.extend([str(staked), str(count)])
        for _, fields in combined.values():
            fields.extend(["0"] * (width - len(fields)))

    rows = [headers] + [
        [address, *fields]
        for address, (balance, fields) in combined.items()
        if balance[0] >= min_balance
    ]
    rows.sort(key=lambda row: row[0])
    return rows


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="create-airdrop-snapshot",
        description="Build an airdrop snapshot CSV from genesis exports.",
    )
    parser.add_argument("input_files", nargs="*")
    parser.add_argument("-s", "--skip-validators", type=int, required=True)
    parser.add_argument("-m", "--min-balance", type=int, required=True)
    parser.add_argument("-t", "--trim-decimals", type=int, action="append", default=[])
    args = parser.parse_args(argv)

    if not args.input_files:
        parser.error("Must specify at least one input file")
    if len(args.trim_decimals) != len(args.input_files):
        parser.error("Must specify one --trim-decimals flag for each input file")

    networks = []
    for path, trim in zip(args.input_files, args.trim_decimals):
        log.debug("processing %s with trim_decimals=%d", path, trim)
        networks.append(process_input(path, args.skip_validators, trim))

    writer = csv.writer(sys.stdout, lineterminator="\n")
    writer.writerows(to_rows(networks, args.min_balance))
    return 0


if __name__ == "__main__":
    sys.exit(main())