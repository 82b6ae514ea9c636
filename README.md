# nomkit

Tools for working with the data of a Bitcoin-backed Cosmos chain:

- `nomkit.address` – bech32 encoding and decoding (`bech32_encode`,
  `bech32_decode`, `convert_bits`), 20-byte account addresses (`Address`,
  `encode_address`, `decode_address`) and Bitcoin output scripts
  (`bitcoin_script_pubkey`). Bad input raises `AddressError`.
- `nomkit.airdrop` – airdrop accounts (`Airdrop`, `Account`, `Part`):
  loading allocations from snapshot CSV data, claiming, and joining
  accounts. Refused operations raise `AirdropError`.
- `nomkit.snapshot` – builds an airdrop snapshot CSV from exported chain
  genesis JSON files.
- `nomkit.app` – chain rules: the upgrade window (`in_upgrade_window`),
  IBC fees (`ibc_fee`, 0.5% rounded down), the reward timer
  (`RewardTimer`) and withdrawal memos (`NbtcMemo`). Rejected input raises
  `AppError`.
- `nomkit.dest` – deposit destinations (`Dest`, `IbcDest`) with their
  binary and base64 encodings, commitment bytes and recovery-script lookup.
- `nomkit.rest` – a small HTTP gateway in front of a node's Tendermint RPC
  endpoint.

## Installation

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## Building an airdrop snapshot

Give one `--trim-decimals` value per input file, in the same order as the
files:

```
nomkit-snapshot --skip-validators 10 --min-balance 1000 \
    --trim-decimals 12 --trim-decimals 0 evmos.json cosmoshub.json
```

Only bonded, unjailed validators count, less the `--skip-validators`
largest by tokens. The CSV is written to standard output with an `address`
column followed by `<chain_id>_staked` and `<chain_id>_count` columns per
network, sorted by address; addresses whose summed stake is below
`--min-balance` are left out.

## Airdrop accounts

```python
from nomkit.address import Address
from nomkit.airdrop import Airdrop

airdrop = Airdrop()
with open("airdrop2.csv", "rb") as f:
    total = airdrop.init_from_airdrop2_csv(f.read())

address = Address.parse("nomic1...")
account = airdrop.get(address)          # a copy, or None
amount = airdrop.claim_airdrop2(address)
```

`init_from_airdrop2_csv` takes the CSV produced by `nomkit-snapshot`
(optionally followed by `true`/`false` columns) and returns the total
allocated. `init_from_airdrop1_csv` takes rows of address, liquid and
staked amounts. Claiming with nothing to claim, or for an address without
an account, raises `AirdropError`. `join_accounts(signer, dest_addr)` moves
a signer's allocations into another account.

## Deposit destinations

```python
from nomkit.dest import Dest

dest = Dest(address=address)
encoded = dest.to_base64()
assert Dest.from_base64(encoded) == dest
```

A `Dest` holds exactly one of an `Address` or an `IbcDest`.

## REST gateway

```
nomkit-rest --rpc-url http://localhost:26657 --address 127.0.0.1 --port 8000
```

These are the defaults. The gateway forwards transaction broadcasts
(`POST /txs`, `POST /cosmos/tx/v1beta1/txs`) and raw ABCI queries
(`GET /query/<hex>?height=<n>`) to the node's RPC endpoint, and answers a
few fixed endpoints (staking pool, bank supply and total, empty rewards and
unbonding lists, IBC transfer params). Every response carries permissive
CORS headers. The same application can be built in code with
`nomkit.rest.create_app(rpc_url)`.

## What it does not do

- The REST gateway has no routes for balances, accounts, delegations or
  inflation: it cannot read application state, only pass raw queries on.
- There is no node, wallet or transaction-building command; the package
  works on data and rules and does not sign or send transactions itself
  beyond forwarding already-encoded ones.