"""Addresses, airdrop accounting, snapshots, chain rules, deposit destinations and a REST gateway."""

__version__ = "0.1.0"
__all__ = ["address", "airdrop", "snapshot", "app", "dest", "rest"]