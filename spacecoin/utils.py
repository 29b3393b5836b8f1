"""Utility helpers."""
from __future__ import annotations

import json
from typing import Any

from web3 import Web3

ZERO_ADDRESS = "0x" + "00" * 20


def save_json(path, data: Any) -> None:
    with open(path, "w") as f:
        json.dump(data, f, indent=2)


def to_checksum(addr: str) -> str:
    return Web3.to_checksum_address(addr)


def address_for(label: str) -> str:
    """Deterministic checksummed address derived from ``label``."""
    digest = bytes(Web3.keccak(text=label))
    return to_checksum("0x" + digest[-20:].hex())


def to_units(amount) -> int:
    """Whole coins (int, float, str or Decimal) to 18-decimal base units."""
    return int(Web3.to_wei(amount, "ether"))


def from_units(units: int) -> float:
    return float(Web3.from_wei(units, "ether"))


def parse_grid(grid: str) -> list[float]:
    return [float(x) for x in grid.split(",") if x.strip()]
