"""Configuration for the sale, token and pool."""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Dict, Optional

from dotenv import load_dotenv
from web3 import Web3

from .sale.phase import Phase

load_dotenv()


def _units(name: str, default: str) -> int:
    return int(Web3.to_wei(os.getenv(name, default), "ether"))


# sale
SPC_RATE = int(os.getenv("SPC_RATE", "5"))
MAX_LIFETIME_CONTRIBUTION = _units("SPC_MAX_LIFETIME_CONTRIBUTION", "100000")

# token
SPC_TOTAL_SUPPLY = _units("SPC_TOTAL_SUPPLY", "500000")
SPC_TAX_PERCENT = int(os.getenv("SPC_TAX_PERCENT", "2"))

# pool
POOL_FEE_PERCENT = int(os.getenv("POOL_FEE_PERCENT", "1"))
MIN_LIQUIDITY = int(os.getenv("POOL_MIN_LIQUIDITY", "1000"))


@dataclass(frozen=True)
class PhaseCaps:
    total: int
    individual: int


PHASE_CAPS: Dict[Phase, PhaseCaps] = {
    Phase.SEED: PhaseCaps(
        total=_units("SPC_SEED_TOTAL_CAP", "15000"),
        individual=_units("SPC_SEED_INDIVIDUAL_CAP", "1500"),
    ),
    Phase.GENERAL: PhaseCaps(
        total=_units("SPC_GENERAL_TOTAL_CAP", "30000"),
        individual=_units("SPC_GENERAL_INDIVIDUAL_CAP", "1000"),
    ),
}
# OPEN has no individual limit of its own: both caps share one ceiling.
_OPEN_TOTAL = _units("SPC_OPEN_TOTAL_CAP", "30000")
PHASE_CAPS[Phase.OPEN] = PhaseCaps(total=_OPEN_TOTAL, individual=_OPEN_TOTAL)


@dataclass
class SaleConfig:
    rate: int = SPC_RATE
    caps: Optional[Dict[Phase, PhaseCaps]] = None
    lifetime_ceiling: int = MAX_LIFETIME_CONTRIBUTION

    def __post_init__(self) -> None:
        if self.caps is None:
            self.caps = dict(PHASE_CAPS)

    def caps_for(self, phase: Phase) -> PhaseCaps:
        return self.caps[phase]
