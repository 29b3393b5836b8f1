"""Off-line swap simulation against given reserves."""
from __future__ import annotations

import time
from pathlib import Path
from typing import Dict, List

from ..logging_conf import LOGGER
from ..utils import from_units, parse_grid, save_json, to_units
from ..amm.v2_math import quote_eth_to_spc, quote_spc_to_eth

DIRECTIONS = ("spc-to-eth", "eth-to-spc")


def quote(direction: str, amount_in: int, spc_reserve: int, eth_reserve: int, tax_percent: int) -> int:
    if direction == "spc-to-eth":
        return quote_spc_to_eth(amount_in, spc_reserve, eth_reserve, tax_percent)
    if direction == "eth-to-spc":
        return quote_eth_to_spc(amount_in, spc_reserve, eth_reserve, tax_percent)[1]
    raise ValueError(f"unknown direction {direction}")


def run_grid(
    spc_reserve: float,
    eth_reserve: float,
    tax_percent: int,
    grid: str,
    direction: str = "spc-to-eth",
) -> List[Dict]:
    """Quote every size in ``grid`` with the tax off and on."""
    r_spc, r_eth = to_units(spc_reserve), to_units(eth_reserve)
    rows = []
    for x in parse_grid(grid):
        amount_in = to_units(x)
        untaxed = quote(direction, amount_in, r_spc, r_eth, 0)
        taxed = quote(direction, amount_in, r_spc, r_eth, tax_percent)
        drag = 1 - taxed / untaxed if untaxed else 0.0
        rows.append(
            {
                "amount_in": x,
                "out_untaxed": from_units(untaxed),
                "out_taxed": from_units(taxed),
                "tax_drag": drag,
            }
        )
    return rows


def main(
    spc_reserve: float,
    eth_reserve: float,
    tax_percent: int,
    grid: str,
    direction: str = "spc-to-eth",
) -> List[Dict]:
    rows = run_grid(spc_reserve, eth_reserve, tax_percent, grid, direction)
    out_dir = Path("out")
    out_dir.mkdir(exist_ok=True)
    out_file = out_dir / f"sim_{int(time.time())}.json"
    save_json(out_file, rows)
    for r in rows:
        LOGGER.info(
            "%s %g: %.6f untaxed, %.6f taxed, drag %.2f%%",
            direction, r["amount_in"], r["out_untaxed"], r["out_taxed"], 100 * r["tax_drag"],
        )
    LOGGER.info("wrote %s (%d rows)", out_file, len(rows))
    return rows
