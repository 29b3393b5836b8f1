"""End-to-end sale and pool run.

Deploys a fresh chain, walks the sale through SEED, GENERAL and OPEN,
moves the raise into the pool and trades against it with the SPC tax off
and on.  Prints a one-line JSON summary.
"""
from __future__ import annotations

import json

from ..deploy import deploy
from ..logging_conf import LOGGER
from ..sale.phase import Phase
from ..utils import address_for, from_units, to_units


def run(trade: float = 100.0) -> dict:
    admin, treasury = address_for("admin"), address_for("treasury")
    seeds = [address_for(f"seed{i}") for i in range(2)]
    alice, trader = address_for("alice"), address_for("trader")

    d = deploy(admin=admin, treasury=treasury, whitelist=seeds)
    for who in (*seeds, alice, trader):
        d.chain.native.mint(who, to_units(20_000))

    for s in seeds:
        d.sale.purchase(s, to_units(1_500))
    d.sale.advance_phase(admin, Phase.GENERAL)
    d.sale.purchase(alice, to_units(1_000))
    d.sale.advance_phase(admin, Phase.OPEN)
    d.sale.purchase(trader, to_units(trade))
    for who in (*seeds, alice):
        d.sale.claim(who)

    raised = d.sale.available_funds
    d.sale.withdraw(treasury, raised)
    spc_in = raised * d.sale.rate
    d.token.approve(treasury, d.router.address, spc_in)
    shares = d.router.add_liquidity(treasury, spc_in, raised, treasury)

    d.token.approve(trader, d.router.address, to_units(trade) * 2)
    eth_untaxed = d.router.swap_spc_for_eth(trader, to_units(trade), 0, trader)
    d.token.enable_tax(treasury, True)
    eth_taxed = d.router.swap_spc_for_eth(trader, to_units(trade), 0, trader)
    spc_taxed = d.router.swap_eth_for_spc(trader, to_units(trade / 10), 0, trader)

    spc_reserve, eth_reserve = d.pool.get_reserves()
    summary = {
        "raised": from_units(raised),
        "shares": from_units(shares),
        "spc_reserve": from_units(spc_reserve),
        "eth_reserve": from_units(eth_reserve),
        "eth_out_untaxed": from_units(eth_untaxed),
        "eth_out_taxed": from_units(eth_taxed),
        "spc_out_taxed": from_units(spc_taxed),
        "events": len(d.chain.events),
    }
    LOGGER.info("demo finished with %d notifications", summary["events"])
    return summary


def main(trade: float = 100.0) -> dict:
    summary = run(trade)
    print(json.dumps({"spacecoin_summary": summary}, separators=(",", ":")))
    return summary
