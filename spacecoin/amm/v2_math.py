"""V2 constant product math with a transfer tax.

All amounts are integer base units.  The fee and tax are whole percents, so
every formula is exact integer arithmetic that matches what the pool checks.
"""
from __future__ import annotations

from .. import config


def amount_out(amount_in: int, r_in: int, r_out: int, fee_percent: int = config.POOL_FEE_PERCENT) -> int:
    """Output for ``amount_in`` actually received by a pool holding ``r_in``/``r_out``."""
    if amount_in <= 0 or r_in <= 0 or r_out <= 0:
        return 0
    in_with_fee = amount_in * (100 - fee_percent)
    return (in_with_fee * r_out) // (r_in * 100 + in_with_fee)


def apply_tax(amount: int, tax_percent: int) -> int:
    """Amount left after the token withholds ``tax_percent`` in transit."""
    return amount - amount * tax_percent // 100


def quote_eth_to_spc(eth_in: int, spc_reserve: int, eth_reserve: int, tax_percent: int = 0) -> tuple[int, int]:
    """Return ``(pre_tax, post_tax)`` SPC out for ``eth_in``.

    The pool pays out ``pre_tax``; SPC is taxed leaving the pool, so the
    recipient sees ``post_tax``.
    """
    pre_tax = amount_out(eth_in, eth_reserve, spc_reserve)
    return pre_tax, apply_tax(pre_tax, tax_percent)


def quote_spc_to_eth(spc_in: int, spc_reserve: int, eth_reserve: int, tax_percent: int = 0) -> int:
    """ETH out for ``spc_in`` nominal SPC; tax is withheld on the way in."""
    return amount_out(apply_tax(spc_in, tax_percent), spc_reserve, eth_reserve)


def spot_price(r_base: int, r_quote: int) -> float:
    """Mid price of one unit of the base asset, in the quote asset."""
    return r_quote / r_base if r_base > 0 else 0.0


def k_holds(
    bal_in: int,
    bal_out_after: int,
    amount_in: int,
    r_in: int,
    r_out: int,
    fee_percent: int = config.POOL_FEE_PERCENT,
) -> bool:
    """Constant product check net of fee, scaled by 100."""
    adjusted_in = bal_in * 100 - amount_in * fee_percent
    return bal_out_after * adjusted_in >= r_out * r_in * 100
