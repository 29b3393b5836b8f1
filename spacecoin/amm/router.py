"""Stateless entry point for trading against and providing to the pool.

Every call re-reads the pool reserves and the current SPC tax, quotes with
the same integer math the pool enforces, checks the caller's floor against
the amount the caller will actually end up with, and then does the
"fund the pool, then call the pool" sequence.
"""
from __future__ import annotations

from ..errors import InvalidAmount, UnmetMinimumReturn
from ..ledger.chain import Chain, transactional
from ..ledger.token import TaxBearingAsset
from ..logging_conf import LOGGER
from .pool import SpaceCoinPool
from .v2_math import quote_eth_to_spc, quote_spc_to_eth


class SpaceCoinRouter:
    def __init__(self, chain: Chain, token: TaxBearingAsset, pool: SpaceCoinPool) -> None:
        self.chain = chain
        self.token = token
        self.pool = pool
        self.address = chain.new_address("router")

    # quotes
    def quote_swap_eth_for_spc(self, eth_in: int) -> int:
        """SPC the recipient receives for ``eth_in``, after the transfer tax."""
        spc_reserve, eth_reserve = self.pool.get_reserves()
        return quote_eth_to_spc(eth_in, spc_reserve, eth_reserve, self.token.current_tax_percent())[1]

    def quote_swap_spc_for_eth(self, spc_in: int) -> int:
        """ETH received for sending ``spc_in`` nominal SPC."""
        spc_reserve, eth_reserve = self.pool.get_reserves()
        return quote_spc_to_eth(spc_in, spc_reserve, eth_reserve, self.token.current_tax_percent())

    # swaps
    @transactional
    def swap_eth_for_spc(self, sender: str, eth_in: int, min_spc_out: int, to: str) -> int:
        if eth_in <= 0:
            raise InvalidAmount("eth_in must be positive")
        spc_reserve, eth_reserve = self.pool.get_reserves()
        pre_tax, post_tax = quote_eth_to_spc(eth_in, spc_reserve, eth_reserve, self.token.current_tax_percent())
        if post_tax < min_spc_out:
            raise UnmetMinimumReturn(f"{post_tax} SPC out < min {min_spc_out}")

        self.chain.native.transfer(sender, self.pool.address, eth_in)
        # the pool pays pre_tax; the token's tax takes its cut on the way out
        self.pool.swap_for_spc(self.address, pre_tax, to)
        LOGGER.info("swap %d wei ETH -> %d SPC (pre-tax %d) to %s", eth_in, post_tax, pre_tax, to)
        return post_tax

    @transactional
    def swap_spc_for_eth(self, sender: str, spc_in: int, min_eth_out: int, to: str) -> int:
        if spc_in <= 0:
            raise InvalidAmount("spc_in must be positive")
        eth_out = self.quote_swap_spc_for_eth(spc_in)
        if eth_out < min_eth_out:
            raise UnmetMinimumReturn(f"{eth_out} ETH out < min {min_eth_out}")

        self.token.transfer_from(self.address, sender, self.pool.address, spc_in)
        self.pool.swap_for_eth(self.address, eth_out, to)
        LOGGER.info("swap %d SPC -> %d wei ETH to %s", spc_in, eth_out, to)
        return eth_out

    # liquidity
    @transactional
    def add_liquidity(self, sender: str, spc_amount: int, eth_amount: int, to: str) -> int:
        self.token.transfer_from(self.address, sender, self.pool.address, spc_amount)
        self.chain.native.transfer(sender, self.pool.address, eth_amount)
        return self.pool.deposit(self.address, to)

    @transactional
    def remove_liquidity(self, sender: str, liquidity: int, min_spc: int, min_eth: int, to: str) -> tuple[int, int]:
        self.pool.transfer_from(self.address, sender, self.pool.address, liquidity)
        return self.pool.withdraw(self.address, to, min_spc, min_eth)
