"""SPC/ETH constant product pool.

The pool never trusts amounts declared by a caller.  Each entry point expects
the caller to have moved funds into the pool's custody already and measures
what actually arrived as ``observed balance - cached reserve``.  With SPC
levying a transfer tax, that is the only way to know the real input.

Every mutating entry point shares one lock; re-entering any of them while
another is running (e.g. from a native-currency receive hook) fails with
:class:`~spacecoin.errors.Reentrancy`.
"""
from __future__ import annotations

import functools
import math
from typing import Callable

from .. import config
from ..errors import (
    InsufficientLiquidity,
    InsufficientReserve,
    InvalidOutput,
    InvariantViolation,
    Reentrancy,
    UnmetMinimum,
)
from ..ledger.chain import Chain, transactional
from ..ledger.token import FungibleLedger, TaxBearingAsset
from ..logging_conf import LOGGER
from ..utils import ZERO_ADDRESS
from .v2_math import k_holds


def nonreentrant(fn: Callable) -> Callable:
    @functools.wraps(fn)
    def wrapper(self, *args, **kwargs):
        if self._locked:
            raise Reentrancy(f"{fn.__name__} re-entered")
        self._locked = True
        try:
            return fn(self, *args, **kwargs)
        finally:
            self._locked = False

    return wrapper


class SpaceCoinPool(FungibleLedger):
    """Liquidity pool that is also the ledger of its own liquidity shares."""

    def __init__(
        self,
        chain: Chain,
        token: TaxBearingAsset,
        fee_percent: int = config.POOL_FEE_PERCENT,
        min_liquidity: int = config.MIN_LIQUIDITY,
    ) -> None:
        super().__init__(chain, "SpaceCoin Pool Share", "SPC-LP")
        self.token = token
        self.fee_percent = fee_percent
        self.min_liquidity = min_liquidity
        self.spc_reserve = 0
        self.eth_reserve = 0
        self._locked = False

    def get_reserves(self) -> tuple[int, int]:
        return self.spc_reserve, self.eth_reserve

    def _balances_held(self) -> tuple[int, int]:
        return self.token.balance_of(self.address), self.chain.native.balance_of(self.address)

    def _update(self, spc_balance: int, eth_balance: int) -> None:
        self.spc_reserve = spc_balance
        self.eth_reserve = eth_balance
        self.chain.emit(self.address, "Reserves", spc=spc_balance, eth=eth_balance)

    @transactional
    @nonreentrant
    def deposit(self, sender: str, to: str) -> int:
        """Mint shares for whatever SPC and ETH arrived since the last update."""
        spc_balance, eth_balance = self._balances_held()
        spc_added = spc_balance - self.spc_reserve
        eth_added = eth_balance - self.eth_reserve
        supply = self.total_supply()

        if supply == 0:
            shares = math.isqrt(spc_added * eth_added) - self.min_liquidity
            if shares <= 0:
                raise InsufficientLiquidity(f"initial deposit mints {shares} shares")
            self._mint(ZERO_ADDRESS, self.min_liquidity)
        else:
            shares = min(
                spc_added * supply // self.spc_reserve,
                eth_added * supply // self.eth_reserve,
            )
            if shares <= 0:
                raise InsufficientLiquidity(f"deposit mints {shares} shares")

        self._mint(to, shares)
        self._update(spc_balance, eth_balance)
        self.chain.emit(self.address, "LiquidityAdded", party=to, spc=spc_added, eth=eth_added)
        return shares

    @transactional
    @nonreentrant
    def withdraw(self, sender: str, to: str, min_spc: int = 0, min_eth: int = 0) -> tuple[int, int]:
        """Burn the shares held by the pool and pay out their slice of both assets."""
        spc_balance, eth_balance = self._balances_held()
        shares = self.balance_of(self.address)
        supply = self.total_supply()
        if supply == 0:
            raise InsufficientLiquidity("pool is empty")

        spc_out = shares * spc_balance // supply
        eth_out = shares * eth_balance // supply
        if spc_out == 0 or eth_out == 0:
            raise InsufficientLiquidity(f"burning {shares} shares returns nothing")
        if spc_out < min_spc or eth_out < min_eth:
            raise UnmetMinimum(f"returns ({spc_out}, {eth_out}) below ({min_spc}, {min_eth})")

        self._burn(self.address, shares)
        self.token.transfer(self.address, to, spc_out)
        self.chain.native.transfer(self.address, to, eth_out)
        self._update(*self._balances_held())
        self.chain.emit(self.address, "LiquidityRemoved", party=to, spc=spc_out, eth=eth_out)
        return spc_out, eth_out

    @transactional
    @nonreentrant
    def swap_for_spc(self, sender: str, spc_out: int, to: str) -> int:
        """Pay ``spc_out`` SPC for ETH already sent to the pool."""
        if spc_out <= 0:
            raise InvalidOutput("spc_out must be positive")
        if spc_out >= self.spc_reserve:
            raise InsufficientReserve(f"spc_out {spc_out} >= reserve {self.spc_reserve}")

        spc_balance, eth_balance = self._balances_held()
        eth_in = eth_balance - self.eth_reserve
        if not k_holds(eth_balance, spc_balance - spc_out, eth_in, self.eth_reserve, self.spc_reserve, self.fee_percent):
            raise InvariantViolation(f"eth_in {eth_in} does not cover spc_out {spc_out}")

        self.token.transfer(self.address, to, spc_out)
        self._update(*self._balances_held())
        LOGGER.debug("swap %d ETH -> %d SPC for %s", eth_in, spc_out, to)
        return eth_in

    @transactional
    @nonreentrant
    def swap_for_eth(self, sender: str, eth_out: int, to: str) -> int:
        """Pay ``eth_out`` ETH for SPC already sent to the pool."""
        if eth_out <= 0:
            raise InvalidOutput("eth_out must be positive")
        if eth_out >= self.eth_reserve:
            raise InsufficientReserve(f"eth_out {eth_out} >= reserve {self.eth_reserve}")

        spc_balance, eth_balance = self._balances_held()
        spc_in = spc_balance - self.spc_reserve
        if not k_holds(spc_balance, eth_balance - eth_out, spc_in, self.spc_reserve, self.eth_reserve, self.fee_percent):
            raise InvariantViolation(f"spc_in {spc_in} does not cover eth_out {eth_out}")

        # reserves are final before the native leg can run foreign code
        self._update(spc_balance, eth_balance - eth_out)
        self.chain.native.transfer(self.address, to, eth_out)
        LOGGER.debug("swap %d SPC -> %d ETH for %s", spc_in, eth_out, to)
        return spc_in

    @transactional
    @nonreentrant
    def sync(self, sender: str | None = None) -> None:
        """Adopt observed balances as reserves, e.g. after a stray direct transfer."""
        self._update(*self._balances_held())

    def snapshot(self) -> dict:
        state = super().snapshot()
        state["reserves"] = (self.spc_reserve, self.eth_reserve)
        return state

    def restore(self, state: dict) -> None:
        super().restore(state)
        self.spc_reserve, self.eth_reserve = state["reserves"]
