"""Fungible balance ledgers.

``FungibleLedger`` is plain balance/allowance bookkeeping and is shared by the
sale token and the pool's liquidity shares.  ``SpaceCoinToken`` adds the
optional transfer tax: while enabled, a fixed percentage of every ordinary
transfer is withheld and credited to the treasury, so the recipient receives
less than the nominal amount.
"""
from __future__ import annotations

from typing import Dict, Protocol, Set, runtime_checkable

from .. import config
from ..errors import InsufficientAllowance, InsufficientBalance, InvalidAmount, OnlyTreasury
from ..logging_conf import LOGGER
from .chain import Chain, transactional


@runtime_checkable
class TaxBearingAsset(Protocol):
    """What the sale, pool and router need from the sale token."""

    address: str

    def balance_of(self, addr: str) -> int: ...

    def transfer(self, sender: str, to: str, amount: int) -> bool: ...

    def transfer_from(self, spender: str, owner: str, to: str, amount: int) -> bool: ...

    def approve(self, owner: str, spender: str, amount: int) -> bool: ...

    def allowance(self, owner: str, spender: str) -> int: ...

    def current_tax_percent(self) -> int: ...


class FungibleLedger:
    decimals = 18

    def __init__(self, chain: Chain, name: str, symbol: str, address: str | None = None) -> None:
        self.chain = chain
        self.name = name
        self.symbol = symbol
        self.address = address or chain.new_address(symbol)
        self._balances: Dict[str, int] = {}
        self._allowances: Dict[str, Dict[str, int]] = {}
        self._total_supply = 0
        chain.register(self)

    # views
    def balance_of(self, addr: str) -> int:
        return self._balances.get(addr, 0)

    def total_supply(self) -> int:
        return self._total_supply

    def allowance(self, owner: str, spender: str) -> int:
        return self._allowances.get(owner, {}).get(spender, 0)

    # mutations
    @transactional
    def transfer(self, sender: str, to: str, amount: int) -> bool:
        self._transfer(sender, to, amount)
        return True

    @transactional
    def approve(self, owner: str, spender: str, amount: int) -> bool:
        if amount < 0:
            raise InvalidAmount("negative allowance")
        self._allowances.setdefault(owner, {})[spender] = amount
        return True

    @transactional
    def increase_allowance(self, owner: str, spender: str, added: int) -> bool:
        return self.approve(owner, spender, self.allowance(owner, spender) + added)

    @transactional
    def transfer_from(self, spender: str, owner: str, to: str, amount: int) -> bool:
        current = self.allowance(owner, spender)
        if current < amount:
            raise InsufficientAllowance(f"{spender} may move {current} of {owner}, not {amount}")
        self._allowances.setdefault(owner, {})[spender] = current - amount
        self._transfer(owner, to, amount)
        return True

    def _transfer(self, sender: str, to: str, amount: int) -> None:
        self._move(sender, to, amount)

    def _move(self, sender: str, to: str, amount: int) -> None:
        if amount < 0:
            raise InvalidAmount("negative transfer")
        bal = self.balance_of(sender)
        if bal < amount:
            raise InsufficientBalance(f"{self.symbol}: {sender} has {bal}, needs {amount}")
        self._balances[sender] = bal - amount
        self._balances[to] = self.balance_of(to) + amount

    def _mint(self, to: str, amount: int) -> None:
        self._balances[to] = self.balance_of(to) + amount
        self._total_supply += amount

    def _burn(self, owner: str, amount: int) -> None:
        bal = self.balance_of(owner)
        if bal < amount:
            raise InsufficientBalance(f"{self.symbol}: cannot burn {amount} from {owner}")
        self._balances[owner] = bal - amount
        self._total_supply -= amount

    def snapshot(self) -> dict:
        return {
            "balances": dict(self._balances),
            "allowances": {k: dict(v) for k, v in self._allowances.items()},
            "total_supply": self._total_supply,
        }

    def restore(self, state: dict) -> None:
        self._balances = dict(state["balances"])
        self._allowances = {k: dict(v) for k, v in state["allowances"].items()}
        self._total_supply = state["total_supply"]


class SpaceCoinToken(FungibleLedger):
    """SPC: fixed supply split between the sale and the treasury."""

    def __init__(
        self,
        chain: Chain,
        owner: str,
        treasury: str,
        owner_allocation: int,
        total_supply: int = config.SPC_TOTAL_SUPPLY,
        tax_percent: int = config.SPC_TAX_PERCENT,
    ) -> None:
        super().__init__(chain, "Space Coin", "SPC")
        if owner_allocation > total_supply:
            raise InvalidAmount("owner allocation exceeds supply")
        self.owner = owner
        self.treasury = treasury
        self.tax_percent = tax_percent
        self.tax_enabled = False
        # transfers out of the sale are never taxed
        self._exempt: Set[str] = {owner}
        self._mint(owner, owner_allocation)
        self._mint(treasury, total_supply - owner_allocation)

    def current_tax_percent(self) -> int:
        return self.tax_percent if self.tax_enabled else 0

    @transactional
    def enable_tax(self, sender: str, flag: bool) -> None:
        if sender != self.treasury:
            raise OnlyTreasury(f"{sender} is not the treasury")
        self.tax_enabled = bool(flag)
        LOGGER.info("SPC tax %s (%d%%)", "enabled" if flag else "disabled", self.current_tax_percent())

    def _transfer(self, sender: str, to: str, amount: int) -> None:
        tax = 0
        if sender not in self._exempt:
            tax = amount * self.current_tax_percent() // 100
        if tax:
            self._move(sender, self.treasury, tax)
        self._move(sender, to, amount - tax)

    def snapshot(self) -> dict:
        state = super().snapshot()
        state["tax_enabled"] = self.tax_enabled
        return state

    def restore(self, state: dict) -> None:
        super().restore(state)
        self.tax_enabled = state["tax_enabled"]
