"""Native-currency balances with receive hooks."""
from __future__ import annotations

from typing import Callable, Dict

from ..errors import InsufficientBalance, InvalidAmount

ReceiveHook = Callable[[str, int], None]


class NativeLedger:
    address = "native"

    def __init__(self) -> None:
        self._balances: Dict[str, int] = {}
        self._hooks: Dict[str, ReceiveHook] = {}

    def balance_of(self, addr: str) -> int:
        return self._balances.get(addr, 0)

    def mint(self, to: str, amount: int) -> None:
        """Fund ``to`` out of thin air; used to seed test accounts."""
        if amount < 0:
            raise InvalidAmount("negative mint")
        self._balances[to] = self.balance_of(to) + amount

    def on_receive(self, addr: str, hook: ReceiveHook | None) -> None:
        """Install (or clear with ``None``) code that runs when ``addr`` is paid."""
        if hook is None:
            self._hooks.pop(addr, None)
        else:
            self._hooks[addr] = hook

    def transfer(self, sender: str, to: str, amount: int) -> None:
        if amount < 0:
            raise InvalidAmount("negative transfer")
        bal = self.balance_of(sender)
        if bal < amount:
            raise InsufficientBalance(f"{sender} has {bal}, needs {amount}")
        self._balances[sender] = bal - amount
        self._balances[to] = self.balance_of(to) + amount
        hook = self._hooks.get(to)
        if hook is not None:
            hook(sender, amount)

    def snapshot(self) -> Dict[str, int]:
        return dict(self._balances)

    def restore(self, state: Dict[str, int]) -> None:
        self._balances = dict(state)
