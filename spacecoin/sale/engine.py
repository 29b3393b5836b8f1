"""Phased SPC sale.

Contributions are accepted in SEED (whitelist only), GENERAL and OPEN, each
phase raising the cumulative caps.  Tokens bought before OPEN are held back
and released by :meth:`SpaceCoinSale.claim`; tokens bought during OPEN are
sent immediately.  Either way each contributed unit is released once.

Ledger state is always final before any value leaves the sale, so a
receive hook that calls back in sees consistent totals.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable

from ..config import SaleConfig
from ..errors import (
    AggregateCapExceeded,
    IndividualCapExceeded,
    InvalidAmount,
    InvalidPhase,
    NotContributor,
    NothingToClaim,
    NotOpenPhase,
    NotOwner,
    NotTreasury,
    NotWhitelisted,
    Paused,
)
from ..ledger.chain import Chain, transactional
from ..ledger.token import SpaceCoinToken
from ..logging_conf import LOGGER
from .phase import Phase

# Width of the contribution and claim accumulators.
ACCUMULATOR_BITS = 96
MAX_ACCUMULATOR = 2**ACCUMULATOR_BITS - 1


@dataclass
class ContributionRecord:
    registered: bool = False
    total_contributed: int = 0
    total_claimed: int = 0


def _fits(current: int, amount: int, ceiling: int) -> bool:
    """True when ``current + amount`` stays within ``ceiling`` and the accumulator."""
    if amount > MAX_ACCUMULATOR or current > MAX_ACCUMULATOR - amount:
        return False
    return current + amount <= ceiling


class SpaceCoinSale:
    def __init__(
        self,
        chain: Chain,
        admin: str,
        treasury: str,
        whitelist: Iterable[str] = (),
        config: SaleConfig | None = None,
    ) -> None:
        self.chain = chain
        self.admin = admin
        self.treasury = treasury
        self.config = config or SaleConfig()
        self._validate_config()
        self.address = chain.new_address("sale")

        self.phase = Phase.SEED
        caps = self.config.caps_for(Phase.SEED)
        self.phase_total_cap = caps.total
        self.phase_individual_cap = caps.individual
        self.total_contributions = 0
        self.available_funds = 0
        self.paused = False
        self._records: Dict[str, ContributionRecord] = {}

        # the sale holds exactly what the largest possible raise buys
        top = self.config.caps_for(Phase.OPEN).total
        self.token = SpaceCoinToken(chain, owner=self.address, treasury=treasury, owner_allocation=top * self.rate)
        for addr in whitelist:
            self._register(addr)
        chain.register(self)

    @property
    def rate(self) -> int:
        return self.config.rate

    def _validate_config(self) -> None:
        ceiling = self.config.lifetime_ceiling
        if ceiling * self.rate > MAX_ACCUMULATOR:
            raise ValueError(f"lifetime ceiling {ceiling} overflows a {ACCUMULATOR_BITS}-bit accumulator")
        last_total = 0
        for phase in Phase:
            caps = self.config.caps_for(phase)
            if caps.total > ceiling or caps.individual > caps.total:
                raise ValueError(f"{phase.name} caps {caps} exceed the lifetime ceiling {ceiling}")
            if caps.total < last_total:
                raise ValueError(f"{phase.name} total cap shrinks from {last_total}")
            last_total = caps.total
        open_caps = self.config.caps_for(Phase.OPEN)
        if open_caps.individual != open_caps.total:
            raise ValueError("OPEN individual cap must equal its total cap")

    # views
    def record(self, addr: str) -> ContributionRecord | None:
        return self._records.get(addr)

    def is_registered(self, addr: str) -> bool:
        rec = self._records.get(addr)
        return bool(rec and rec.registered)

    def tokens_purchased(self, addr: str) -> int:
        rec = self._records.get(addr)
        return rec.total_contributed * self.rate if rec else 0

    def _register(self, addr: str) -> ContributionRecord:
        rec = self._records.get(addr)
        if rec is None:
            rec = self._records[addr] = ContributionRecord()
        rec.registered = True
        return rec

    # contributor operations
    @transactional
    def purchase(self, buyer: str, amount: int) -> int:
        """Contribute ``amount`` of native currency; returns SPC bought."""
        if self.paused:
            raise Paused("purchases are paused")
        if self.phase is Phase.SEED and not self.is_registered(buyer):
            raise NotWhitelisted(f"{buyer} is not on the seed whitelist")
        if amount <= 0:
            raise InvalidAmount("contribution must be positive")
        if not _fits(self.total_contributions, amount, self.phase_total_cap):
            raise AggregateCapExceeded(f"total would exceed {self.phase_total_cap}")
        rec = self._records.get(buyer) or ContributionRecord()
        if not _fits(rec.total_contributed, amount, self.phase_individual_cap):
            raise IndividualCapExceeded(f"{buyer} would exceed {self.phase_individual_cap}")

        self.chain.native.transfer(buyer, self.address, amount)
        rec = self._register(buyer)
        self.total_contributions += amount
        self.available_funds += amount
        rec.total_contributed += amount
        tokens = amount * self.rate

        if self.phase is Phase.OPEN:
            rec.total_claimed += tokens
            self.token.transfer(self.address, buyer, tokens)
        self.chain.emit(self.address, "Purchase", buyer=buyer, amount=amount)
        return tokens

    @transactional
    def claim(self, sender: str) -> int:
        """Release SPC earned by contributions made before OPEN."""
        if self.phase is not Phase.OPEN:
            raise InvalidPhase("tokens are released in OPEN")
        rec = self._records.get(sender)
        if rec is None:
            raise NotContributor(f"{sender} never contributed")
        unclaimed = rec.total_contributed * self.rate - rec.total_claimed
        if unclaimed == 0:
            raise NothingToClaim(f"{sender} has nothing to claim")

        rec.total_claimed += unclaimed
        self.token.transfer(self.address, sender, unclaimed)
        LOGGER.info("claim %s %d SPC", sender, unclaimed)
        return unclaimed

    # administration
    @transactional
    def advance_phase(self, sender: str, target: Phase) -> None:
        if sender != self.admin:
            raise NotOwner(f"{sender} is not the administrator")
        target = Phase(target)
        if self.phase.is_terminal or target <= self.phase:
            raise InvalidPhase(f"cannot move from {self.phase.name} to {target.name}")

        caps = self.config.caps_for(target)
        self.phase = target
        self.phase_total_cap = caps.total
        self.phase_individual_cap = caps.individual
        self.chain.emit(
            self.address,
            "PhaseStarted",
            phase=target.name,
            total_cap=caps.total,
            individual_cap=caps.individual,
        )

    @transactional
    def pause(self, sender: str, flag: bool) -> None:
        if sender != self.admin:
            raise NotOwner(f"{sender} is not the administrator")
        self.paused = bool(flag)
        LOGGER.info("sale %s", "paused" if flag else "resumed")

    @transactional
    def withdraw(self, sender: str, amount: int) -> None:
        """Send ``amount`` of raised native currency to the treasury."""
        if sender != self.treasury:
            raise NotTreasury(f"{sender} is not the treasury")
        if self.phase is not Phase.OPEN:
            raise NotOpenPhase("withdrawals open with the OPEN phase")
        if amount > self.available_funds:
            raise InvalidAmount(f"{amount} exceeds available {self.available_funds}")

        self.available_funds -= amount
        self.chain.emit(self.address, "WithdrawToTreasury", amount=amount)
        self.chain.native.transfer(self.address, self.treasury, amount)

    def snapshot(self) -> dict:
        return {
            "phase": self.phase,
            "caps": (self.phase_total_cap, self.phase_individual_cap),
            "totals": (self.total_contributions, self.available_funds),
            "paused": self.paused,
            "records": {
                k: ContributionRecord(r.registered, r.total_contributed, r.total_claimed)
                for k, r in self._records.items()
            },
        }

    def restore(self, state: dict) -> None:
        self.phase = state["phase"]
        self.phase_total_cap, self.phase_individual_cap = state["caps"]
        self.total_contributions, self.available_funds = state["totals"]
        self.paused = state["paused"]
        self._records = {
            k: ContributionRecord(r.registered, r.total_contributed, r.total_claimed)
            for k, r in state["records"].items()
        }
