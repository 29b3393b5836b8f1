"""Failure types raised by the sale, token, pool and router.

Every error carries a stable ``code`` so callers and logs can match on it
without depending on the message text.  The intermediate classes group
errors by category; catch those to handle a whole family at once.
"""
from __future__ import annotations


class SpaceCoinError(Exception):
    code = "SPACECOIN_ERROR"

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.code)


# categories
class AuthorizationError(SpaceCoinError):
    code = "UNAUTHORIZED"


class PhaseError(SpaceCoinError):
    code = "PHASE"


class CapError(SpaceCoinError):
    code = "CAP"


class InvariantError(SpaceCoinError):
    code = "INVARIANT"


class LiquidityError(SpaceCoinError):
    code = "LIQUIDITY"


class SlippageError(SpaceCoinError):
    code = "SLIPPAGE"


class ReentrancyError(SpaceCoinError):
    code = "REENTRANCY"


class LedgerError(SpaceCoinError):
    code = "LEDGER"


# authorization
class NotOwner(AuthorizationError):
    code = "NOT_OWNER"


class NotTreasury(AuthorizationError):
    code = "NOT_TREASURY"


class OnlyTreasury(AuthorizationError):
    code = "ONLY_TREASURY"


# phase gating
class Paused(PhaseError):
    code = "PAUSED"


class NotWhitelisted(PhaseError):
    code = "NOT_WHITELISTED"


class InvalidPhase(PhaseError):
    code = "INVALID_PHASE"


class NotOpenPhase(PhaseError):
    code = "NOT_OPEN"


# contribution ledger
class InvalidAmount(CapError):
    code = "INVALID_AMOUNT"


class AggregateCapExceeded(CapError):
    code = "TOTAL_CONTRIBUTION_EXCEEDED"


class IndividualCapExceeded(CapError):
    code = "INDIVIDUAL_CONTRIBUTION_EXCEEDED"


class NotContributor(LedgerError):
    code = "NOT_CONTRIBUTOR"


class NothingToClaim(LedgerError):
    code = "NOTHING_TO_CLAIM"


# balances
class InsufficientBalance(LedgerError):
    code = "INSUFFICIENT_BALANCE"


class InsufficientAllowance(LedgerError):
    code = "INSUFFICIENT_ALLOWANCE"


# pool
class InsufficientLiquidity(LiquidityError):
    code = "INSUFFICIENT_LIQUIDITY"


class InvalidOutput(LiquidityError):
    code = "INVALID_OUTPUT"


class InsufficientReserve(LiquidityError):
    code = "INSUFFICIENT_RESERVE"


class InvariantViolation(InvariantError):
    code = "INVARIANT_VIOLATION"


class UnmetMinimum(SlippageError):
    code = "UNMET_MIN"


class UnmetMinimumReturn(SlippageError):
    code = "UNMET_MIN_RETURN"


class Reentrancy(ReentrancyError):
    code = "REENTRANCY"
