"""Ordered sale phases."""
from __future__ import annotations

from enum import IntEnum


class Phase(IntEnum):
    SEED = 0
    GENERAL = 1
    OPEN = 2

    @property
    def is_terminal(self) -> bool:
        return self is Phase.OPEN
