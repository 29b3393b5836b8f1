"""In-process host for the sale, token and pool.

The chain owns the native-currency ledger and the notification log, and
gives each state-mutating operation all-or-nothing semantics: the operation
snapshots every registered component and restores the lot if an exception
escapes.  Calls are strictly sequential; the only interleaving comes from
receive hooks that run while a native transfer is in flight.
"""
from __future__ import annotations

import functools
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Protocol

from ..errors import SpaceCoinError
from ..logging_conf import LOGGER
from ..utils import address_for
from .native import NativeLedger


class Stateful(Protocol):
    address: str

    def snapshot(self) -> Any: ...

    def restore(self, state: Any) -> None: ...


@dataclass(frozen=True)
class Event:
    """Notification emitted by a component for external observers."""

    source: str
    name: str
    args: Dict[str, Any] = field(default_factory=dict)


class Chain:
    def __init__(self) -> None:
        self.native = NativeLedger()
        self.events: List[Event] = []
        self._components: List[Stateful] = [self.native]
        self._nonce = 0

    def new_address(self, label: str) -> str:
        self._nonce += 1
        return address_for(f"{label}:{self._nonce}")

    def register(self, component: Stateful) -> None:
        self._components.append(component)

    def send(self, sender: str, to: str, amount: int) -> None:
        """Top-level native transfer; reverted if the recipient's hook fails."""
        with self.atomic():
            self.native.transfer(sender, to, amount)

    def emit(self, source: str, name: str, **args: Any) -> Event:
        ev = Event(source, name, args)
        self.events.append(ev)
        LOGGER.info("%s %s", name, " ".join(f"{k}={v}" for k, v in args.items()))
        return ev

    def events_named(self, name: str) -> List[Event]:
        return [e for e in self.events if e.name == name]

    @contextmanager
    def atomic(self) -> Iterator[None]:
        """Savepoint: undo every registered component if the block raises.

        Savepoints nest, so a caller that catches a failed inner call keeps
        its own changes while the inner call leaves no trace.
        """
        saved = [(c, c.snapshot()) for c in self._components]
        n_events = len(self.events)
        try:
            yield
        except BaseException as exc:
            for comp, state in saved:
                comp.restore(state)
            del self.events[n_events:]
            if isinstance(exc, SpaceCoinError):
                LOGGER.debug("reverted: %s", exc.code)
            raise


def transactional(fn: Callable) -> Callable:
    """Run a component method inside ``self.chain.atomic()``."""

    @functools.wraps(fn)
    def wrapper(self, *args, **kwargs):
        with self.chain.atomic():
            return fn(self, *args, **kwargs)

    return wrapper
