"""
Value custody for staked rounds.

The engine only needs three primitives: take a stake into escrow when a
player joins, pay out of escrow when a round settles, and pull a payout back
if a later transfer in the same settlement fails. ``InMemoryLedger`` is the
implementation used by tests and by applications without an external ledger.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Protocol

from game_errors import InsufficientFunds

logger = logging.getLogger(__name__)

# Called with (account, amount) when a payment arrives. Returning False refuses it.
ReceiveHook = Callable[[str, int], bool]


class Custody(Protocol):
    @property
    def held(self) -> int: ...

    def receive(self, account: str, amount: int) -> None: ...

    def transfer(self, account: str, amount: int) -> bool: ...

    def reclaim(self, account: str, amount: int) -> None: ...


@dataclass
class InMemoryLedger:
    balances: dict[str, int] = field(default_factory=dict)
    _held: int = 0
    _hooks: dict[str, ReceiveHook] = field(default_factory=dict)

    @property
    def held(self) -> int:
        return self._held

    def balance_of(self, account: str) -> int:
        return self.balances.get(account, 0)

    def on_receive(self, account: str, hook: ReceiveHook) -> None:
        self._hooks[account] = hook

    def receive(self, account: str, amount: int) -> None:
        if amount < 0:
            raise ValueError("amount must be >= 0")
        balance = self.balance_of(account)
        if balance < amount:
            raise InsufficientFunds(f"{account} holds {balance}, cannot stake {amount}")
        self.balances[account] = balance - amount
        self._held += amount

    def transfer(self, account: str, amount: int) -> bool:
        if amount > self._held:
            logger.warning("Refusing transfer of %d to %s: only %d held", amount, account, self._held)
            return False
        hook = self._hooks.get(account)
        # Credit first so the recipient's hook observes its new balance.
        self._held -= amount
        self.balances[account] = self.balance_of(account) + amount
        try:
            accepted = hook(account, amount) if hook is not None else True
        except Exception:
            self.reclaim(account, amount)
            raise
        if not accepted:
            self.reclaim(account, amount)
            logger.info("%s refused payment of %d", account, amount)
            return False
        return True

    def reclaim(self, account: str, amount: int) -> None:
        self.balances[account] = self.balance_of(account) - amount
        self._held += amount
