"""In-process host for the state machine.

``Ledger`` plays the part of the execution environment: it keeps the
current state between calls, commits a transition only when the handler
returns ``Ok``, and keeps a journal of every attempt together with the
payments it owes.

Not thread-safe. Operations must be submitted one at a time.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from .errors import InvariantViolation, LedgerError
from .invariants import check_transition
from .machine import Outcome, apply
from .operations import CallContext, Operation
from .records import Auction, Payment, Token
from .result import Err, Ok
from .state import LedgerState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class JournalEntry:
    """One submitted operation and what became of it."""

    op: Operation
    ctx: CallContext
    error: LedgerError | None
    payments: tuple[Payment, ...]

    @property
    def committed(self) -> bool:
        return self.error is None


class Ledger:
    """Holds the current ``LedgerState`` and applies operations to it.

    Example:
        ledger = Ledger.genesis("minter")
        ledger.submit(Mint(TokenId(1), Address("alice"), ...), CallContext(...))
        ledger.get_token(1).owner  # "alice"

    With ``verify=True`` every committed transition is checked with
    ``check_transition`` and a failure raises ``InvariantViolation``.
    """

    def __init__(self, state: LedgerState, *, verify: bool = False) -> None:
        self._state = state
        self._verify = verify
        self._journal: list[JournalEntry] = []

    @classmethod
    def genesis(cls, minter: str, *, verify: bool = False) -> Ledger:
        return cls(LedgerState.genesis(minter), verify=verify)

    @property
    def state(self) -> LedgerState:
        return self._state

    @property
    def journal(self) -> tuple[JournalEntry, ...]:
        return tuple(self._journal)

    @property
    def payments(self) -> tuple[Payment, ...]:
        """Every payment instruction from committed operations, in order."""
        return tuple(p for e in self._journal for p in e.payments)

    def get_token(self, token_id: int) -> Token | None:
        return self._state.get_token(token_id)

    def get_auction(self, auction_id: int) -> Auction | None:
        return self._state.get_auction(auction_id)

    def submit(self, op: Operation, ctx: CallContext) -> Outcome:
        outcome = apply(op, ctx, self._state)
        match outcome:
            case Ok(transition):
                if self._verify:
                    result = check_transition(self._state, transition.state)
                    if not result.is_consistent:
                        for d in result.errors:
                            logger.warning("[%s] %s: %s", d.check, d.subject, d.message)
                        raise InvariantViolation(
                            f"{type(op).__name__} produced an inconsistent state: "
                            f"{[d.check for d in result.errors]}"
                        )
                self._state = transition.state
                self._journal.append(JournalEntry(op, ctx, None, transition.payments))
            case Err(error):
                self._journal.append(JournalEntry(op, ctx, error, ()))
        return outcome

    def replay(self, steps: Iterable[tuple[CallContext, Operation]]) -> list[Outcome]:
        """Submit each step in order. Rejections do not stop the replay."""
        return [self.submit(op, ctx) for ctx, op in steps]
