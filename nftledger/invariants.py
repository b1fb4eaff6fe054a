"""Consistency checks over ledger states.

``check_state`` inspects a single snapshot; ``check_transition`` also
compares it with the snapshot it was derived from. Both collect
diagnostics instead of stopping at the first problem.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from .records import MAX_ROYALTIES
from .state import LedgerState


class Severity(Enum):
    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class Diagnostic:
    check: str
    severity: Severity
    subject: str | None
    message: str


@dataclass(frozen=True)
class CheckResult:
    diagnostics: tuple[Diagnostic, ...]

    @property
    def errors(self) -> tuple[Diagnostic, ...]:
        return tuple(d for d in self.diagnostics if d.severity == Severity.ERROR)

    @property
    def warnings(self) -> tuple[Diagnostic, ...]:
        return tuple(d for d in self.diagnostics if d.severity == Severity.WARNING)

    @property
    def is_consistent(self) -> bool:
        return len(self.errors) == 0


@dataclass
class CheckContext:
    subject: str | None = None
    diagnostics: list[Diagnostic] = field(default_factory=list)

    def error(self, check: str, message: str) -> None:
        self.diagnostics.append(Diagnostic(check, Severity.ERROR, self.subject, message))

    def warning(self, check: str, message: str) -> None:
        self.diagnostics.append(
            Diagnostic(check, Severity.WARNING, self.subject, message)
        )


# ---------------------------------------------------------------------------
# Single-state checks
# ---------------------------------------------------------------------------


def _check_tokens(state: LedgerState, ctx: CheckContext) -> None:
    for key, token in state.tokens.items():
        ctx.subject = f"token {key}"
        if token.token_id != key:
            ctx.error("token_key", f"Stored under {key} but has id {token.token_id}")
        if token.token_id < 0:
            ctx.error("token_id_range", f"Token id {token.token_id} is negative")
        if not 0 <= token.royalties <= MAX_ROYALTIES:
            ctx.error("royalty_range", f"Royalties {token.royalties} out of range")
        for k, v in token.metadata.items():
            if not isinstance(k, str) or not isinstance(v, str):
                ctx.error("metadata_strings", f"Metadata entry {k!r}: {v!r} is not str → str")


def _check_auctions(state: LedgerState, ctx: CheckContext, now: int | None) -> None:
    for key, auction in state.auctions.items():
        ctx.subject = f"auction {key}"
        if auction.token_id != key:
            ctx.error(
                "auction_key",
                f"Stored under {key} but references token {auction.token_id}",
            )
        if auction.token_id not in state.tokens:
            ctx.error("auction_token_exists", f"Token {auction.token_id} does not exist")
        bid = auction.highest_bid
        if bid is not None:
            if bid.amount <= 0:
                ctx.error("bid_positive", f"Leading bid {bid.amount} is not positive")
            if bid.amount < auction.start_price:
                ctx.error(
                    "bid_floor",
                    f"Leading bid {bid.amount} below start price {auction.start_price}",
                )
        if now is not None and not auction.is_open(now):
            ctx.warning("awaiting_settlement", f"Ended at {auction.end_time}, not settled")


def check_state(state: LedgerState, *, now: int | None = None) -> CheckResult:
    """Check one snapshot.

    With ``now`` given, auctions past their deadline are reported as
    warnings; they are legal but waiting on the seller.
    """
    ctx = CheckContext()
    _check_tokens(state, ctx)
    _check_auctions(state, ctx, now)
    return CheckResult(tuple(ctx.diagnostics))


# ---------------------------------------------------------------------------
# Transition checks
# ---------------------------------------------------------------------------


def check_transition(before: LedgerState, after: LedgerState) -> CheckResult:
    """Check ``after`` on its own and against the state it came from."""
    ctx = CheckContext()
    _check_tokens(after, ctx)
    _check_auctions(after, ctx, None)

    ctx.subject = None
    if after.minter != before.minter:
        ctx.error("minter_fixed", f"Minter changed from {before.minter!r} to {after.minter!r}")

    for key, old in before.tokens.items():
        ctx.subject = f"token {key}"
        new = after.tokens.get(key)
        if new is None:
            ctx.error("token_retained", "Token disappeared")
            continue
        if (new.artist, new.image_url, new.royalties) != (
            old.artist, old.image_url, old.royalties,
        ):
            ctx.error("token_immutable", "Artist, image or royalties changed")
        if dict(new.metadata) != dict(old.metadata):
            ctx.error("token_immutable", "Metadata changed")
        if new.owner != old.owner and key in before.auctions and key in after.auctions:
            ctx.error("owner_locked", "Owner changed while the auction stayed live")

    for key, old_auction in before.auctions.items():
        ctx.subject = f"auction {key}"
        new_auction = after.auctions.get(key)
        if new_auction is None:
            continue
        if new_auction.end_time != old_auction.end_time:
            ctx.error("deadline_fixed", "End time changed")
        if new_auction.start_price != old_auction.start_price:
            ctx.error("start_price_fixed", "Start price changed")
        if new_auction.leading_amount < old_auction.leading_amount:
            ctx.error(
                "bid_monotonic",
                f"Leading bid fell from {old_auction.leading_amount} "
                f"to {new_auction.leading_amount}",
            )
        if old_auction.highest_bid is not None and new_auction.highest_bid is None:
            ctx.error("bid_monotonic", "Leading bid was cleared")

    return CheckResult(tuple(ctx.diagnostics))
