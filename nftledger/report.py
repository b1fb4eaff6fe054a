"""Terminal and JSON reporting for ledger states and operation outcomes."""

from __future__ import annotations

from typing import Any

from .errors import LedgerError
from .machine import Outcome
from .operations import Operation
from .records import Payment
from .render import render
from .result import Err, Ok
from .serialization import auction_to_json, token_to_json
from .state import LedgerState


def format_state(state: LedgerState, *, now: int | None = None) -> str:
    """Human-readable summary for terminal output."""
    tokens = [
        {
            "token_id": t.token_id,
            "owner": t.owner,
            "artist": t.artist,
            "royalties": t.royalties,
            "note": " (in auction)" if state.has_live_auction(t.token_id) else "",
        }
        for _, t in sorted(state.tokens.items())
    ]
    auctions = []
    for _, a in sorted(state.auctions.items()):
        note = ""
        if now is not None and not a.is_open(now):
            note = " (awaiting settlement)"
        auctions.append(
            {
                "token_id": a.token_id,
                "start_price": a.start_price,
                "end_time": a.end_time,
                "leader": a.highest_bid.bidder if a.highest_bid else "-",
                "amount": a.leading_amount,
                "note": note,
            }
        )
    return render("state.md.j2", minter=state.minter, tokens=tokens, auctions=auctions)


def report_json(state: LedgerState) -> dict[str, Any]:
    """Machine-readable summary for pipeline integration."""
    return {
        "minter": state.minter,
        "token_count": len(state.tokens),
        "auction_count": len(state.auctions),
        "tokens": [token_to_json(t) for _, t in sorted(state.tokens.items())],
        "auctions": [auction_to_json(a) for _, a in sorted(state.auctions.items())],
    }


def format_payment(p: Payment) -> str:
    return f"pay {p.amount} to {p.recipient}"


def format_error(error: LedgerError) -> str:
    return f"[{error.kind.value}] {error.message}"


def format_outcome(op: Operation, outcome: Outcome) -> str:
    """One line per outcome, plus an indented line per payment."""
    name = type(op).__name__
    match outcome:
        case Ok(transition):
            lines = [f"✓ {name}"]
            lines.extend(f"    {format_payment(p)}" for p in transition.payments)
            return "\n".join(lines)
        case Err(error):
            return f"× {name} {format_error(error)}"
    raise TypeError(f"Unknown outcome type: {type(outcome)}")
