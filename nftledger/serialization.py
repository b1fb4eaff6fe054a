"""JSON serialization for ledger records, states and operations.

Every type serializes to a dict with a "type" discriminator field.
Round-trip: from_json(to_json(x)) == x for all x.

Registry keys are written as lists rather than JSON objects so integer ids
survive the trip without string coercion.
"""

from __future__ import annotations

import json
from pathlib import Path
from types import MappingProxyType
from typing import Any

from .operations import (
    CallContext,
    EndAuction,
    Mint,
    Operation,
    PlaceBid,
    StartAuction,
    Transfer,
)
from .records import (
    Address,
    Auction,
    Bid,
    Payment,
    Token,
    TokenId,
)
from .state import LedgerState


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


def token_to_json(t: Token) -> dict[str, Any]:
    return {
        "type": "token",
        "token_id": t.token_id,
        "owner": t.owner,
        "artist": t.artist,
        "image_url": t.image_url,
        "metadata": dict(t.metadata),
        "royalties": t.royalties,
    }


def token_from_json(d: dict[str, Any]) -> Token:
    return Token(
        token_id=TokenId(int(d["token_id"])),
        owner=Address(d["owner"]),
        artist=Address(d["artist"]),
        image_url=d["image_url"],
        metadata=MappingProxyType(dict(d.get("metadata", {}))),
        royalties=int(d["royalties"]),
    )


def bid_to_json(b: Bid | None) -> dict[str, Any] | None:
    if b is None:
        return None
    return {"type": "bid", "bidder": b.bidder, "amount": b.amount}


def bid_from_json(d: dict[str, Any] | None) -> Bid | None:
    if d is None:
        return None
    return Bid(bidder=Address(d["bidder"]), amount=int(d["amount"]))


def auction_to_json(a: Auction) -> dict[str, Any]:
    return {
        "type": "auction",
        "token_id": a.token_id,
        "start_price": a.start_price,
        "end_time": a.end_time,
        "highest_bid": bid_to_json(a.highest_bid),
    }


def auction_from_json(d: dict[str, Any]) -> Auction:
    return Auction(
        token_id=TokenId(int(d["token_id"])),
        start_price=int(d["start_price"]),
        end_time=int(d["end_time"]),
        highest_bid=bid_from_json(d.get("highest_bid")),
    )


def payment_to_json(p: Payment) -> dict[str, Any]:
    return {
        "type": "payment",
        "amount": p.amount,
        "recipient": p.recipient,
    }


def payment_from_json(d: dict[str, Any]) -> Payment:
    return Payment(
        amount=int(d["amount"]),
        recipient=Address(d["recipient"]),
    )


# ---------------------------------------------------------------------------
# State
# ---------------------------------------------------------------------------


def state_to_json(s: LedgerState) -> dict[str, Any]:
    return {
        "type": "ledger_state",
        "minter": s.minter,
        "tokens": [token_to_json(t) for _, t in sorted(s.tokens.items())],
        "auctions": [auction_to_json(a) for _, a in sorted(s.auctions.items())],
    }


def state_from_json(d: dict[str, Any]) -> LedgerState:
    if d.get("type") != "ledger_state":
        raise ValueError(f"Expected ledger_state, got {d.get('type')!r}")
    tokens = {}
    for item in d["tokens"]:
        token = token_from_json(item)
        if token.token_id in tokens:
            raise ValueError(f"Duplicate token id {token.token_id}")
        tokens[token.token_id] = token
    auctions = {}
    for item in d["auctions"]:
        auction = auction_from_json(item)
        if auction.token_id in auctions:
            raise ValueError(f"Duplicate auction id {auction.token_id}")
        auctions[auction.token_id] = auction
    return LedgerState(
        minter=Address(d["minter"]),
        tokens=MappingProxyType(tokens),
        auctions=MappingProxyType(auctions),
    )


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------


def op_to_json(op: Operation) -> dict[str, Any]:
    if isinstance(op, Mint):
        return {
            "type": "mint",
            "token_id": op.token_id,
            "owner": op.owner,
            "artist": op.artist,
            "image_url": op.image_url,
            "royalties": op.royalties,
            "metadata": dict(op.metadata),
        }
    elif isinstance(op, Transfer):
        return {"type": "transfer", "token_id": op.token_id, "to": op.to}
    elif isinstance(op, StartAuction):
        return {
            "type": "start_auction",
            "token_id": op.token_id,
            "start_price": op.start_price,
            "end_time": op.end_time,
        }
    elif isinstance(op, PlaceBid):
        return {"type": "bid", "auction_id": op.auction_id, "amount": op.amount}
    elif isinstance(op, EndAuction):
        return {"type": "end_auction", "auction_id": op.auction_id}
    raise TypeError(f"Unknown operation type: {type(op)}")


def op_from_json(d: dict[str, Any]) -> Operation:
    t = d["type"]
    if t == "mint":
        return Mint(
            token_id=TokenId(int(d["token_id"])),
            owner=Address(d["owner"]),
            artist=Address(d.get("artist", d["owner"])),
            image_url=d.get("image_url", ""),
            royalties=int(d.get("royalties", 0)),
            metadata=dict(d.get("metadata", {})),
        )
    elif t == "transfer":
        return Transfer(token_id=TokenId(int(d["token_id"])), to=Address(d["to"]))
    elif t == "start_auction":
        return StartAuction(
            token_id=TokenId(int(d["token_id"])),
            start_price=int(d.get("start_price", 0)),
            end_time=int(d["end_time"]),
        )
    elif t == "bid":
        return PlaceBid(auction_id=TokenId(int(d["auction_id"])), amount=int(d["amount"]))
    elif t == "end_auction":
        return EndAuction(auction_id=TokenId(int(d["auction_id"])))
    raise ValueError(f"Unknown operation type: {t}")


def step_from_json(d: dict[str, Any]) -> tuple[CallContext, Operation]:
    """Decode one scenario step: ``{"caller": ..., "now": ..., "op": {...}}``."""
    ctx = CallContext(caller=Address(d["caller"]), now=int(d["now"]))
    return ctx, op_from_json(d["op"])


def step_to_json(ctx: CallContext, op: Operation) -> dict[str, Any]:
    return {"caller": ctx.caller, "now": ctx.now, "op": op_to_json(op)}


# ---------------------------------------------------------------------------
# Convenience: dump / load whole states and scenario files
# ---------------------------------------------------------------------------


def dumps(s: LedgerState) -> str:
    return json.dumps(state_to_json(s), indent=2)


def loads(text: str) -> LedgerState:
    return state_from_json(json.loads(text))


def load_scenario(path: str | Path) -> tuple[LedgerState, list[tuple[CallContext, Operation]]]:
    """Read a scenario file: a genesis minter plus a list of steps."""
    d = json.loads(Path(path).read_text())
    genesis = LedgerState.genesis(d["minter"])
    steps = [step_from_json(s) for s in d["steps"]]
    return genesis, steps
