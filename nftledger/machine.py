"""Transition handlers for the token/auction state machine.

Each handler takes an operation, the call context and the current state and
returns either ``Ok(Transition)`` with the new state and any payment
instructions, or ``Err(LedgerError)``. Handlers check every precondition
before building anything, and the input state is never modified, so a
rejection has no effect at all.

Policies the handlers enforce beyond the bare registry rules:

- a token with a live auction cannot be transferred (``TokenInAuction``)
- every bid must be at least the auction's start price
- settling an auction nobody bid on closes it without a sale
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from types import MappingProxyType

from .errors import (
    AlreadyExists,
    AuctionEnded,
    AuctionNotYetEnded,
    BidTooLow,
    InvalidMetadata,
    InvalidRoyalty,
    InvalidTokenId,
    LedgerError,
    NotFound,
    TokenInAuction,
    Unauthorized,
)
from .operations import (
    CallContext,
    EndAuction,
    Mint,
    Operation,
    PlaceBid,
    StartAuction,
    Transfer,
)
from .records import MAX_ROYALTIES, Auction, Bid, Payment, Token
from .result import Err, Ok, Result
from .state import LedgerState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Transition:
    """The committed effect of one operation."""

    state: LedgerState
    payments: tuple[Payment, ...] = ()


type Outcome = Result[Transition, LedgerError]


def _reject(op_name: str, error: LedgerError) -> Err[LedgerError]:
    logger.info("%s rejected [%s]: %s", op_name, error.kind.value, error.message)
    return Err(error)


# ---------------------------------------------------------------------------
# Token registry
# ---------------------------------------------------------------------------


def mint(op: Mint, ctx: CallContext, state: LedgerState) -> Outcome:
    if ctx.caller != state.minter:
        return _reject("mint", Unauthorized(f"'{ctx.caller}' is not the minter"))
    if op.token_id < 0:
        return _reject(
            "mint", InvalidTokenId(f"Token id must be non-negative, got {op.token_id}")
        )
    if state.get_token(op.token_id) is not None:
        return _reject("mint", AlreadyExists(f"Token {op.token_id} already exists"))
    if not 0 <= op.royalties <= MAX_ROYALTIES:
        return _reject(
            "mint",
            InvalidRoyalty(
                f"Royalties must be between 0 and {MAX_ROYALTIES}, got {op.royalties}"
            ),
        )
    bad_keys = [
        k for k, v in op.metadata.items()
        if not isinstance(k, str) or not isinstance(v, str)
    ]
    if bad_keys:
        return _reject(
            "mint",
            InvalidMetadata(f"Metadata must map strings to strings, bad keys: {bad_keys!r}"),
        )

    token = Token(
        token_id=op.token_id,
        owner=op.owner,
        artist=op.artist,
        image_url=op.image_url,
        metadata=MappingProxyType(dict(op.metadata)),
        royalties=op.royalties,
    )
    logger.debug("Minted token %d to %r", token.token_id, token.owner)
    return Ok(Transition(state.with_token(token)))


def transfer(op: Transfer, ctx: CallContext, state: LedgerState) -> Outcome:
    token = state.get_token(op.token_id)
    if token is None:
        return _reject("transfer", NotFound(f"Token {op.token_id} does not exist"))
    if ctx.caller != token.owner:
        return _reject(
            "transfer",
            Unauthorized(f"'{ctx.caller}' does not own token {op.token_id}"),
        )
    if state.has_live_auction(op.token_id):
        return _reject(
            "transfer",
            TokenInAuction(f"Token {op.token_id} is under auction"),
        )

    logger.debug("Transferred token %d from %r to %r", token.token_id, token.owner, op.to)
    return Ok(Transition(state.with_token(replace(token, owner=op.to))))


# ---------------------------------------------------------------------------
# Auction lifecycle
# ---------------------------------------------------------------------------


def start_auction(op: StartAuction, ctx: CallContext, state: LedgerState) -> Outcome:
    token = state.get_token(op.token_id)
    if token is None:
        return _reject("start_auction", NotFound(f"Token {op.token_id} does not exist"))
    if ctx.caller != token.owner:
        return _reject(
            "start_auction",
            Unauthorized(f"'{ctx.caller}' does not own token {op.token_id}"),
        )
    if state.has_live_auction(op.token_id):
        return _reject(
            "start_auction",
            AlreadyExists(f"Token {op.token_id} is already under auction"),
        )

    auction = Auction(
        token_id=op.token_id,
        start_price=op.start_price,
        end_time=op.end_time,
    )
    logger.debug(
        "Auction %d opened by %r (start price %d, ends at %d)",
        auction.auction_id, ctx.caller, auction.start_price, auction.end_time,
    )
    return Ok(Transition(state.with_auction(auction)))


def place_bid(op: PlaceBid, ctx: CallContext, state: LedgerState) -> Outcome:
    auction = state.get_auction(op.auction_id)
    if auction is None:
        return _reject("bid", NotFound(f"Auction {op.auction_id} does not exist"))
    if not auction.is_open(ctx.now):
        return _reject(
            "bid",
            AuctionEnded(f"Auction {op.auction_id} ended at {auction.end_time}"),
        )
    # Strictly greater: an equal bid never displaces the incumbent.
    if op.amount <= auction.leading_amount:
        return _reject(
            "bid",
            BidTooLow(f"Bid {op.amount} does not beat {auction.leading_amount}"),
        )
    if op.amount < auction.start_price:
        return _reject(
            "bid",
            BidTooLow(f"Bid {op.amount} is below start price {auction.start_price}"),
        )

    updated = replace(auction, highest_bid=Bid(bidder=ctx.caller, amount=op.amount))
    logger.debug("Auction %d: %r leads with %d", auction.auction_id, ctx.caller, op.amount)
    return Ok(Transition(state.with_auction(updated)))


def end_auction(op: EndAuction, ctx: CallContext, state: LedgerState) -> Outcome:
    auction = state.get_auction(op.auction_id)
    if auction is None:
        return _reject("end_auction", NotFound(f"Auction {op.auction_id} does not exist"))
    if auction.is_open(ctx.now):
        return _reject(
            "end_auction",
            AuctionNotYetEnded(f"Auction {op.auction_id} ends at {auction.end_time}"),
        )
    token = state.tokens[auction.token_id]
    seller = token.owner
    if ctx.caller != seller:
        return _reject(
            "end_auction",
            Unauthorized(f"Only the owner '{seller}' can settle auction {op.auction_id}"),
        )

    closed = state.without_auction(auction.auction_id)
    match auction.highest_bid:
        case None:
            logger.debug("Auction %d closed without bids", auction.auction_id)
            return Ok(Transition(closed))
        case Bid(bidder=winner, amount=amount):
            logger.debug(
                "Auction %d settled: %r buys from %r for %d",
                auction.auction_id, winner, seller, amount,
            )
            return Ok(
                Transition(
                    closed.with_token(replace(token, owner=winner)),
                    (Payment(amount, seller),),
                )
            )


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------


def apply(op: Operation, ctx: CallContext, state: LedgerState) -> Outcome:
    """Route an operation to its handler."""
    match op:
        case Mint():
            return mint(op, ctx, state)
        case Transfer():
            return transfer(op, ctx, state)
        case StartAuction():
            return start_auction(op, ctx, state)
        case PlaceBid():
            return place_bid(op, ctx, state)
        case EndAuction():
            return end_auction(op, ctx, state)
    raise TypeError(f"Unknown operation type: {type(op)}")
