"""Failure taxonomy for ledger operations.

Every rejected operation produces exactly one ``LedgerError`` wrapped in an
``Err``. The ``kind`` tells the caller which precondition failed so it can
decide whether resubmitting with different parameters makes sense. A
rejected operation never changes the state.
"""

from __future__ import annotations

from enum import Enum
from typing import ClassVar


class ErrorKind(Enum):
    NOT_FOUND = "not_found"
    UNAUTHORIZED = "unauthorized"
    ALREADY_EXISTS = "already_exists"
    INVALID_ROYALTY = "invalid_royalty"
    INVALID_METADATA = "invalid_metadata"
    INVALID_TOKEN_ID = "invalid_token_id"
    AUCTION_ENDED = "auction_ended"
    AUCTION_NOT_YET_ENDED = "auction_not_yet_ended"
    BID_TOO_LOW = "bid_too_low"
    TOKEN_IN_AUCTION = "token_in_auction"


class LedgerError(Exception):
    """Base class for all precondition failures."""

    kind: ClassVar[ErrorKind]

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r})"


class NotFound(LedgerError):
    """Referenced token or auction does not exist."""

    kind = ErrorKind.NOT_FOUND


class Unauthorized(LedgerError):
    """Caller is not the minter, owner or seller of record."""

    kind = ErrorKind.UNAUTHORIZED


class AlreadyExists(LedgerError):
    """Token id already minted, or token already under auction."""

    kind = ErrorKind.ALREADY_EXISTS


class InvalidRoyalty(LedgerError):
    kind = ErrorKind.INVALID_ROYALTY


class InvalidMetadata(LedgerError):
    """Metadata has a key or value that is not a string."""

    kind = ErrorKind.INVALID_METADATA


class InvalidTokenId(LedgerError):
    kind = ErrorKind.INVALID_TOKEN_ID


class AuctionEnded(LedgerError):
    kind = ErrorKind.AUCTION_ENDED


class AuctionNotYetEnded(LedgerError):
    kind = ErrorKind.AUCTION_NOT_YET_ENDED


class BidTooLow(LedgerError):
    """Bid does not beat the leading bid or is under the start price."""

    kind = ErrorKind.BID_TOO_LOW


class TokenInAuction(LedgerError):
    """Token has a live auction and cannot change hands by transfer."""

    kind = ErrorKind.TOKEN_IN_AUCTION


class InvariantViolation(RuntimeError):
    """A committed state failed consistency checks.

    Unlike ``LedgerError`` this is never an expected outcome: it means a
    handler produced a bad transition.
    """
