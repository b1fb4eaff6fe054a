"""Records held by the ledger.

A token is a uniquely identified asset with an owner, its original artist,
an image and free-form metadata. An auction runs on exactly one token and
shares its identifier, so a token can never be under two auctions at once.

All records are immutable. The only field that ever changes after mint is
``Token.owner``, and that change is expressed by building a new record with
``dataclasses.replace``.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import NewType

# ---------------------------------------------------------------------------
# Identities
# ---------------------------------------------------------------------------

Address = NewType("Address", str)
TokenId = NewType("TokenId", int)

MAX_ROYALTIES = 100


# ---------------------------------------------------------------------------
# Tokens
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Token:
    """An owned asset.

    Example:
        Token(TokenId(1), owner=Address("alice"), artist=Address("alice"),
              image_url="ipfs://Qm...", metadata={"title": "Dawn"},
              royalties=10)
    """

    token_id: TokenId
    owner: Address
    artist: Address
    image_url: str
    metadata: Mapping[str, str]
    royalties: int


# ---------------------------------------------------------------------------
# Auctions
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Bid:
    bidder: Address
    amount: int


@dataclass(frozen=True)
class Auction:
    """A time-bounded ascending auction on one token.

    ``highest_bid`` is None until the first bid is accepted. Bidding is
    open while ``now < end_time``; settlement is allowed once
    ``now >= end_time``.
    """

    token_id: TokenId
    start_price: int
    end_time: int
    highest_bid: Bid | None = None

    @property
    def auction_id(self) -> TokenId:
        return self.token_id

    @property
    def leading_amount(self) -> int:
        """Amount a new bid has to beat; 0 when nobody has bid yet."""
        return self.highest_bid.amount if self.highest_bid is not None else 0

    def is_open(self, now: int) -> bool:
        return now < self.end_time


# ---------------------------------------------------------------------------
# Payment instructions
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Payment:
    """An instruction for the host to move ``amount`` to ``recipient``.

    The ledger never moves value itself; it only describes what is owed.
    """

    amount: int
    recipient: Address
