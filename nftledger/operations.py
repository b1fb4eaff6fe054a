"""Operation parameters and call context.

Each operation kind is its own frozen record; ``Operation`` is the closed
union of all of them. Dispatch in ``machine.apply`` matches exhaustively
over this union.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

from .records import Address, TokenId


@dataclass(frozen=True)
class CallContext:
    """What the host knows about a call: who made it and when.

    ``now`` is a Unix timestamp in seconds, the same clock auctions use for
    ``end_time``.
    """

    caller: Address
    now: int


@dataclass(frozen=True)
class Mint:
    token_id: TokenId
    owner: Address
    artist: Address
    image_url: str
    royalties: int
    metadata: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class Transfer:
    token_id: TokenId
    to: Address


@dataclass(frozen=True)
class StartAuction:
    token_id: TokenId
    start_price: int
    end_time: int


@dataclass(frozen=True)
class PlaceBid:
    auction_id: TokenId
    amount: int


@dataclass(frozen=True)
class EndAuction:
    auction_id: TokenId


# Union type for any operation
Operation = Mint | Transfer | StartAuction | PlaceBid | EndAuction
