"""The ledger state: two registries and the minter.

State values are immutable. Handlers read from one ``LedgerState`` and
return a different one, so a rejected operation can never leave a
half-applied change behind, and nothing outside a call can hold a live
reference into the registries.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, replace
from types import MappingProxyType

from .records import Address, Auction, Token, TokenId

_EMPTY_TOKENS: Mapping[TokenId, Token] = MappingProxyType({})
_EMPTY_AUCTIONS: Mapping[TokenId, Auction] = MappingProxyType({})


@dataclass(frozen=True)
class LedgerState:
    """Snapshot of both registries.

    minter:   the only identity allowed to mint, fixed at genesis
    tokens:   token id → Token
    auctions: token id → Auction (at most one per token)
    """

    minter: Address
    tokens: Mapping[TokenId, Token] = _EMPTY_TOKENS
    auctions: Mapping[TokenId, Auction] = _EMPTY_AUCTIONS

    @classmethod
    def genesis(cls, minter: str) -> LedgerState:
        return cls(minter=Address(minter))

    # -- read-only accessors ------------------------------------------------

    def get_token(self, token_id: int) -> Token | None:
        return self.tokens.get(TokenId(token_id))

    def get_auction(self, auction_id: int) -> Auction | None:
        return self.auctions.get(TokenId(auction_id))

    def has_live_auction(self, token_id: int) -> bool:
        return TokenId(token_id) in self.auctions

    @property
    def token_ids(self) -> frozenset[TokenId]:
        return frozenset(self.tokens.keys())

    @property
    def auction_ids(self) -> frozenset[TokenId]:
        return frozenset(self.auctions.keys())

    # -- derivation ---------------------------------------------------------

    def with_token(self, token: Token) -> LedgerState:
        tokens = dict(self.tokens)
        tokens[token.token_id] = token
        return replace(self, tokens=MappingProxyType(tokens))

    def with_auction(self, auction: Auction) -> LedgerState:
        auctions = dict(self.auctions)
        auctions[auction.token_id] = auction
        return replace(self, auctions=MappingProxyType(auctions))

    def without_auction(self, auction_id: TokenId) -> LedgerState:
        auctions = dict(self.auctions)
        del auctions[auction_id]
        return replace(self, auctions=MappingProxyType(auctions))
