from dataclasses import replace
from types import MappingProxyType

from nftledger.invariants import Severity, check_state, check_transition
from nftledger.records import Address, Auction, Bid, Token, TokenId
from nftledger.state import LedgerState


def get_base_state() -> LedgerState:
    token = Token(
        token_id=TokenId(1),
        owner=Address("alice"),
        artist=Address("alice"),
        image_url="ipfs://one",
        metadata=MappingProxyType({"title": "One"}),
        royalties=10,
    )
    auction = Auction(
        token_id=TokenId(1),
        start_price=5,
        end_time=100,
        highest_bid=Bid(Address("bob"), 10),
    )
    return LedgerState(
        minter=Address("minter"),
        tokens=MappingProxyType({TokenId(1): token}),
        auctions=MappingProxyType({TokenId(1): auction}),
    )


def test_valid_state() -> None:
    result = check_state(get_base_state())
    assert result.is_consistent
    assert not result.errors
    assert not result.warnings


def test_genesis_is_consistent() -> None:
    assert check_state(LedgerState.genesis("minter")).is_consistent


def test_auction_without_token() -> None:
    state = get_base_state()
    state = replace(state, tokens=MappingProxyType({}))
    res = check_state(state)
    assert not res.is_consistent
    assert any(e.check == "auction_token_exists" for e in res.errors)


def test_auction_key_mismatch() -> None:
    state = get_base_state()
    auction = state.auctions[TokenId(1)]
    state = replace(state, auctions=MappingProxyType({TokenId(2): auction}))
    res = check_state(state)
    assert any(e.check == "auction_key" for e in res.errors)
    assert any(e.subject == "auction 2" for e in res.errors)


def test_token_key_mismatch() -> None:
    state = get_base_state()
    token = state.tokens[TokenId(1)]
    state = replace(
        state,
        tokens=MappingProxyType({TokenId(1): token, TokenId(9): token}),
    )
    res = check_state(state)
    assert [e.check for e in res.errors] == ["token_key"]


def test_negative_token_id() -> None:
    state = get_base_state()
    token = replace(state.tokens[TokenId(1)], token_id=TokenId(-1))
    state = replace(state, tokens=MappingProxyType({TokenId(-1): token}), auctions=MappingProxyType({}))
    res = check_state(state)
    assert [e.check for e in res.errors] == ["token_id_range"]


def test_royalty_out_of_range() -> None:
    state = get_base_state()
    token = replace(state.tokens[TokenId(1)], royalties=150)
    res = check_state(state.with_token(token))
    assert any(e.check == "royalty_range" for e in res.errors)


def test_leading_bid_below_start_price() -> None:
    state = get_base_state()
    auction = replace(state.auctions[TokenId(1)], highest_bid=Bid(Address("bob"), 3))
    res = check_state(state.with_auction(auction))
    assert any(e.check == "bid_floor" for e in res.errors)


def test_ended_auction_warns_only_with_clock() -> None:
    state = get_base_state()
    assert not check_state(state).warnings
    res = check_state(state, now=100)
    assert res.is_consistent
    assert [w.check for w in res.warnings] == ["awaiting_settlement"]
    assert res.warnings[0].severity == Severity.WARNING


class TestTransitions:
    def test_identity_transition(self) -> None:
        state = get_base_state()
        assert check_transition(state, state).is_consistent

    def test_token_removed(self) -> None:
        before = get_base_state()
        after = replace(
            before.without_auction(TokenId(1)), tokens=MappingProxyType({})
        )
        res = check_transition(before, after)
        assert any(e.check == "token_retained" for e in res.errors)

    def test_immutable_fields(self) -> None:
        before = get_base_state()
        token = replace(before.tokens[TokenId(1)], artist=Address("mallory"))
        res = check_transition(before, before.with_token(token))
        assert any(e.check == "token_immutable" for e in res.errors)

    def test_owner_change_under_live_auction(self) -> None:
        before = get_base_state()
        token = replace(before.tokens[TokenId(1)], owner=Address("carol"))
        res = check_transition(before, before.with_token(token))
        assert any(e.check == "owner_locked" for e in res.errors)

    def test_bid_decrease(self) -> None:
        before = get_base_state()
        auction = replace(before.auctions[TokenId(1)], highest_bid=Bid(Address("c"), 6))
        res = check_transition(before, before.with_auction(auction))
        assert any(e.check == "bid_monotonic" for e in res.errors)

    def test_bid_cleared(self) -> None:
        before = get_base_state()
        auction = replace(before.auctions[TokenId(1)], highest_bid=None)
        res = check_transition(before, before.with_auction(auction))
        assert any(e.check == "bid_monotonic" for e in res.errors)

    def test_minter_changed(self) -> None:
        before = get_base_state()
        res = check_transition(before, replace(before, minter=Address("other")))
        assert any(e.check == "minter_fixed" for e in res.errors)
