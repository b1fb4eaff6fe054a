"""Round-trip tests for serialization of states and operations."""

import json
from dataclasses import replace
from pathlib import Path

import pytest

from nftledger import (
    Address,
    CallContext,
    EndAuction,
    LedgerState,
    Mint,
    PlaceBid,
    StartAuction,
    TokenId,
    Transfer,
    apply,
    dumps,
    loads,
)
from nftledger.result import Ok
from nftledger.serialization import (
    load_scenario,
    op_from_json,
    op_to_json,
    state_to_json,
    step_from_json,
    step_to_json,
)

SCENARIO = Path(__file__).parent.parent / "examples" / "auction_scenario.json"


def _live_state() -> LedgerState:
    state = LedgerState.genesis("minter")
    steps = [
        (Address("minter"), Mint(TokenId(2), Address("a"), Address("a"), "ipfs://2", 7, {"k": "v"})),
        (Address("minter"), Mint(TokenId(10), Address("b"), Address("b"), "ipfs://10", 0)),
        (Address("a"), StartAuction(TokenId(2), 3, 500)),
        (Address("b"), PlaceBid(TokenId(2), 4)),
    ]
    for caller, op in steps:
        outcome = apply(op, CallContext(caller, 100), state)
        assert isinstance(outcome, Ok)
        state = outcome.value.state
    return state


def test_state_round_trip() -> None:
    state = _live_state()
    restored = loads(dumps(state))
    assert restored == state
    assert restored.get_auction(2).highest_bid.bidder == "b"  # type: ignore[union-attr]


def test_integer_ids_survive() -> None:
    restored = loads(dumps(_live_state()))
    assert set(restored.tokens) == {2, 10}
    assert all(isinstance(k, int) for k in restored.tokens)


def test_auction_without_bids_serializes_null() -> None:
    state = _live_state()
    fresh = replace(state.auctions[TokenId(2)], highest_bid=None)
    d = state_to_json(state.with_auction(fresh))
    assert d["auctions"][0]["highest_bid"] is None
    assert loads(json.dumps(d)).get_auction(2).highest_bid is None  # type: ignore[union-attr]


def test_duplicate_ids_rejected() -> None:
    d = state_to_json(_live_state())
    d["tokens"].append(d["tokens"][0])
    with pytest.raises(ValueError, match="Duplicate token"):
        loads(json.dumps(d))


def test_wrong_document_type() -> None:
    with pytest.raises(ValueError):
        loads(json.dumps({"type": "snapshot"}))


def test_operation_round_trip() -> None:
    ops = [
        Mint(TokenId(1), Address("a"), Address("b"), "ipfs://x", 12, {"k": "v"}),
        Transfer(TokenId(1), Address("c")),
        StartAuction(TokenId(1), 5, 1000),
        PlaceBid(TokenId(1), 6),
        EndAuction(TokenId(1)),
    ]
    for op in ops:
        assert op_from_json(op_to_json(op)) == op


def test_step_round_trip() -> None:
    ctx = CallContext(Address("alice"), 42)
    op = PlaceBid(TokenId(3), 9)
    assert step_from_json(step_to_json(ctx, op)) == (ctx, op)


def test_unknown_operation() -> None:
    with pytest.raises(ValueError, match="Unknown operation type"):
        op_from_json({"type": "burn", "token_id": 1})


def test_load_example_scenario() -> None:
    genesis, steps = load_scenario(SCENARIO)
    assert genesis.minter == "minter"
    assert len(steps) == 6
    assert isinstance(steps[0][1], Mint)
    assert isinstance(steps[-1][1], EndAuction)
