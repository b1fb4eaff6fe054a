import argparse
import json
import logging
import sys
import time
from collections.abc import Sequence
from pathlib import Path

from nftledger.config import LedgerConfig, state_path_from_env
from nftledger.invariants import check_state
from nftledger.ledger import Ledger
from nftledger.operations import (
    CallContext,
    EndAuction,
    Mint,
    Operation,
    PlaceBid,
    StartAuction,
    Transfer,
)
from nftledger.records import Address, TokenId
from nftledger.report import format_outcome, format_state, report_json
from nftledger.result import Err, Ok
from nftledger.serialization import dumps, load_scenario, loads
from nftledger.state import LedgerState


def _load_state(path: Path) -> LedgerState | str:
    try:
        state = loads(path.read_text())
    except OSError as e:
        return f"Could not read state file: {e}"
    except (ValueError, KeyError) as e:
        return f"Malformed state file {path}: {e}"

    result = check_state(state)
    if not result.is_consistent:
        problems = "; ".join(
            f"{d.subject}: {d.message}" if d.subject else d.message for d in result.errors
        )
        return f"Malformed state file {path}: {problems}"
    return state


def non_negative_int(value: str) -> int:
    number = int(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f"must be non-negative, got {number}")
    return number


def _save_state(state: LedgerState, path: Path) -> None:
    path.write_text(dumps(state) + "\n")


def _parse_metadata(pairs: Sequence[str]) -> dict[str, str] | str:
    metadata: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            return f"Metadata must be KEY=VALUE, got {pair!r}"
        if key in metadata:
            return f"Duplicate metadata key {key!r}"
        metadata[key] = value
    return metadata


def handle_init(minter: str | None, state_path: Path, *, force: bool) -> int:
    if minter is None:
        match LedgerConfig.from_env():
            case Ok(config):
                minter = config.minter
            case Err(e):
                print(f"Error: {e} Pass --minter or set it.", file=sys.stderr)
                return 1

    if state_path.exists() and not force:
        print(f"Error: {state_path} already exists (use --force to overwrite)", file=sys.stderr)
        return 1

    _save_state(LedgerState.genesis(minter), state_path)
    print(f"Initialized ledger at {state_path} with minter {minter}")
    return 0


def handle_operation(op: Operation, ctx: CallContext, state_path: Path) -> int:
    """Apply one operation to the stored state; save it only if accepted."""
    match _load_state(state_path):
        case str(err):
            print(f"Error: {err}", file=sys.stderr)
            return 1
        case LedgerState() as state:
            pass

    ledger = Ledger(state, verify=True)
    outcome = ledger.submit(op, ctx)
    match outcome:
        case Ok(_):
            _save_state(ledger.state, state_path)
            print(format_outcome(op, outcome))
            return 0
        case Err(_):
            print(format_outcome(op, outcome), file=sys.stderr)
            return 1


def handle_show(state_path: Path, *, as_json: bool, now: int | None) -> int:
    match _load_state(state_path):
        case str(err):
            print(f"Error: {err}", file=sys.stderr)
            return 1
        case LedgerState() as state:
            pass

    if as_json:
        print(json.dumps(report_json(state), indent=2))
    else:
        print(format_state(state, now=now))
    return 0


def handle_replay(scenario: str, out: str | None) -> int:
    """Run a scenario file from its genesis and print every outcome."""
    try:
        genesis, steps = load_scenario(scenario)
    except OSError as e:
        print(f"Could not read scenario: {e}", file=sys.stderr)
        return 1
    except (ValueError, KeyError) as e:
        print(f"Malformed scenario {scenario}: {e}", file=sys.stderr)
        return 1

    ledger = Ledger(genesis, verify=True)
    for (ctx, op), outcome in zip(steps, ledger.replay(steps), strict=True):
        print(f"t={ctx.now} {ctx.caller}: {format_outcome(op, outcome)}")

    rejected = sum(1 for e in ledger.journal if not e.committed)
    print(f"\n{len(steps)} step(s), {len(steps) - rejected} committed, {rejected} rejected")
    if out:
        _save_state(ledger.state, Path(out))
        print(f"Saved final state to {out}")
    return 0


def _build_operation(args: argparse.Namespace) -> Operation | str:
    match args.command:
        case "mint":
            metadata = _parse_metadata(args.meta)
            if isinstance(metadata, str):
                return metadata
            return Mint(
                token_id=TokenId(args.token_id),
                owner=Address(args.owner),
                artist=Address(args.artist or args.owner),
                image_url=args.image_url,
                royalties=args.royalties,
                metadata=metadata,
            )
        case "transfer":
            return Transfer(token_id=TokenId(args.token_id), to=Address(args.to))
        case "start-auction":
            return StartAuction(
                token_id=TokenId(args.token_id),
                start_price=args.start_price,
                end_time=args.end_time,
            )
        case "bid":
            return PlaceBid(auction_id=TokenId(args.auction_id), amount=args.amount)
        case "end-auction":
            return EndAuction(auction_id=TokenId(args.auction_id))
    return f"Unknown command: {args.command}"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nftledger",
        description="Token ownership ledger with ascending auctions",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        default=False,
        help="Log every accepted and rejected transition.",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    state_opts = argparse.ArgumentParser(add_help=False)
    state_opts.add_argument(
        "--state",
        type=str,
        help="Path of the JSON state file (default: $NFTLEDGER_STATE or ledger.json).",
    )

    call_opts = argparse.ArgumentParser(add_help=False, parents=[state_opts])
    call_opts.add_argument(
        "--caller", required=True, help="Identity submitting the operation."
    )
    call_opts.add_argument(
        "--now",
        type=int,
        default=None,
        help="Current Unix time in seconds (default: the system clock).",
    )

    # Command: init
    init_parser = subparsers.add_parser(
        "init", parents=[state_opts], help="Create an empty ledger state file."
    )
    init_parser.add_argument(
        "--minter", help="Identity allowed to mint (default: $NFTLEDGER_MINTER)."
    )
    init_parser.add_argument(
        "--force", action="store_true", help="Overwrite an existing state file."
    )

    # Command: mint
    mint_parser = subparsers.add_parser(
        "mint", parents=[call_opts], help="Mint a new token (minter only)."
    )
    mint_parser.add_argument("--token-id", type=non_negative_int, required=True)
    mint_parser.add_argument("--owner", required=True)
    mint_parser.add_argument("--artist", help="Original creator (default: the owner).")
    mint_parser.add_argument("--image-url", default="")
    mint_parser.add_argument("--royalties", type=int, default=0, help="Percentage, 0-100.")
    mint_parser.add_argument(
        "--meta",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Metadata entry; repeat for several.",
    )

    # Command: transfer
    transfer_parser = subparsers.add_parser(
        "transfer", parents=[call_opts], help="Transfer a token you own."
    )
    transfer_parser.add_argument("--token-id", type=non_negative_int, required=True)
    transfer_parser.add_argument("--to", required=True)

    # Command: start-auction
    start_parser = subparsers.add_parser(
        "start-auction", parents=[call_opts], help="Put a token you own up for auction."
    )
    start_parser.add_argument("--token-id", type=non_negative_int, required=True)
    start_parser.add_argument("--start-price", type=int, default=0)
    start_parser.add_argument("--end-time", type=int, required=True)

    # Command: bid
    bid_parser = subparsers.add_parser(
        "bid", parents=[call_opts], help="Bid on a running auction."
    )
    bid_parser.add_argument("--auction-id", type=non_negative_int, required=True)
    bid_parser.add_argument("--amount", type=int, required=True)

    # Command: end-auction
    end_parser = subparsers.add_parser(
        "end-auction", parents=[call_opts], help="Settle an auction that has ended."
    )
    end_parser.add_argument("--auction-id", type=non_negative_int, required=True)

    # Command: show
    show_parser = subparsers.add_parser(
        "show", parents=[state_opts], help="Print the stored ledger state."
    )
    show_parser.add_argument("--json", action="store_true", help="Print JSON instead.")
    show_parser.add_argument(
        "--now", type=int, default=None, help="Flag auctions ended by this time."
    )

    # Command: replay
    replay_parser = subparsers.add_parser(
        "replay", help="Run a JSON scenario file from genesis."
    )
    replay_parser.add_argument("scenario", metavar="SCENARIO")
    replay_parser.add_argument("--out", metavar="PATH", help="Save the final state here.")

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    match args.command:
        case "init":
            return handle_init(
                args.minter, state_path_from_env(args.state), force=args.force
            )
        case "show":
            return handle_show(
                state_path_from_env(args.state), as_json=args.json, now=args.now
            )
        case "replay":
            return handle_replay(args.scenario, args.out)
        case "mint" | "transfer" | "start-auction" | "bid" | "end-auction":
            match _build_operation(args):
                case str(err):
                    print(f"Error: {err}", file=sys.stderr)
                    return 2
                case op:
                    pass
            now = args.now if args.now is not None else int(time.time())
            ctx = CallContext(caller=Address(args.caller), now=now)
            return handle_operation(op, ctx, state_path_from_env(args.state))
        case None:
            parser.print_help()
            return 1
        case _:
            print(f"Unknown command: {args.command}", file=sys.stderr)
            parser.print_help()
            return 1


if __name__ == "__main__":
    sys.exit(main())
