"""nftledger: token ownership and ascending auctions as a pure state machine."""

from .records import (
    MAX_ROYALTIES,
    Address,
    Auction,
    Bid,
    Payment,
    Token,
    TokenId,
)
from .state import LedgerState
from .operations import (
    CallContext,
    EndAuction,
    Mint,
    Operation,
    PlaceBid,
    StartAuction,
    Transfer,
)
from .errors import (
    AlreadyExists,
    AuctionEnded,
    AuctionNotYetEnded,
    BidTooLow,
    ErrorKind,
    InvalidMetadata,
    InvalidRoyalty,
    InvalidTokenId,
    InvariantViolation,
    LedgerError,
    NotFound,
    TokenInAuction,
    Unauthorized,
)
from .machine import (
    Outcome,
    Transition,
    apply,
    end_auction,
    mint,
    place_bid,
    start_auction,
    transfer,
)
from .invariants import CheckResult, Diagnostic, Severity, check_state, check_transition
from .ledger import JournalEntry, Ledger
from .serialization import dumps, loads
from .result import Ok, Err, Result

__all__ = [
    # Records
    "MAX_ROYALTIES", "Address", "Auction", "Bid", "Payment",
    "Token", "TokenId",
    # State
    "LedgerState",
    # Operations
    "CallContext", "EndAuction", "Mint", "Operation", "PlaceBid",
    "StartAuction", "Transfer",
    # Errors
    "AlreadyExists", "AuctionEnded", "AuctionNotYetEnded", "BidTooLow",
    "ErrorKind", "InvalidMetadata", "InvalidRoyalty", "InvalidTokenId",
    "InvariantViolation", "LedgerError",
    "NotFound", "TokenInAuction", "Unauthorized",
    # Handlers
    "Outcome", "Transition", "apply", "end_auction", "mint", "place_bid",
    "start_auction", "transfer",
    # Checks
    "CheckResult", "Diagnostic", "Severity", "check_state", "check_transition",
    # Host
    "JournalEntry", "Ledger",
    # Serialization
    "dumps", "loads",
    # Result
    "Ok", "Err", "Result",
]
