"""Host configuration loaded from the environment.

The ledger core has one configuration value, the minter identity, and it is
fixed for the lifetime of a state once genesis has happened. The host also
needs to know where the state file lives between CLI calls.

Both come from environment variables, with a ``.env`` file honoured:

    NFTLEDGER_MINTER   identity allowed to mint (required for ``init``)
    NFTLEDGER_STATE    path of the JSON state file (default: ledger.json)
"""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from nftledger.records import Address
from nftledger.result import Err, Ok, Result

DEFAULT_STATE_PATH = "ledger.json"


def state_path_from_env(override: str | None = None) -> Path:
    """Resolve the state file: explicit override, then env, then default."""
    if override:
        return Path(override)
    load_dotenv()
    return Path(os.getenv("NFTLEDGER_STATE") or DEFAULT_STATE_PATH)


@dataclass(frozen=True)
class LedgerConfig:
    minter: Address
    state_path: Path

    @classmethod
    def from_env(cls) -> Result["LedgerConfig", Exception]:
        """Build the config from NFTLEDGER_* variables (and ``.env``)."""
        load_dotenv()
        minter = os.getenv("NFTLEDGER_MINTER")

        match minter:
            case str(m) if m.strip():
                return Ok(cls(minter=Address(m.strip()), state_path=state_path_from_env()))
            case _:
                return Err(
                    ValueError("NFTLEDGER_MINTER not found or empty in environment.")
                )
