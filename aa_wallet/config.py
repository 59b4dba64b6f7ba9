"""
Chain configuration and protocol constants for account-abstraction wallets
"""

import os
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlparse

from web3 import Web3

from aa_wallet.exceptions import ConfigurationError

# Network constants
ENTRYPOINT_V06 = "0x5FF137D4b0FDCD49DcA30c7CF57E578a026d2789"

# Safe 4337 module v0.2.0 and the MultiSend helper it delegatecalls into
SAFE_4337_MODULE = "0xa581c4A4DB7175302464fF3C06380BC3270b4037"
SAFE_MULTISEND = "0x38869bf66a61cF6bDB996A6aE40D5853Fd43B526"

# Default gas limits for UserOperations
DEFAULT_GAS_LIMITS = {
    "call": 35000,
    "verification": 70000,
    "pre_verification": 21000,
}

DEFAULT_RPC_TIMEOUT = 30

_URL_SCHEMES = ("http", "https", "ws", "wss")


def is_url(value: Optional[str]) -> bool:
    """Syntactic check that a value looks like a reachable endpoint URL"""
    if not value or not isinstance(value, str):
        return False
    parsed = urlparse(value)
    return parsed.scheme in _URL_SCHEMES and bool(parsed.netloc)


@dataclass(frozen=True)
class EntryPointAddress:
    """The verifier contract instance a UserOperation targets"""

    address: str
    version: str = "0.6"

    def __post_init__(self):
        try:
            checksummed = Web3.to_checksum_address(self.address)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid entry point address: {self.address}") from e
        object.__setattr__(self, "address", checksummed)

    @classmethod
    def v06(cls) -> "EntryPointAddress":
        return cls(ENTRYPOINT_V06, "0.6")

    def __str__(self) -> str:
        return self.address


@dataclass(frozen=True)
class Chain:
    """Immutable network configuration shared by providers and the wallet"""

    chain_id: int
    bundler_url: Optional[str] = None
    json_rpc_url: Optional[str] = None
    entry_point: EntryPointAddress = EntryPointAddress(ENTRYPOINT_V06)

    @classmethod
    def from_env(cls, prefix: str = "AA_") -> "Chain":
        """Build a Chain from environment variables"""
        chain_id = os.environ.get(f"{prefix}CHAIN_ID")
        if not chain_id:
            raise ConfigurationError(f"{prefix}CHAIN_ID environment variable is required")
        try:
            parsed_chain_id = int(chain_id, 0)
        except ValueError as e:
            raise ConfigurationError(f"{prefix}CHAIN_ID must be an integer, got {chain_id!r}") from e

        entry_point = os.environ.get(f"{prefix}ENTRY_POINT", ENTRYPOINT_V06)
        return cls(
            chain_id=parsed_chain_id,
            bundler_url=os.environ.get(f"{prefix}BUNDLER_URL"),
            json_rpc_url=os.environ.get(f"{prefix}RPC_URL"),
            entry_point=EntryPointAddress(entry_point),
        )
