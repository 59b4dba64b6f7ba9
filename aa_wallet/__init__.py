"""
Account-abstraction wallet client

Builds ERC-4337 UserOperations, encodes smart account calldata, signs
operation hashes through a pluggable credential backend and submits them
to bundlers. Safe accounts are supported through an optional multisig adapter.
"""

# Main wallet
from aa_wallet.smart_account import SmartWallet

# Configuration
from aa_wallet.config import Chain, EntryPointAddress

# Individual components for advanced usage
from aa_wallet.bundler import BundlerClient, UserOperationResponse, user_operation_to_rpc_format
from aa_wallet.calldata import decode_single_call, encode_batch_call, encode_single_call
from aa_wallet.exceptions import (
    BundlerError,
    ConfigurationError,
    PreconditionError,
    RPCError,
    WalletError,
)
from aa_wallet.fees import GasPrice
from aa_wallet.provider import JsonRPCProvider
from aa_wallet.rpc import RPCBase
from aa_wallet.safe import MultisigAdapter, Safe4337Adapter
from aa_wallet.signer import PrivateKeyCredential, Signer, SignerType
from aa_wallet.types import (
    BlockInformation,
    UserOperationByHash,
    UserOperationGas,
    UserOperationReceipt,
    UserOperationStatus,
)
from aa_wallet.user_operations import UserOperation

__version__ = "1.0.0"

__all__ = [
    "SmartWallet",
    "Chain",
    "EntryPointAddress",
    "BundlerClient",
    "UserOperationResponse",
    "user_operation_to_rpc_format",
    "JsonRPCProvider",
    "RPCBase",
    "GasPrice",
    "encode_single_call",
    "encode_batch_call",
    "decode_single_call",
    "UserOperation",
    "Signer",
    "SignerType",
    "PrivateKeyCredential",
    "MultisigAdapter",
    "Safe4337Adapter",
    "BlockInformation",
    "UserOperationGas",
    "UserOperationByHash",
    "UserOperationReceipt",
    "UserOperationStatus",
    "WalletError",
    "ConfigurationError",
    "PreconditionError",
    "RPCError",
    "BundlerError",
]
