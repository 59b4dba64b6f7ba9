"""
Read-only projections of bundler and node responses
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from hexbytes import HexBytes

from aa_wallet.exceptions import BundlerError


def hex_to_int(value: Union[str, int, None]) -> Optional[int]:
    """Parse a hex-prefixed quantity; ints pass through and None stays None"""
    if value is None:
        return None
    if isinstance(value, int):
        return value
    return int(value, 16)


class UserOperationStatus(Enum):
    """Where a submitted UserOperation stands, as seen by its response handle"""

    SUBMITTED = "submitted"
    PENDING = "pending"
    INCLUDED = "included"


@dataclass(frozen=True)
class BlockInformation:
    """Block context used to bound signature validity windows"""

    number: int
    hash: HexBytes
    timestamp: int

    @classmethod
    def from_rpc(cls, block: Dict[str, Any]) -> "BlockInformation":
        return cls(
            number=hex_to_int(block["number"]),
            hash=HexBytes(block["hash"]),
            timestamp=hex_to_int(block["timestamp"]),
        )


@dataclass(frozen=True)
class UserOperationGas:
    """Gas limits returned by eth_estimateUserOperationGas"""

    pre_verification_gas: int
    verification_gas_limit: int
    call_gas_limit: int
    valid_after: Optional[int] = None
    valid_until: Optional[int] = None

    @classmethod
    def from_rpc(cls, result: Dict[str, Any]) -> "UserOperationGas":
        # some bundlers still report the pre-0.6 "verificationGas" key
        verification = result.get("verificationGasLimit", result.get("verificationGas"))
        if verification is None:
            raise BundlerError("Gas estimate is missing verificationGasLimit", data=result, method="eth_estimateUserOperationGas")
        return cls(
            pre_verification_gas=hex_to_int(result["preVerificationGas"]),
            verification_gas_limit=hex_to_int(verification),
            call_gas_limit=hex_to_int(result["callGasLimit"]),
            valid_after=hex_to_int(result.get("validAfter")),
            valid_until=hex_to_int(result.get("validUntil")),
        )


@dataclass(frozen=True)
class UserOperationByHash:
    """A submitted UserOperation together with where it landed"""

    user_operation: Dict[str, Any]
    entry_point: str
    block_number: Optional[int]
    block_hash: Optional[HexBytes]
    transaction_hash: Optional[HexBytes]

    @classmethod
    def from_rpc(cls, result: Dict[str, Any]) -> "UserOperationByHash":
        block_hash = result.get("blockHash")
        tx_hash = result.get("transactionHash")
        return cls(
            user_operation=result["userOperation"],
            entry_point=result["entryPoint"],
            block_number=hex_to_int(result.get("blockNumber")),
            block_hash=HexBytes(block_hash) if block_hash else None,
            transaction_hash=HexBytes(tx_hash) if tx_hash else None,
        )


@dataclass(frozen=True)
class TransactionReceipt:
    """Subset of the bundle transaction receipt embedded in a UserOperation receipt"""

    transaction_hash: HexBytes
    block_hash: HexBytes
    block_number: int
    gas_used: int
    status: Optional[int]
    effective_gas_price: Optional[int] = None

    @classmethod
    def from_rpc(cls, receipt: Dict[str, Any]) -> "TransactionReceipt":
        return cls(
            transaction_hash=HexBytes(receipt["transactionHash"]),
            block_hash=HexBytes(receipt["blockHash"]),
            block_number=hex_to_int(receipt["blockNumber"]),
            gas_used=hex_to_int(receipt["gasUsed"]),
            status=hex_to_int(receipt.get("status")),
            effective_gas_price=hex_to_int(receipt.get("effectiveGasPrice")),
        )


@dataclass(frozen=True)
class UserOperationReceipt:
    """Receipt of an included UserOperation"""

    user_op_hash: HexBytes
    entry_point: Optional[str]
    sender: str
    nonce: int
    paymaster: Optional[str]
    actual_gas_cost: int
    actual_gas_used: int
    success: bool
    reason: Optional[str] = None
    logs: List[Dict[str, Any]] = field(default_factory=list)
    receipt: Optional[TransactionReceipt] = None

    @classmethod
    def from_rpc(cls, result: Dict[str, Any]) -> "UserOperationReceipt":
        receipt = result.get("receipt")
        return cls(
            user_op_hash=HexBytes(result["userOpHash"]),
            entry_point=result.get("entryPoint"),
            sender=result["sender"],
            nonce=hex_to_int(result["nonce"]),
            paymaster=result.get("paymaster"),
            actual_gas_cost=hex_to_int(result["actualGasCost"]),
            actual_gas_used=hex_to_int(result["actualGasUsed"]),
            success=bool(result["success"]),
            reason=result.get("reason") or None,
            logs=list(result.get("logs") or []),
            receipt=TransactionReceipt.from_rpc(receipt) if receipt else None,
        )
