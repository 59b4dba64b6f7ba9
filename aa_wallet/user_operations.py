"""
UserOperation model and ERC-4337 (EntryPoint v0.6) hashing
"""

import logging
from dataclasses import dataclass, replace
from typing import Any, Dict, Optional, Union

from eth_abi import encode
from hexbytes import HexBytes
from web3 import Web3

from aa_wallet.config import DEFAULT_GAS_LIMITS, Chain
from aa_wallet.fees import GasPrice
from aa_wallet.types import BlockInformation, UserOperationGas, hex_to_int

logger = logging.getLogger(__name__)

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# 65-byte ECDSA-shaped placeholder so bundlers can simulate validation
DUMMY_SIGNATURE = HexBytes("0x" + "f" * 31 + "0" * 33 + "7" + "a" * 63 + "1c")

BytesLike = Union[bytes, str]


def _to_bytes(value: Optional[BytesLike]) -> HexBytes:
    if value is None:
        return HexBytes(b"")
    return HexBytes(value)


@dataclass(frozen=True)
class UserOperation:
    """An ERC-4337 v0.6 UserOperation; signature stays empty until signing"""

    sender: str
    nonce: int
    init_code: HexBytes
    call_data: HexBytes
    call_gas_limit: int
    verification_gas_limit: int
    pre_verification_gas: int
    max_fee_per_gas: int
    max_priority_fee_per_gas: int
    paymaster_and_data: HexBytes
    signature: HexBytes

    def __post_init__(self):
        for name in ("init_code", "call_data", "paymaster_and_data", "signature"):
            object.__setattr__(self, name, _to_bytes(getattr(self, name)))
        object.__setattr__(self, "sender", Web3.to_checksum_address(self.sender))

    @classmethod
    def partial(
        cls,
        call_data: BytesLike,
        sender: Optional[str] = None,
        nonce: int = 0,
        init_code: Optional[BytesLike] = None,
        call_gas_limit: Optional[int] = None,
        verification_gas_limit: Optional[int] = None,
        pre_verification_gas: Optional[int] = None,
        max_fee_per_gas: int = 0,
        max_priority_fee_per_gas: int = 0,
        paymaster_and_data: Optional[BytesLike] = None,
    ) -> "UserOperation":
        """Seed an unsigned operation from call data, before estimation and signing"""
        return cls(
            sender=sender or ZERO_ADDRESS,
            nonce=nonce,
            init_code=init_code,
            call_data=call_data,
            call_gas_limit=DEFAULT_GAS_LIMITS["call"] if call_gas_limit is None else call_gas_limit,
            verification_gas_limit=(
                DEFAULT_GAS_LIMITS["verification"] if verification_gas_limit is None else verification_gas_limit
            ),
            pre_verification_gas=(
                DEFAULT_GAS_LIMITS["pre_verification"] if pre_verification_gas is None else pre_verification_gas
            ),
            max_fee_per_gas=max_fee_per_gas,
            max_priority_fee_per_gas=max_priority_fee_per_gas,
            paymaster_and_data=paymaster_and_data,
            signature=b"",
        )

    @classmethod
    def from_rpc(cls, op: Dict[str, Any]) -> "UserOperation":
        """Build from the hex-encoded wire format used by bundlers"""
        return cls(
            sender=op["sender"],
            nonce=hex_to_int(op["nonce"]),
            init_code=op.get("initCode") or "0x",
            call_data=op["callData"],
            call_gas_limit=hex_to_int(op["callGasLimit"]),
            verification_gas_limit=hex_to_int(op["verificationGasLimit"]),
            pre_verification_gas=hex_to_int(op["preVerificationGas"]),
            max_fee_per_gas=hex_to_int(op["maxFeePerGas"]),
            max_priority_fee_per_gas=hex_to_int(op["maxPriorityFeePerGas"]),
            paymaster_and_data=op.get("paymasterAndData") or "0x",
            signature=op.get("signature") or "0x",
        )

    @property
    def is_signed(self) -> bool:
        return len(self.signature) > 0

    def unsigned(self) -> "UserOperation":
        return replace(self, signature=b"")

    def with_signature(self, signature: BytesLike) -> "UserOperation":
        return replace(self, signature=signature)

    def with_gas(self, gas: UserOperationGas) -> "UserOperation":
        return replace(
            self,
            call_gas_limit=gas.call_gas_limit,
            verification_gas_limit=gas.verification_gas_limit,
            pre_verification_gas=gas.pre_verification_gas,
        )

    def with_fees(self, fees: GasPrice) -> "UserOperation":
        return replace(
            self,
            max_fee_per_gas=fees.max_fee_per_gas,
            max_priority_fee_per_gas=fees.max_priority_fee_per_gas,
        )

    def pack(self) -> bytes:
        """ABI-encode the fields covered by the EntryPoint hash (signature excluded)"""
        return encode(
            [
                "address",
                "uint256",
                "bytes32",
                "bytes32",
                "uint256",
                "uint256",
                "uint256",
                "uint256",
                "uint256",
                "bytes32",
            ],
            [
                self.sender,
                self.nonce,
                Web3.keccak(self.init_code),
                Web3.keccak(self.call_data),
                self.call_gas_limit,
                self.verification_gas_limit,
                self.pre_verification_gas,
                self.max_fee_per_gas,
                self.max_priority_fee_per_gas,
                Web3.keccak(self.paymaster_and_data),
            ],
        )

    def hash(self, chain: Chain, adapter=None, block: Optional[BlockInformation] = None) -> HexBytes:
        """Compute the hash the verifier expects to be signed.

        Without an adapter this is the EntryPoint v0.6 userOpHash:
        keccak256(abi.encode(keccak256(pack(op)), entryPoint, chainId)).
        With a multisig adapter the adapter's own typed-data hash is used,
        which depends on the block context.
        """
        if adapter is not None:
            return HexBytes(adapter.compute_hash(self, chain, block))

        return Web3.keccak(
            encode(
                ["bytes32", "address", "uint256"],
                [Web3.keccak(self.pack()), chain.entry_point.address, chain.chain_id],
            )
        )
