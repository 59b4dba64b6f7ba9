"""
Safe 4337 module adapter: reshapes calldata, hashes and signatures for Safe accounts
"""

import logging
from typing import Optional, Protocol, Sequence, runtime_checkable

from eth_account.messages import _hash_eip191_message, encode_typed_data
from hexbytes import HexBytes
from web3 import Web3

from aa_wallet.calldata import encode_function_call
from aa_wallet.config import SAFE_4337_MODULE, SAFE_MULTISEND, Chain
from aa_wallet.exceptions import require
from aa_wallet.types import BlockInformation

logger = logging.getLogger(__name__)

EXECUTE_USER_OP_WITH_ERROR_STRING = "executeUserOpWithErrorString(address[],uint256,bytes,uint256)"
MULTISEND = "multiSend(bytes)"

SAFE_OP_TYPES = {
    "SafeOp": [
        {"name": "safe", "type": "address"},
        {"name": "nonce", "type": "uint256"},
        {"name": "initCode", "type": "bytes"},
        {"name": "callData", "type": "bytes"},
        {"name": "callGasLimit", "type": "uint256"},
        {"name": "verificationGasLimit", "type": "uint256"},
        {"name": "preVerificationGas", "type": "uint256"},
        {"name": "maxFeePerGas", "type": "uint256"},
        {"name": "maxPriorityFeePerGas", "type": "uint256"},
        {"name": "paymasterAndData", "type": "bytes"},
        {"name": "validAfter", "type": "uint48"},
        {"name": "validUntil", "type": "uint48"},
        {"name": "entryPoint", "type": "address"},
    ]
}

# Safe Enum.Operation
OPERATION_CALL = 0
OPERATION_DELEGATECALL = 1

UINT48_MAX = 2**48 - 1


@runtime_checkable
class MultisigAdapter(Protocol):
    """Strategy consulted by the calldata encoder, the hasher and the signer"""

    def wrap_calldata(
        self, targets: Sequence[str], values: Sequence[int], inner_data: Sequence[bytes], batch: bool
    ) -> bytes: ...

    def wrap_signature(self, signature: bytes, block: BlockInformation) -> bytes: ...

    def compute_hash(self, op, chain: Chain, block: Optional[BlockInformation]) -> bytes: ...


class Safe4337Adapter:
    """Matches the calldata, signature and hash shape of the Safe 4337 module"""

    def __init__(
        self,
        module_address: str = SAFE_4337_MODULE,
        multisend_address: str = SAFE_MULTISEND,
        validity_window: int = 3600,
        prefixed_signatures: bool = True,
    ):
        self.module_address = Web3.to_checksum_address(module_address)
        self.multisend_address = Web3.to_checksum_address(multisend_address)
        self.validity_window = validity_window
        self.prefixed_signatures = prefixed_signatures

    def validity_bounds(self, block: BlockInformation) -> tuple:
        """(validAfter, validUntil) around the block timestamp"""
        valid_after = max(0, block.timestamp - self.validity_window)
        valid_until = min(UINT48_MAX, block.timestamp + self.validity_window)
        return valid_after, valid_until

    def encode_multisend(self, targets: Sequence[str], values: Sequence[int], inner_data: Sequence[bytes]) -> bytes:
        """Pack calls as MultiSend transactions and wrap them in multiSend(bytes)"""
        packed = b""
        for target, value, data in zip(targets, values, inner_data):
            data = bytes(data)
            packed += (
                OPERATION_CALL.to_bytes(1, "big")
                + bytes(HexBytes(Web3.to_checksum_address(target)))
                + value.to_bytes(32, "big")
                + len(data).to_bytes(32, "big")
                + data
            )
        return encode_function_call(MULTISEND, ["bytes"], [packed])

    def wrap_calldata(
        self, targets: Sequence[str], values: Sequence[int], inner_data: Sequence[bytes], batch: bool
    ) -> bytes:
        """Single calls go straight to the target; batches delegatecall into MultiSend"""
        if not batch:
            require(len(targets) == 1, "a single call takes exactly one target", field="targets", value=len(targets))
            return encode_function_call(
                EXECUTE_USER_OP_WITH_ERROR_STRING,
                ["address[]", "uint256", "bytes", "uint256"],
                [[Web3.to_checksum_address(targets[0])], values[0], bytes(inner_data[0]), OPERATION_CALL],
            )
        multisend_data = self.encode_multisend(targets, values, inner_data)
        return encode_function_call(
            EXECUTE_USER_OP_WITH_ERROR_STRING,
            ["address[]", "uint256", "bytes", "uint256"],
            [[self.multisend_address], 0, multisend_data, OPERATION_DELEGATECALL],
        )

    def typed_data(self, op, chain: Chain, block: BlockInformation):
        """EIP-712 SafeOp message signed through the module"""
        valid_after, valid_until = self.validity_bounds(block)
        return encode_typed_data(
            domain_data={"chainId": chain.chain_id, "verifyingContract": self.module_address},
            message_types=SAFE_OP_TYPES,
            message_data={
                "safe": op.sender,
                "nonce": op.nonce,
                "initCode": bytes(op.init_code),
                "callData": bytes(op.call_data),
                "callGasLimit": op.call_gas_limit,
                "verificationGasLimit": op.verification_gas_limit,
                "preVerificationGas": op.pre_verification_gas,
                "maxFeePerGas": op.max_fee_per_gas,
                "maxPriorityFeePerGas": op.max_priority_fee_per_gas,
                "paymasterAndData": bytes(op.paymaster_and_data),
                "validAfter": valid_after,
                "validUntil": valid_until,
                "entryPoint": chain.entry_point.address,
            },
        )

    def compute_hash(self, op, chain: Chain, block: Optional[BlockInformation]) -> bytes:
        """EIP-712 SafeOp hash under the module's domain"""
        require(block is not None, "block information is required for Safe operation hashes", field="block")
        return HexBytes(_hash_eip191_message(self.typed_data(op, chain, block)))

    def wrap_signature(self, signature: bytes, block: BlockInformation) -> bytes:
        """Prefix the validity window; eth_sign signatures get v bumped by 4"""
        require(block is not None, "block information is required for Safe signatures", field="block")
        sig = bytearray(HexBytes(signature))
        if self.prefixed_signatures and len(sig) == 65 and 27 <= sig[64] <= 30:
            sig[64] += 4
        valid_after, valid_until = self.validity_bounds(block)
        return HexBytes(valid_after.to_bytes(6, "big") + valid_until.to_bytes(6, "big") + bytes(sig))
