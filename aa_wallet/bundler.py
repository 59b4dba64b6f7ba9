"""
ERC-4337 bundler client and UserOperation wire-format conversion
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from hexbytes import HexBytes

from aa_wallet.config import DEFAULT_RPC_TIMEOUT, Chain, EntryPointAddress, is_url
from aa_wallet.exceptions import BundlerError, ConfigurationError, require
from aa_wallet.rpc import RPCBase
from aa_wallet.types import (
    UserOperationByHash,
    UserOperationGas,
    UserOperationReceipt,
    UserOperationStatus,
    hex_to_int,
)
from aa_wallet.user_operations import DUMMY_SIGNATURE, UserOperation

logger = logging.getLogger(__name__)


def _hex_bytes(value: bytes) -> str:
    return "0x" + bytes(value).hex()


def user_operation_to_rpc_format(user_op: Union[UserOperation, Dict[str, Any]]) -> Dict[str, str]:
    """Convert a UserOperation to the hex-encoded bundler format (EntryPoint v0.6)"""
    if isinstance(user_op, dict):
        return dict(user_op)

    return {
        "sender": user_op.sender,
        "nonce": hex(user_op.nonce),
        "initCode": _hex_bytes(user_op.init_code),
        "callData": _hex_bytes(user_op.call_data),
        "callGasLimit": hex(user_op.call_gas_limit),
        "verificationGasLimit": hex(user_op.verification_gas_limit),
        "preVerificationGas": hex(user_op.pre_verification_gas),
        "maxFeePerGas": hex(user_op.max_fee_per_gas),
        "maxPriorityFeePerGas": hex(user_op.max_priority_fee_per_gas),
        "paymasterAndData": _hex_bytes(user_op.paymaster_and_data),
        "signature": _hex_bytes(user_op.signature),
    }


class BundlerRPC(RPCBase):
    error_class = BundlerError


class UserOperationResponse:
    """Hash of a submitted UserOperation plus a bound receipt accessor"""

    def __init__(self, user_op_hash: str, get_receipt: Callable[[str], Awaitable[Optional[UserOperationReceipt]]]):
        self.user_op_hash = user_op_hash
        self._get_receipt = get_receipt
        self.status = UserOperationStatus.SUBMITTED

    async def receipt(self) -> Optional[UserOperationReceipt]:
        """Poll once; None while the operation is still pending"""
        receipt = await self._get_receipt(self.user_op_hash)
        self.status = UserOperationStatus.INCLUDED if receipt else UserOperationStatus.PENDING
        return receipt

    async def wait(self, interval: float = 2.0, timeout: float = 60.0) -> Optional[UserOperationReceipt]:
        """Poll until a receipt shows up or `timeout` seconds pass.

        A client-side convenience on top of `receipt()`. The bundler protocol
        itself defines no polling interval or timeout, so callers that need
        other behavior should drive `receipt()` directly.
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while True:
            receipt = await self.receipt()
            if receipt is not None:
                return receipt
            if loop.time() + interval >= deadline:
                logger.info(f"No receipt for {self.user_op_hash} after {timeout}s")
                return None
            await asyncio.sleep(interval)

    def __repr__(self) -> str:
        return f"UserOperationResponse({self.user_op_hash!r}, status={self.status.value})"


class BundlerClient:
    """Client for the ERC-4337 bundler JSON-RPC namespace.

    Construction only validates the URL. The bundler's chain id is checked
    once, lazily, by `ready()`; every call awaits it first. A mismatch
    never raises, calls log a warning and proceed.
    """

    def __init__(self, chain: Chain, rpc: Optional[RPCBase] = None, timeout: float = DEFAULT_RPC_TIMEOUT):
        if not is_url(chain.bundler_url):
            raise ConfigurationError(f"Invalid bundler url: {chain.bundler_url!r}", {"url": chain.bundler_url})
        self.chain = chain
        self.rpc = rpc or BundlerRPC(chain.bundler_url, timeout=timeout)
        self._initialized: Optional[bool] = None
        self._ready_lock = asyncio.Lock()

    @property
    def initialized(self) -> bool:
        """False until ready() has confirmed the bundler serves the configured chain"""
        return bool(self._initialized)

    async def ready(self) -> bool:
        """Query eth_chainId once and record whether it matches the configured chain"""
        async with self._ready_lock:
            if self._initialized is None:
                try:
                    bundler_chain_id = hex_to_int(await self.rpc.send("eth_chainId"))
                except Exception as e:
                    logger.warning(f"Could not query bundler chain id: {e}")
                    self._initialized = False
                else:
                    self._initialized = bundler_chain_id == self.chain.chain_id
                    if self._initialized:
                        logger.info(f"Bundler at {self.chain.bundler_url} serves chain {bundler_chain_id}")
                    else:
                        logger.warning(
                            f"Bundler chain id {bundler_chain_id} does not match configured chain {self.chain.chain_id}"
                        )
        return self._initialized

    async def _check(self, action: str) -> None:
        if not await self.ready():
            logger.warning(f"{action} may fail: chainId mismatch")

    async def estimate_user_operation_gas(
        self, user_op: Union[UserOperation, Dict[str, Any]], entry_point: EntryPointAddress
    ) -> UserOperationGas:
        """Estimate gas limits for a UserOperation"""
        await self._check("estimateUserOpGas")
        if isinstance(user_op, UserOperation) and not user_op.is_signed:
            user_op = user_op.with_signature(DUMMY_SIGNATURE)
        user_op_dict = user_operation_to_rpc_format(user_op)

        result = await self.rpc.send("eth_estimateUserOperationGas", [user_op_dict, str(entry_point)])
        return UserOperationGas.from_rpc(result)

    async def send_user_operation(
        self, user_op: Union[UserOperation, Dict[str, Any]], entry_point: EntryPointAddress
    ) -> UserOperationResponse:
        """Submit a signed UserOperation and return its hash with a receipt accessor"""
        await self._check("sendUserOp")
        if isinstance(user_op, UserOperation):
            require(user_op.is_signed, "UserOperation must be signed before submission", field="signature")

        user_op_dict = user_operation_to_rpc_format(user_op)
        logger.info("Sending UserOperation to bundler...")
        logger.debug(f"Full UserOp to bundler: {user_op_dict}")

        user_op_hash = await self.rpc.send("eth_sendUserOperation", [user_op_dict, str(entry_point)])
        logger.info(f"UserOperation sent successfully: {user_op_hash}")
        return UserOperationResponse(user_op_hash, self.get_user_op_receipt)

    async def get_user_operation_by_hash(self, user_op_hash: Union[str, bytes]) -> Optional[UserOperationByHash]:
        await self._check("getUserOpByHash")
        result = await self.rpc.send("eth_getUserOperationByHash", [_hash_param(user_op_hash)])
        if not result:
            return None
        return UserOperationByHash.from_rpc(result)

    async def get_user_op_receipt(self, user_op_hash: Union[str, bytes]) -> Optional[UserOperationReceipt]:
        """Receipt of an included UserOperation, None while pending"""
        await self._check("getUserOpReceipt")
        result = await self.rpc.send("eth_getUserOperationReceipt", [_hash_param(user_op_hash)])
        if not result:
            return None
        return UserOperationReceipt.from_rpc(result)

    async def supported_entry_points(self) -> List[str]:
        result = await self.rpc.send("eth_supportedEntryPoints")
        return list(result)

    async def aclose(self) -> None:
        await self.rpc.aclose()


def _hash_param(user_op_hash: Union[str, bytes]) -> str:
    if isinstance(user_op_hash, str):
        return user_op_hash
    return _hex_bytes(HexBytes(user_op_hash))
