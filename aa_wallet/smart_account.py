"""
Smart account wallet: builds, signs and submits UserOperations
"""

import logging
from dataclasses import replace
from typing import List, Optional, Sequence

from eth_abi import decode
from hexbytes import HexBytes
from web3 import Web3

from aa_wallet.bundler import BundlerClient, UserOperationResponse
from aa_wallet.calldata import (
    encode_batch_call,
    encode_erc20_approve,
    encode_erc20_transfer,
    encode_erc721_approve,
    encode_erc721_transfer,
    encode_single_call,
)
from aa_wallet.config import Chain
from aa_wallet.exceptions import ConfigurationError
from aa_wallet.provider import JsonRPCProvider
from aa_wallet.signer import Signer
from aa_wallet.types import BlockInformation
from aa_wallet.user_operations import DUMMY_SIGNATURE, UserOperation

logger = logging.getLogger(__name__)

ENTRY_POINT_ABI = [
    {
        "inputs": [{"name": "sender", "type": "address"}, {"name": "key", "type": "uint192"}],
        "name": "getNonce",
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    }
]


class SmartWallet:
    """Acts on behalf of one smart contract account on one chain"""

    def __init__(
        self,
        chain: Chain,
        address: str,
        signer: Signer,
        adapter=None,
        bundler: Optional[BundlerClient] = None,
        provider: Optional[JsonRPCProvider] = None,
    ):
        if adapter is not None and signer.adapter is not None and adapter is not signer.adapter:
            raise ConfigurationError("Wallet and signer must share the same multisig adapter")
        if adapter is not None and signer.adapter is None:
            raise ConfigurationError("Signer must be configured with the wallet's multisig adapter")

        self.chain = chain
        self.address = Web3.to_checksum_address(address)
        self.signer = signer
        self.adapter = adapter if adapter is not None else signer.adapter
        self.bundler = bundler or BundlerClient(chain)
        self.provider = provider or JsonRPCProvider(chain)
        self.entry_point_contract = Web3().eth.contract(address=chain.entry_point.address, abi=ENTRY_POINT_ABI)

        logger.info(f"Smart wallet initialized for {self.address} on chain {chain.chain_id}")

    # Calldata

    def get_execute_calldata(self, to: str, amount: int = 0, inner_call_data: Optional[bytes] = None) -> HexBytes:
        return encode_single_call(to, amount, inner_call_data, adapter=self.adapter)

    def get_execute_batch_calldata(
        self,
        recipients: Sequence[str],
        amounts: Optional[Sequence[int]] = None,
        inner_calls: Optional[Sequence[bytes]] = None,
    ) -> HexBytes:
        return encode_batch_call(recipients, amounts, inner_calls, adapter=self.adapter)

    def _partial(self, call_data: bytes) -> UserOperation:
        return UserOperation.partial(call_data, sender=self.address)

    def get_token_transfer_user_operation(self, token: str, recipient: str, amount: int) -> UserOperation:
        """UserOperation calling ERC-20 transfer(recipient, amount) on `token`"""
        return self._partial(self.get_execute_calldata(token, inner_call_data=encode_erc20_transfer(recipient, amount)))

    def get_token_approve_user_operation(self, token: str, spender: str, amount: int) -> UserOperation:
        return self._partial(self.get_execute_calldata(token, inner_call_data=encode_erc20_approve(spender, amount)))

    def get_nft_transfer_user_operation(self, collection: str, recipient: str, token_id: int) -> UserOperation:
        """UserOperation calling ERC-721 safeTransferFrom(wallet, recipient, tokenId)"""
        inner = encode_erc721_transfer(self.address, recipient, token_id)
        return self._partial(self.get_execute_calldata(collection, inner_call_data=inner))

    def get_nft_approve_user_operation(self, collection: str, spender: str, token_id: int) -> UserOperation:
        return self._partial(self.get_execute_calldata(collection, inner_call_data=encode_erc721_approve(spender, token_id)))

    # Chain state

    async def get_nonce(self, key: int = 0) -> int:
        """Current nonce for this account from the EntryPoint"""
        data = self.entry_point_contract.encode_abi("getNonce", args=[self.address, key])
        result = await self.provider.call(self.entry_point_contract.address, data)
        output_types = [output["type"] for output in ENTRY_POINT_ABI[0]["outputs"]]
        (nonce,) = decode(output_types, bytes(result))
        logger.info(f"Current nonce: {nonce}")
        return nonce

    async def get_balance(self) -> int:
        return await self.provider.get_balance(self.address)

    # Hashing, signing, submission

    def get_user_operation_hash(self, op: UserOperation, block: Optional[BlockInformation] = None) -> HexBytes:
        return op.unsigned().hash(self.chain, adapter=self.adapter, block=block)

    async def _block_context(self, block: Optional[BlockInformation]) -> Optional[BlockInformation]:
        if self.adapter is None or block is not None:
            return block
        return await self.provider.get_block_information()

    async def prepare_user_operation(
        self, op: UserOperation, update_nonce: bool = True, block: Optional[BlockInformation] = None
    ) -> UserOperation:
        """Fill sender, nonce, fees and gas limits of a partial UserOperation"""
        nonce = await self.get_nonce() if update_nonce else op.nonce
        fees = await self.provider.get_gas_price()
        op = replace(op, sender=self.address, nonce=nonce).with_fees(fees)

        dummy = DUMMY_SIGNATURE
        if self.adapter is not None:
            dummy = self.adapter.wrap_signature(DUMMY_SIGNATURE, await self._block_context(block))
        gas = await self.bundler.estimate_user_operation_gas(op.with_signature(dummy), self.chain.entry_point)
        return op.with_gas(gas)

    async def sign_user_operation(
        self,
        op: UserOperation,
        index: Optional[int] = None,
        id: Optional[str] = None,
        block: Optional[BlockInformation] = None,
    ) -> UserOperation:
        """Hash the unsigned operation and attach the signer's signature"""
        block = await self._block_context(block)
        op_hash = self.get_user_operation_hash(op, block)
        signature = await self.signer.sign(op_hash, index=index, id=id, block=block)
        logger.info(f"Signed UserOperation 0x{bytes(op_hash).hex()} for {op.sender}")
        return op.with_signature(signature)

    async def send_user_operation(
        self, op: UserOperation, index: Optional[int] = None, id: Optional[str] = None
    ) -> UserOperationResponse:
        """Prepare, sign and submit a UserOperation"""
        block = await self._block_context(None)
        prepared = await self.prepare_user_operation(op, block=block)
        signed = await self.sign_user_operation(prepared, index=index, id=id, block=block)
        return await self.bundler.send_user_operation(signed, self.chain.entry_point)

    async def send_transaction(
        self,
        to: str,
        encoded_function_data: Optional[bytes] = None,
        amount: int = 0,
        index: Optional[int] = None,
        id: Optional[str] = None,
    ) -> UserOperationResponse:
        op = self._partial(self.get_execute_calldata(to, amount, encoded_function_data))
        logger.info(f"Sending {amount} wei to {to}")
        return await self.send_user_operation(op, index=index, id=id)

    async def send_batched_transaction(
        self,
        recipients: List[str],
        calls: Optional[List[bytes]] = None,
        amounts: Optional[List[int]] = None,
        index: Optional[int] = None,
        id: Optional[str] = None,
    ) -> UserOperationResponse:
        op = self._partial(self.get_execute_batch_calldata(recipients, amounts, calls))
        logger.info(f"Sending batch of {len(recipients)} calls")
        return await self.send_user_operation(op, index=index, id=id)
