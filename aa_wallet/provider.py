"""
Execution node JSON-RPC provider: gas, block and fee queries
"""

import logging
from typing import Optional

from hexbytes import HexBytes
from web3 import Web3

from aa_wallet.config import DEFAULT_RPC_TIMEOUT, Chain, is_url
from aa_wallet.exceptions import ConfigurationError, RPCError
from aa_wallet.fees import GasPrice
from aa_wallet.rpc import RPCBase
from aa_wallet.types import BlockInformation, hex_to_int

logger = logging.getLogger(__name__)


class JsonRPCProvider:
    """Ledger queries against the chain's execution endpoint"""

    def __init__(self, chain: Chain, rpc: Optional[RPCBase] = None, timeout: float = DEFAULT_RPC_TIMEOUT):
        if not is_url(chain.json_rpc_url):
            raise ConfigurationError(f"Invalid JSON-RPC url: {chain.json_rpc_url!r}", {"url": chain.json_rpc_url})
        self.chain = chain
        self.rpc = rpc or RPCBase(chain.json_rpc_url, timeout=timeout)

    async def estimate_gas(self, to: str, calldata: bytes) -> int:
        result = await self.rpc.send(
            "eth_estimateGas",
            [{"to": Web3.to_checksum_address(to), "data": "0x" + bytes(HexBytes(calldata)).hex()}],
        )
        return hex_to_int(result)

    async def get_block_number(self) -> int:
        return hex_to_int(await self.rpc.send("eth_blockNumber"))

    async def get_chain_id(self) -> int:
        return hex_to_int(await self.rpc.send("eth_chainId"))

    async def get_balance(self, address: str, tag: str = "latest") -> int:
        return hex_to_int(await self.rpc.send("eth_getBalance", [Web3.to_checksum_address(address), tag]))

    async def get_block_information(self, tag: str = "latest") -> BlockInformation:
        """Fetch number, hash and timestamp of a block"""
        block = await self.rpc.send("eth_getBlockByNumber", [tag, False])
        if block is None:
            raise RPCError(f"Block {tag} not found", method="eth_getBlockByNumber", endpoint=self.rpc.url)
        return BlockInformation.from_rpc(block)

    async def call(self, to: str, data: bytes, tag: str = "latest") -> HexBytes:
        """eth_call against the given block"""
        result = await self.rpc.send(
            "eth_call",
            [{"to": Web3.to_checksum_address(to), "data": "0x" + bytes(HexBytes(data)).hex()}, tag],
        )
        return HexBytes(result)

    async def get_gas_price(self) -> GasPrice:
        """EIP-1559 fees, falling back to the legacy gas price when unsupported"""
        try:
            return await self.get_eip1559_gas_price()
        except Exception as e:
            logger.warning(f"eth_maxPriorityFeePerGas unavailable ({e}), falling back to eth_gasPrice")
            value = await self.get_legacy_gas_price()
            return GasPrice.from_legacy_price(value)

    async def get_eip1559_gas_price(self) -> GasPrice:
        tip = hex_to_int(await self.rpc.send("eth_maxPriorityFeePerGas"))
        return GasPrice.from_priority_fee(tip)

    async def get_legacy_gas_price(self) -> int:
        return hex_to_int(await self.rpc.send("eth_gasPrice"))

    async def aclose(self) -> None:
        await self.rpc.aclose()
