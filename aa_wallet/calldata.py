"""
Calldata encoding for smart account execution and common token calls
"""

import logging
from typing import Any, List, Optional, Sequence, Tuple

from eth_abi import decode, encode
from hexbytes import HexBytes
from web3 import Web3

from aa_wallet.exceptions import PreconditionError, require

logger = logging.getLogger(__name__)

EXECUTE = "execute(address,uint256,bytes)"
EXECUTE_BATCH = "executeBatch(address[],uint256[],bytes[])"

ERC20_TRANSFER = "transfer(address,uint256)"
ERC20_APPROVE = "approve(address,uint256)"
ERC721_SAFE_TRANSFER_FROM = "safeTransferFrom(address,address,uint256)"
ERC721_APPROVE = "approve(address,uint256)"


def function_selector(signature: str) -> bytes:
    return bytes(Web3.keccak(text=signature)[:4])


# Function selectors for the account's execute functions
EXECUTE_SELECTOR = function_selector(EXECUTE)
EXECUTE_BATCH_SELECTOR = function_selector(EXECUTE_BATCH)


def encode_function_call(signature: str, types: Sequence[str], args: Sequence[Any]) -> HexBytes:
    """Selector of `signature` followed by the ABI-encoded arguments"""
    return HexBytes(function_selector(signature) + encode(list(types), list(args)))


def encode_single_call(target: str, value_wei: int = 0, inner_data: Optional[bytes] = None, adapter=None) -> HexBytes:
    """Encode execute(address,uint256,bytes), or the adapter's wrapped form"""
    target = Web3.to_checksum_address(target)
    data = bytes(HexBytes(inner_data)) if inner_data else b""

    if adapter is not None:
        return HexBytes(adapter.wrap_calldata([target], [value_wei], [data], batch=False))

    return encode_function_call(EXECUTE, ["address", "uint256", "bytes"], [target, value_wei, data])


def encode_batch_call(
    targets: Sequence[str],
    values_wei: Optional[Sequence[int]] = None,
    inner_data_list: Optional[Sequence[bytes]] = None,
    adapter=None,
) -> HexBytes:
    """Encode executeBatch(address[],uint256[],bytes[]), or the adapter's wrapped form.

    Calls without inner data are plain value transfers, so they must carry
    amounts; missing amounts default to zero for every target.
    """
    if not inner_data_list:
        require(bool(values_wei), "malformed batch request", field="values_wei", value=values_wei)

    targets = [Web3.to_checksum_address(t) for t in targets]
    values = list(values_wei) if values_wei else [0] * len(targets)
    inner = [bytes(HexBytes(d)) if d else b"" for d in inner_data_list] if inner_data_list else [b""] * len(targets)

    if len(values) != len(targets) or len(inner) != len(targets):
        raise PreconditionError(
            "malformed batch request: targets, values and inner data differ in length",
            details={"targets": len(targets), "values": len(values), "inner_data": len(inner)},
        )

    if adapter is not None:
        return HexBytes(adapter.wrap_calldata(targets, values, inner, batch=True))

    return encode_function_call(EXECUTE_BATCH, ["address[]", "uint256[]", "bytes[]"], [targets, values, inner])


def decode_single_call(calldata: bytes) -> Tuple[str, int, bytes]:
    """Decode execute(address,uint256,bytes) calldata back into its arguments"""
    calldata = bytes(HexBytes(calldata))
    require(calldata[:4] == EXECUTE_SELECTOR, "calldata is not an execute call", field="calldata")
    target, value, data = decode(["address", "uint256", "bytes"], calldata[4:])
    return Web3.to_checksum_address(target), value, data


def decode_batch_call(calldata: bytes) -> Tuple[List[str], List[int], List[bytes]]:
    calldata = bytes(HexBytes(calldata))
    require(calldata[:4] == EXECUTE_BATCH_SELECTOR, "calldata is not an executeBatch call", field="calldata")
    targets, values, inner = decode(["address[]", "uint256[]", "bytes[]"], calldata[4:])
    return [Web3.to_checksum_address(t) for t in targets], list(values), list(inner)


def encode_erc20_transfer(recipient: str, amount: int) -> HexBytes:
    return encode_function_call(ERC20_TRANSFER, ["address", "uint256"], [Web3.to_checksum_address(recipient), amount])


def encode_erc20_approve(spender: str, amount: int) -> HexBytes:
    return encode_function_call(ERC20_APPROVE, ["address", "uint256"], [Web3.to_checksum_address(spender), amount])


def encode_erc721_transfer(owner: str, recipient: str, token_id: int) -> HexBytes:
    return encode_function_call(
        ERC721_SAFE_TRANSFER_FROM,
        ["address", "address", "uint256"],
        [Web3.to_checksum_address(owner), Web3.to_checksum_address(recipient), token_id],
    )


def encode_erc721_approve(spender: str, token_id: int) -> HexBytes:
    return encode_function_call(ERC721_APPROVE, ["address", "uint256"], [Web3.to_checksum_address(spender), token_id])
