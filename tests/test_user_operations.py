from dataclasses import FrozenInstanceError, replace

import pytest
from eth_abi import encode
from web3 import Web3

from aa_wallet.config import DEFAULT_GAS_LIMITS, Chain, EntryPointAddress
from aa_wallet.fees import GasPrice
from aa_wallet.safe import Safe4337Adapter
from aa_wallet.types import UserOperationGas
from aa_wallet.user_operations import ZERO_ADDRESS, UserOperation

from conftest import WALLET


def _op(**overrides):
    op = UserOperation.partial(
        b"\x12\x34",
        sender=WALLET,
        nonce=3,
        max_fee_per_gas=2_000_000_000,
        max_priority_fee_per_gas=1_000_000_000,
    )
    return replace(op, **overrides)


def test_partial_only_populates_call_data():
    op = UserOperation.partial("0xabcd")

    assert op.call_data == b"\xab\xcd"
    assert op.sender == ZERO_ADDRESS
    assert op.nonce == 0
    assert op.init_code == b""
    assert op.paymaster_and_data == b""
    assert op.signature == b""
    assert op.call_gas_limit == DEFAULT_GAS_LIMITS["call"]
    assert op.verification_gas_limit == DEFAULT_GAS_LIMITS["verification"]
    assert op.pre_verification_gas == DEFAULT_GAS_LIMITS["pre_verification"]
    assert not op.is_signed


def test_hash_is_deterministic(chain):
    assert _op().hash(chain) == _op().hash(chain)
    assert len(_op().hash(chain)) == 32


def test_hash_matches_entry_point_v06_definition(chain):
    op = _op(init_code=b"\x01", paymaster_and_data=b"\x02")
    packed = encode(
        ["address", "uint256", "bytes32", "bytes32"] + ["uint256"] * 5 + ["bytes32"],
        [
            op.sender,
            op.nonce,
            Web3.keccak(b"\x01"),
            Web3.keccak(b"\x12\x34"),
            op.call_gas_limit,
            op.verification_gas_limit,
            op.pre_verification_gas,
            op.max_fee_per_gas,
            op.max_priority_fee_per_gas,
            Web3.keccak(b"\x02"),
        ],
    )
    expected = Web3.keccak(
        encode(["bytes32", "address", "uint256"], [Web3.keccak(packed), chain.entry_point.address, chain.chain_id])
    )

    assert op.hash(chain) == expected


def test_hash_depends_on_chain_id_and_entry_point(chain):
    op = _op()
    other_chain = replace(chain, chain_id=1)
    other_entry_point = replace(chain, entry_point=EntryPointAddress("0x" + "11" * 20))

    assert op.hash(chain) != op.hash(other_chain)
    assert op.hash(chain) != op.hash(other_entry_point)


@pytest.mark.parametrize(
    "field,value",
    [
        ("sender", "0x" + "cc" * 20),
        ("nonce", 4),
        ("init_code", b"\x00"),
        ("call_data", b"\x12\x35"),
        ("call_gas_limit", 1),
        ("verification_gas_limit", 1),
        ("pre_verification_gas", 1),
        ("max_fee_per_gas", 1),
        ("max_priority_fee_per_gas", 1),
        ("paymaster_and_data", b"\x01"),
    ],
)
def test_changing_any_field_changes_hash(chain, field, value):
    assert _op().hash(chain) != _op(**{field: value}).hash(chain)


def test_signature_is_not_part_of_hash(chain):
    assert _op().hash(chain) == _op().with_signature(b"\x01" * 65).hash(chain)


def test_adapter_hash_replaces_entry_point_hash(chain, block):
    adapter = Safe4337Adapter()
    op = _op()

    assert op.hash(chain, adapter=adapter, block=block) == adapter.compute_hash(op, chain, block)
    assert op.hash(chain, adapter=adapter, block=block) != op.hash(chain)


def test_with_gas_and_fees_return_updated_copies():
    op = _op()
    updated = op.with_gas(UserOperationGas(1, 2, 3)).with_fees(GasPrice(4, 5))

    assert (updated.pre_verification_gas, updated.verification_gas_limit, updated.call_gas_limit) == (1, 2, 3)
    assert (updated.max_fee_per_gas, updated.max_priority_fee_per_gas) == (4, 5)
    assert op.call_gas_limit == DEFAULT_GAS_LIMITS["call"]


def test_from_rpc_parses_hex_fields():
    op = UserOperation.from_rpc(
        {
            "sender": WALLET.lower(),
            "nonce": "0x3",
            "initCode": "0x",
            "callData": "0x1234",
            "callGasLimit": "0x10",
            "verificationGasLimit": "0x20",
            "preVerificationGas": "0x30",
            "maxFeePerGas": "0x40",
            "maxPriorityFeePerGas": "0x50",
            "paymasterAndData": "0x",
            "signature": "0x",
        }
    )

    assert op.sender == WALLET
    assert op.nonce == 3
    assert op.call_data == b"\x12\x34"
    assert (op.call_gas_limit, op.verification_gas_limit, op.pre_verification_gas) == (16, 32, 48)
    assert (op.max_fee_per_gas, op.max_priority_fee_per_gas) == (64, 80)


def test_chain_is_immutable(chain):
    with pytest.raises(FrozenInstanceError):
        chain.chain_id = 1
    assert isinstance(chain, Chain)
