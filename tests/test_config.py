import pytest

from aa_wallet.config import ENTRYPOINT_V06, Chain, EntryPointAddress, is_url
from aa_wallet.exceptions import ConfigurationError


def test_chain_from_env(monkeypatch):
    monkeypatch.setenv("AA_CHAIN_ID", "84532")
    monkeypatch.setenv("AA_BUNDLER_URL", "https://bundler.example/rpc")
    monkeypatch.setenv("AA_RPC_URL", "https://node.example/rpc")
    monkeypatch.delenv("AA_ENTRY_POINT", raising=False)

    chain = Chain.from_env()

    assert chain.chain_id == 84532
    assert chain.bundler_url == "https://bundler.example/rpc"
    assert chain.json_rpc_url == "https://node.example/rpc"
    assert chain.entry_point == EntryPointAddress(ENTRYPOINT_V06)


def test_chain_from_env_accepts_hex_chain_id(monkeypatch):
    monkeypatch.setenv("AA_CHAIN_ID", "0x14a34")

    assert Chain.from_env().chain_id == 84532


def test_chain_from_env_requires_chain_id(monkeypatch):
    monkeypatch.delenv("AA_CHAIN_ID", raising=False)

    with pytest.raises(ConfigurationError, match="AA_CHAIN_ID"):
        Chain.from_env()


def test_chain_from_env_rejects_non_integer(monkeypatch):
    monkeypatch.setenv("AA_CHAIN_ID", "base")

    with pytest.raises(ConfigurationError):
        Chain.from_env()


def test_entry_point_is_checksummed():
    entry_point = EntryPointAddress(ENTRYPOINT_V06.lower())

    assert entry_point.address == ENTRYPOINT_V06
    assert str(entry_point) == ENTRYPOINT_V06


def test_entry_point_rejects_garbage():
    with pytest.raises(ConfigurationError):
        EntryPointAddress("0x1234")


@pytest.mark.parametrize(
    "value,expected",
    [
        ("https://node.example", True),
        ("http://127.0.0.1:8545", True),
        ("wss://node.example/ws", True),
        ("node.example", False),
        ("", False),
        (None, False),
    ],
)
def test_is_url(value, expected):
    assert is_url(value) is expected
