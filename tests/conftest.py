import json

import httpx
import pytest
from web3 import Web3

from aa_wallet.config import Chain
from aa_wallet.types import BlockInformation

WALLET = Web3.to_checksum_address("0x" + "bb" * 20)
TARGET = Web3.to_checksum_address("0x" + "aa" * 20)
RECIPIENT = Web3.to_checksum_address("0x1234567890abcdef1234567890abcdef12345678")

# well-known anvil/hardhat test key #0
PRIVATE_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"


class FakeRPC:
    """Stands in for RPCBase; answers by method name and records calls"""

    def __init__(self, responses=None, url="https://rpc.example"):
        self.responses = dict(responses or {})
        self.calls = []
        self.url = url
        self.closed = False

    async def send(self, method, params=None):
        self.calls.append((method, params))
        response = self.responses[method]
        if isinstance(response, Exception):
            raise response
        if callable(response):
            return response(params)
        return response

    def methods(self):
        return [method for method, _ in self.calls]

    async def aclose(self):
        self.closed = True


class RecordingTransport:
    """httpx transport answering every request with one JSON body"""

    def __init__(self, payload, status_code=200):
        self.payload = payload
        self.status_code = status_code
        self.requests = []

    def __call__(self, request):
        self.requests.append(request)
        body = json.loads(request.content)
        payload = self.payload(body) if callable(self.payload) else self.payload
        return httpx.Response(self.status_code, json=payload)

    def client(self):
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


@pytest.fixture
def chain():
    return Chain(
        chain_id=84532,
        bundler_url="https://bundler.example/rpc",
        json_rpc_url="https://node.example/rpc",
    )


@pytest.fixture
def block():
    return BlockInformation(number=1000, hash=b"\x11" * 32, timestamp=1_700_000_000)
