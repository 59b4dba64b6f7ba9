import pytest
from eth_account import Account
from eth_account.messages import encode_defunct

from aa_wallet.exceptions import ConfigurationError, PreconditionError
from aa_wallet.safe import Safe4337Adapter
from aa_wallet.signer import PrivateKeyCredential, Signer, SignerType

from conftest import PRIVATE_KEY

HASH = bytes(range(32))


class RecordingBackend:
    def __init__(self, output=b"\x42" * 65):
        self.output = output
        self.calls = []

    def sign(self, *args, **kwargs):
        self.calls.append((args, kwargs))
        return self.output


class AsyncBackend(RecordingBackend):
    async def sign(self, *args, **kwargs):
        return super().sign(*args, **kwargs)


def test_requires_at_least_one_backend():
    with pytest.raises(ConfigurationError, match="At least one signer is required"):
        Signer()


def test_default_signer_must_have_a_backend():
    with pytest.raises(ConfigurationError):
        Signer(credential=RecordingBackend(), default_signer=SignerType.PASSKEY)


@pytest.mark.asyncio
async def test_credential_output_is_returned_unmodified():
    backend = RecordingBackend(output=b"\x01\x02\x03")
    signer = Signer(credential=backend)

    signature = await signer.sign(HASH)

    assert signature == b"\x01\x02\x03"
    assert backend.calls == [((HASH,), {})]


@pytest.mark.asyncio
async def test_only_the_default_backend_is_invoked():
    credential = RecordingBackend()
    hdkey = RecordingBackend(output=b"\x07" * 65)
    signer = Signer(credential=credential, hdkey=hdkey, default_signer=SignerType.HDKEY)

    signature = await signer.sign(HASH, index=2, id="wallet-1")

    assert signature == b"\x07" * 65
    assert hdkey.calls == [((HASH,), {"index": 2, "id": "wallet-1"})]
    assert credential.calls == []


@pytest.mark.asyncio
async def test_passkey_requires_credential_id():
    passkey = RecordingBackend()
    signer = Signer(passkey=passkey, default_signer=SignerType.PASSKEY)

    with pytest.raises(PreconditionError, match="Passkey Credential ID is required"):
        await signer.sign(HASH)
    with pytest.raises(PreconditionError):
        await signer.sign(HASH, id="")
    assert passkey.calls == []


@pytest.mark.asyncio
async def test_passkey_receives_hex_hash_and_credential_id():
    passkey = AsyncBackend(output=b"\x99" * 64)
    signer = Signer(passkey=passkey, default_signer=SignerType.PASSKEY)

    signature = await signer.sign(HASH, id="cred-1")

    assert signature == b"\x99" * 64
    assert passkey.calls == [(("0x" + HASH.hex(), "cred-1"), {})]


@pytest.mark.asyncio
async def test_adapter_wraps_signature_with_block_context(block):
    adapter = Safe4337Adapter()
    raw = b"\x01" * 64 + b"\x1b"
    signer = Signer(credential=RecordingBackend(output=raw), adapter=adapter)

    signature = await signer.sign(HASH, block=block)

    assert signature == adapter.wrap_signature(raw, block)
    assert len(signature) == 12 + 65


@pytest.mark.asyncio
async def test_adapter_requires_block_context():
    signer = Signer(credential=RecordingBackend(), adapter=Safe4337Adapter())

    with pytest.raises(PreconditionError):
        await signer.sign(HASH)


def test_private_key_credential_signs_raw_hash():
    credential = PrivateKeyCredential(PRIVATE_KEY)

    signature = credential.sign(HASH)

    assert len(signature) == 65
    assert Account._recover_hash(HASH, signature=signature) == credential.address


def test_private_key_credential_signs_prefixed_hash():
    credential = PrivateKeyCredential(PRIVATE_KEY, prefixed=True)

    signature = credential.sign(HASH)

    assert Account.recover_message(encode_defunct(primitive=HASH), signature=signature) == credential.address
