"""
Signer dispatcher routing UserOperation hashes to one configured credential backend
"""

import inspect
import logging
from enum import Enum
from typing import Any, Optional, Protocol, Union, runtime_checkable

from eth_account import Account
from eth_account.messages import encode_defunct
from eth_account.signers.local import LocalAccount
from hexbytes import HexBytes

from aa_wallet.exceptions import ConfigurationError, require
from aa_wallet.types import BlockInformation

logger = logging.getLogger(__name__)


class SignerType(Enum):
    PASSKEY = "passkey"
    HDKEY = "hdkey"
    CREDENTIAL = "credential"


@runtime_checkable
class PasskeyInterface(Protocol):
    """Hardware credential (WebAuthn passkey) ceremony; signs a hex-encoded hash"""

    def sign(self, hash_hex: str, credential_id: str) -> Any: ...


@runtime_checkable
class HDKeyInterface(Protocol):
    """Hierarchical deterministic key store"""

    def sign(self, hash: bytes, index: Optional[int] = None, id: Optional[str] = None) -> Any: ...


@runtime_checkable
class CredentialInterface(Protocol):
    """Platform credential holding a single key"""

    def sign(self, hash: bytes) -> Any: ...


async def _resolve(result: Any) -> bytes:
    # backends may be plain or coroutine functions
    if inspect.isawaitable(result):
        result = await result
    return HexBytes(result)


class Signer:
    """Signs hashes with exactly one backend, chosen by the default signer type.

    No fallback between backends is attempted. When a multisig adapter is
    configured the backend's signature is wrapped into the adapter's
    on-chain container using the block context passed to `sign`.
    """

    def __init__(
        self,
        passkey: Optional[PasskeyInterface] = None,
        hdkey: Optional[HDKeyInterface] = None,
        credential: Optional[CredentialInterface] = None,
        default_signer: SignerType = SignerType.CREDENTIAL,
        adapter=None,
    ):
        if passkey is None and hdkey is None and credential is None:
            raise ConfigurationError("At least one signer is required")

        self.passkey = passkey
        self.hdkey = hdkey
        self.credential = credential
        self.adapter = adapter
        self.default_signer = SignerType(default_signer)

        if self._backend(self.default_signer) is None:
            raise ConfigurationError(
                f"No backend configured for default signer '{self.default_signer.value}'",
                {"default_signer": self.default_signer.value},
            )

    def _backend(self, signer_type: SignerType):
        return {
            SignerType.PASSKEY: self.passkey,
            SignerType.HDKEY: self.hdkey,
            SignerType.CREDENTIAL: self.credential,
        }[signer_type]

    async def sign(
        self,
        hash: bytes,
        index: Optional[int] = None,
        id: Optional[str] = None,
        block: Optional[BlockInformation] = None,
    ) -> HexBytes:
        """Sign a hash with the default backend"""
        hash = HexBytes(hash)
        if self.adapter is not None:
            require(block is not None, "block information is required to wrap multisig signatures", field="block")

        if self.default_signer is SignerType.PASSKEY:
            require(bool(id), "Passkey Credential ID is required", field="id", value=id)
            signature = await _resolve(self.passkey.sign("0x" + bytes(hash).hex(), id))
        elif self.default_signer is SignerType.HDKEY:
            signature = await _resolve(self.hdkey.sign(hash, index=index, id=id))
        else:
            signature = await _resolve(self.credential.sign(hash))

        logger.debug(f"Signed 0x{bytes(hash).hex()} with {self.default_signer.value} signer")

        if self.adapter is not None:
            return HexBytes(self.adapter.wrap_signature(signature, block))
        return signature


class PrivateKeyCredential:
    """Platform credential backed by a local secp256k1 key.

    With `prefixed=True` the hash is signed as an EIP-191 personal message,
    which is what eth_sign-style verifiers (e.g. Safe) recover against.
    """

    def __init__(self, private_key: Union[str, bytes], prefixed: bool = False):
        self.account: LocalAccount = Account.from_key(private_key)
        self.prefixed = prefixed

    @property
    def address(self) -> str:
        return self.account.address

    def sign(self, hash: bytes) -> HexBytes:
        if self.prefixed:
            signed = self.account.sign_message(encode_defunct(primitive=bytes(hash)))
        else:
            signed = self.account.unsafe_sign_hash(bytes(hash))
        return HexBytes(signed.signature)
