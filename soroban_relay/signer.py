"""
Signer capability: the secrets boundary.

Every backend that can authorize a transaction is exposed through one
interface with two operations:

    - sign_transaction(tx_xdr) -> signed envelope XDR
    - sign_auth_entry(preimage_xdr) -> SignedAuthEntry

The pipeline never sees key material and never checks which backend it
holds. The concrete variant is chosen once, when the session connects.

Concrete implementations:
    - InteractiveSigner: delegates to an external wallet connection. The
      user may take arbitrarily long, or decline.
    - DeterministicSigner: local ed25519 key for a numbered test slot.
      Non-production only.

Auth-entry convention (same as browser wallet kits): the input is the
base64 ``HashIdPreimage`` of the entry; the signer signs sha256 of its
bytes and returns the base64 signature together with the signing
address. Folding the signature into the entry is ``auth.attach_signature``.

Signatures are never cached.
"""

from __future__ import annotations

import base64
import hashlib
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Mapping, Protocol, runtime_checkable

from stellar_sdk import Keypair, TransactionEnvelope

from soroban_relay.errors import ConnectionCancelled, SigningRejected, SigningUnavailable
from soroban_relay.log import get_logger

if TYPE_CHECKING:
    from soroban_relay.config import RelaySettings

logger = get_logger(__name__)

# Numbered deterministic identities available to tests and local play.
DEV_SLOTS = (1, 2)


# =========================================================================
# Identity and results
# =========================================================================


class IdentityKind(StrEnum):
    INTERACTIVE = "interactive"
    DETERMINISTIC = "deterministic"


@dataclass(frozen=True)
class Identity:
    """The active address of a session.

    Attributes:
        address: Account strkey (G...).
        kind: Which signer backend authorizes for this address.
        wallet_id: Backend-specific label (wallet id or "dev-player<N>").
    """

    address: str
    kind: IdentityKind
    wallet_id: str | None = None


@dataclass(frozen=True)
class SignedAuthEntry:
    """Result of signing an authorization preimage.

    Attributes:
        signed_auth_entry: Base64 ed25519 signature over sha256(preimage).
        signer_address: Address whose key produced the signature.
    """

    signed_auth_entry: str
    signer_address: str

    @property
    def signature(self) -> bytes:
        return base64.b64decode(self.signed_auth_entry)


# =========================================================================
# Protocols
# =========================================================================


@runtime_checkable
class Signer(Protocol):
    """Interface for transaction and authorization signing.

    ``address`` arguments default to the bound identity's address.
    Implementations raise SigningRejected when declined and
    SigningUnavailable when the capability cannot be used.
    """

    @property
    def identity(self) -> Identity:
        ...

    @property
    def address(self) -> str:
        ...

    async def sign_transaction(
        self,
        tx_xdr: str,
        *,
        network_passphrase: str | None = None,
        address: str | None = None,
    ) -> str:
        """Sign a base64 TransactionEnvelope and return the signed XDR."""
        ...

    async def sign_auth_entry(
        self,
        preimage_xdr: str,
        *,
        network_passphrase: str | None = None,
        address: str | None = None,
    ) -> SignedAuthEntry:
        """Sign a base64 HashIdPreimage of an authorization entry."""
        ...


@runtime_checkable
class WalletConnection(Protocol):
    """An external wallet connection (browser extension, hardware, ...).

    ``get_address`` asks the user to pick a wallet and raises
    ConnectionCancelled when they close the selection. Signing calls may
    raise SigningRejected when the user declines; any other exception is
    treated as the wallet being unavailable.
    """

    async def get_address(self) -> str:
        ...

    async def sign_transaction(
        self, tx_xdr: str, *, network_passphrase: str, address: str
    ) -> str:
        ...

    async def sign_auth_entry(
        self, preimage_xdr: str, *, network_passphrase: str, address: str
    ) -> SignedAuthEntry:
        ...


# =========================================================================
# Interactive
# =========================================================================


class InteractiveSigner:
    """Signer that delegates to an external wallet connection.

    Never retries. Cancelling the awaiting task leaves the signer and the
    session untouched.
    """

    def __init__(
        self,
        connection: WalletConnection,
        identity: Identity,
        network_passphrase: str,
    ) -> None:
        self._connection = connection
        self._identity = identity
        self._passphrase = network_passphrase

    @property
    def identity(self) -> Identity:
        return self._identity

    @property
    def address(self) -> str:
        return self._identity.address

    async def sign_transaction(
        self,
        tx_xdr: str,
        *,
        network_passphrase: str | None = None,
        address: str | None = None,
    ) -> str:
        signing_address = address or self.address
        logger.info("wallet.sign_transaction", address=signing_address)
        try:
            return await self._connection.sign_transaction(
                tx_xdr,
                network_passphrase=network_passphrase or self._passphrase,
                address=signing_address,
            )
        except Exception as exc:
            raise _delegate_error("transaction", exc) from exc

    async def sign_auth_entry(
        self,
        preimage_xdr: str,
        *,
        network_passphrase: str | None = None,
        address: str | None = None,
    ) -> SignedAuthEntry:
        signing_address = address or self.address
        logger.info("wallet.sign_auth_entry", address=signing_address)
        try:
            return await self._connection.sign_auth_entry(
                preimage_xdr,
                network_passphrase=network_passphrase or self._passphrase,
                address=signing_address,
            )
        except Exception as exc:
            raise _delegate_error("auth entry", exc) from exc


def _delegate_error(what: str, exc: Exception) -> Exception:
    """Map a wallet failure onto the signing taxonomy."""
    if isinstance(exc, SigningRejected):
        return exc
    if isinstance(exc, ConnectionCancelled):
        return SigningRejected(f"{what} signing declined: {exc}")
    return SigningUnavailable(f"wallet could not sign {what}: {exc}")


# =========================================================================
# Deterministic
# =========================================================================


class DeterministicSigner:
    """Local ed25519 signer bound to one test slot."""

    def __init__(self, keypair: Keypair, slot: int, network_passphrase: str) -> None:
        self._keypair = keypair
        self._slot = slot
        self._passphrase = network_passphrase
        self._identity = Identity(
            address=keypair.public_key,
            kind=IdentityKind.DETERMINISTIC,
            wallet_id=f"dev-player{slot}",
        )

    @property
    def identity(self) -> Identity:
        return self._identity

    @property
    def address(self) -> str:
        return self._identity.address

    @property
    def slot(self) -> int:
        return self._slot

    def _require_own_address(self, address: str | None) -> None:
        if address is not None and address != self.address:
            raise SigningUnavailable(
                f"dev slot {self._slot} holds no key for {address}"
            )

    async def sign_transaction(
        self,
        tx_xdr: str,
        *,
        network_passphrase: str | None = None,
        address: str | None = None,
    ) -> str:
        self._require_own_address(address)
        envelope = TransactionEnvelope.from_xdr(tx_xdr, network_passphrase or self._passphrase)
        envelope.sign(self._keypair)
        return envelope.to_xdr()

    async def sign_auth_entry(
        self,
        preimage_xdr: str,
        *,
        network_passphrase: str | None = None,
        address: str | None = None,
    ) -> SignedAuthEntry:
        # The network id is already bound into the preimage.
        self._require_own_address(address)
        payload = hashlib.sha256(base64.b64decode(preimage_xdr)).digest()
        signature = self._keypair.sign(payload)
        return SignedAuthEntry(
            signed_auth_entry=base64.b64encode(signature).decode("ascii"),
            signer_address=self.address,
        )


class DevKeyring:
    """Key material for the numbered deterministic identities.

    At most one signer exists per slot; repeated lookups return the same
    signer, so addresses are stable for the life of the process.

    Args:
        secrets: Slot number -> secret seed (S...). Missing or empty means
            the slot is unavailable in this runtime.
        network_passphrase: Passphrase signers default to.
    """

    def __init__(self, secrets: Mapping[int, str | None], network_passphrase: str) -> None:
        self._secrets = {slot: secrets.get(slot) for slot in DEV_SLOTS}
        self._passphrase = network_passphrase
        self._signers: dict[int, DeterministicSigner] = {}

    @classmethod
    def from_settings(cls, settings: RelaySettings) -> DevKeyring:
        return cls(
            {slot: settings.dev_secret(slot) for slot in DEV_SLOTS},
            settings.passphrase,
        )

    def is_slot_available(self, slot: int) -> bool:
        return bool(self._secrets.get(slot))

    def is_dev_mode_available(self) -> bool:
        return any(self.is_slot_available(slot) for slot in DEV_SLOTS)

    def signer(self, slot: int) -> DeterministicSigner:
        """Signer for ``slot``, created on first use.

        Raises:
            SigningUnavailable: Unknown slot, no key material configured,
                or the configured seed is not a valid secret.
        """
        if slot not in DEV_SLOTS:
            raise SigningUnavailable(f"dev slot must be one of {DEV_SLOTS}, got {slot}")
        existing = self._signers.get(slot)
        if existing is not None:
            return existing

        secret = self._secrets.get(slot)
        if not secret:
            raise SigningUnavailable(f"no key material configured for dev slot {slot}")
        try:
            keypair = Keypair.from_secret(secret)
        except ValueError as exc:
            raise SigningUnavailable(f"invalid key material for dev slot {slot}") from exc

        signer = DeterministicSigner(keypair, slot, self._passphrase)
        self._signers[slot] = signer
        logger.info("dev_signer.created", slot=slot, address=signer.address)
        return signer
