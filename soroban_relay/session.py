"""
Session context.

Owns the "current session" facts that the rest of the pipeline reads at
the moment of use:

    - the active Identity and its Signer (exactly one, or none),
    - the external wallet connection (created lazily, reused until
      disconnect),
    - the anti-automation token slot (independent of the identity; a
      disconnect leaves it alone).

There is no locking. Concurrent transactions read whatever is current;
last write wins. Tests build independent sessions instead of sharing
module globals.
"""

from __future__ import annotations

from typing import Callable

from soroban_relay.config import RelaySettings
from soroban_relay.errors import SigningUnavailable
from soroban_relay.log import get_logger
from soroban_relay.signer import (
    DevKeyring,
    DeterministicSigner,
    Identity,
    IdentityKind,
    InteractiveSigner,
    Signer,
    WalletConnection,
)
from soroban_relay.token_store import AntiAutomationTokenStore

logger = get_logger(__name__)

WALLET_INSTALL_LINK = "https://www.freighter.app/"


class SessionContext:
    """One user's connection state.

    Args:
        settings: Runtime settings (network passphrase, dev key material).
        wallet_factory: Creates the external wallet connection. Called at
            most once per connect/disconnect cycle. None disables
            interactive connections.
        keyring: Deterministic key material. Defaults to one built from
            settings.
        token_store: Anti-automation token slot. Defaults to a new store.
    """

    def __init__(
        self,
        settings: RelaySettings,
        *,
        wallet_factory: Callable[[], WalletConnection] | None = None,
        keyring: DevKeyring | None = None,
        token_store: AntiAutomationTokenStore | None = None,
    ) -> None:
        self._settings = settings
        self._wallet_factory = wallet_factory
        self._keyring = keyring or DevKeyring.from_settings(settings)
        self.token_store = token_store or AntiAutomationTokenStore()
        self._wallet: WalletConnection | None = None
        self._signer: Signer | None = None

    @property
    def settings(self) -> RelaySettings:
        return self._settings

    @property
    def identity(self) -> Identity | None:
        return self._signer.identity if self._signer is not None else None

    @property
    def is_connected(self) -> bool:
        return self._signer is not None

    @property
    def install_link(self) -> str:
        return WALLET_INSTALL_LINK

    # -----------------------------------------------------------------
    # Connect / disconnect
    # -----------------------------------------------------------------

    def _wallet_connection(self) -> WalletConnection:
        if self._wallet is None:
            if self._wallet_factory is None:
                raise SigningUnavailable("no wallet connection is available in this runtime")
            self._wallet = self._wallet_factory()
        return self._wallet

    async def connect(self, wallet_id: str | None = None) -> Identity:
        """Connect through the external wallet.

        Raises:
            ConnectionCancelled: The user closed the selection.
            SigningUnavailable: No wallet factory configured.
        """
        wallet = self._wallet_connection()
        address = await wallet.get_address()
        identity = Identity(address=address, kind=IdentityKind.INTERACTIVE, wallet_id=wallet_id)
        self._signer = InteractiveSigner(wallet, identity, self._settings.passphrase)
        logger.info("session.connected", address=address, kind=identity.kind.value)
        return identity

    def connect_dev(self, slot: int) -> Identity:
        """Activate the deterministic identity for test slot 1 or 2.

        Raises:
            SigningUnavailable: The slot has no key material here.
        """
        signer: DeterministicSigner = self._keyring.signer(slot)
        self._signer = signer
        logger.info("session.connected", address=signer.address, kind=signer.identity.kind.value)
        return signer.identity

    def disconnect(self) -> None:
        """Drop the identity and the wallet connection.

        The anti-automation token belongs to the widget, not the identity,
        and survives a disconnect.
        """
        if self._signer is not None:
            logger.info("session.disconnected", address=self._signer.address)
        if self._signer is not None and self._signer.identity.kind == IdentityKind.INTERACTIVE:
            self._wallet = None
        self._signer = None

    # -----------------------------------------------------------------
    # Capabilities
    # -----------------------------------------------------------------

    def signer(self) -> Signer:
        """The active signer.

        Raises:
            SigningUnavailable: No identity is active.
        """
        if self._signer is None:
            raise SigningUnavailable("wallet not connected")
        return self._signer

    def is_dev_mode_available(self) -> bool:
        return self._keyring.is_dev_mode_available()

    def is_dev_slot_available(self, slot: int) -> bool:
        return self._keyring.is_slot_available(slot)
