"""
Tests for SessionContext.

Test plan:
- connect: creates the wallet connection once, identity is interactive
- connect cancelled: ConnectionCancelled propagates, no identity
- connect without a wallet factory: SigningUnavailable
- connect_dev: deterministic identity, stable across reconnects,
  missing slot -> SigningUnavailable
- disconnect: clears identity and signer, leaves the anti-automation token;
  next connect builds a fresh wallet connection
- signer(): SigningUnavailable when nothing is connected
"""

import pytest
from stellar_sdk import Keypair

from soroban_relay.config import RelaySettings
from soroban_relay.errors import ConnectionCancelled, SigningUnavailable
from soroban_relay.session import WALLET_INSTALL_LINK, SessionContext
from soroban_relay.signer import IdentityKind, InteractiveSigner, SignedAuthEntry

PLAYER1 = Keypair.from_raw_ed25519_seed(bytes([11] * 32))
PLAYER2 = Keypair.from_raw_ed25519_seed(bytes([22] * 32))
WALLET_USER = Keypair.from_raw_ed25519_seed(bytes([44] * 32))


def _settings(**overrides) -> RelaySettings:
    values = {
        "dev_player1_secret": PLAYER1.secret,
        "dev_player2_secret": PLAYER2.secret,
    }
    values.update(overrides)
    return RelaySettings(_env_file=None, **values)


class FakeWallet:
    def __init__(self, cancel: bool = False) -> None:
        self.cancel = cancel

    async def get_address(self) -> str:
        if self.cancel:
            raise ConnectionCancelled()
        return WALLET_USER.public_key

    async def sign_transaction(self, tx_xdr: str, *, network_passphrase: str, address: str) -> str:
        return tx_xdr

    async def sign_auth_entry(
        self, preimage_xdr: str, *, network_passphrase: str, address: str
    ) -> SignedAuthEntry:
        return SignedAuthEntry(signed_auth_entry="", signer_address=address)


class WalletFactory:
    def __init__(self, cancel: bool = False) -> None:
        self.cancel = cancel
        self.created = 0

    def __call__(self) -> FakeWallet:
        self.created += 1
        return FakeWallet(cancel=self.cancel)


class TestConnect:
    @pytest.mark.asyncio
    async def test_interactive_identity(self) -> None:
        session = SessionContext(_settings(), wallet_factory=WalletFactory())
        identity = await session.connect("freighter")
        assert identity.address == WALLET_USER.public_key
        assert identity.kind == IdentityKind.INTERACTIVE
        assert identity.wallet_id == "freighter"
        assert session.is_connected
        assert isinstance(session.signer(), InteractiveSigner)

    @pytest.mark.asyncio
    async def test_wallet_created_lazily_once(self) -> None:
        factory = WalletFactory()
        session = SessionContext(_settings(), wallet_factory=factory)
        assert factory.created == 0
        await session.connect()
        await session.connect()
        assert factory.created == 1

    @pytest.mark.asyncio
    async def test_cancel_propagates(self) -> None:
        session = SessionContext(_settings(), wallet_factory=WalletFactory(cancel=True))
        with pytest.raises(ConnectionCancelled, match="Connection cancelled"):
            await session.connect()
        assert session.identity is None

    @pytest.mark.asyncio
    async def test_no_wallet_runtime(self) -> None:
        session = SessionContext(_settings())
        with pytest.raises(SigningUnavailable):
            await session.connect()

    def test_install_link(self) -> None:
        assert SessionContext(_settings()).install_link == WALLET_INSTALL_LINK


class TestConnectDev:
    def test_slots_distinct(self) -> None:
        session = SessionContext(_settings())
        first = session.connect_dev(1)
        second = session.connect_dev(2)
        assert first.address == PLAYER1.public_key
        assert second.address == PLAYER2.public_key
        assert session.identity == second

    def test_stable_across_reconnects(self) -> None:
        session = SessionContext(_settings())
        first = session.connect_dev(1)
        session.disconnect()
        assert session.connect_dev(1).address == first.address

    def test_missing_slot(self) -> None:
        session = SessionContext(_settings(dev_player2_secret=None))
        assert session.is_dev_slot_available(1)
        assert not session.is_dev_slot_available(2)
        with pytest.raises(SigningUnavailable):
            session.connect_dev(2)

    def test_dev_mode_unavailable(self) -> None:
        session = SessionContext(_settings(dev_player1_secret=None, dev_player2_secret=None))
        assert not session.is_dev_mode_available()


class TestDisconnect:
    @pytest.mark.asyncio
    async def test_clears_identity_keeps_token(self) -> None:
        factory = WalletFactory()
        session = SessionContext(_settings(), wallet_factory=factory)
        await session.connect()
        session.token_store.set_token("abc")
        session.disconnect()
        assert session.identity is None
        assert not session.is_connected
        assert session.token_store.get_token() == "abc"
        with pytest.raises(SigningUnavailable, match="wallet not connected"):
            session.signer()

    @pytest.mark.asyncio
    async def test_reconnect_builds_fresh_wallet(self) -> None:
        factory = WalletFactory()
        session = SessionContext(_settings(), wallet_factory=factory)
        await session.connect()
        session.disconnect()
        await session.connect()
        assert factory.created == 2

    def test_disconnect_when_idle(self) -> None:
        session = SessionContext(_settings())
        session.disconnect()
        assert session.identity is None


class TestSigner:
    def test_unavailable_before_connect(self) -> None:
        with pytest.raises(SigningUnavailable):
            SessionContext(_settings()).signer()
