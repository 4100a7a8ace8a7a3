"""
Tests for the authorization entry XDR codec.

Test plan:
- decode(encode(entry)) preserves credentials, call tree and arguments
- void signature encodes as SCV_VOID and decodes back to None
- source-account entries carry no address fields
- preimage binds network, nonce, expiration and invocation
- preimage refuses source-account entries
- account signature layout: vec[map{public_key, signature}]
- attach_signature only on address entries
- address credentials missing their address fail with ValueError on encode
"""

import pytest
from stellar_sdk import Keypair, Network, StrKey, scval
from stellar_sdk import xdr as stellar_xdr

from soroban_relay.auth.codec import (
    attach_signature,
    authorization_preimage,
    decode_signature,
    encode_signature,
    entry_from_xdr,
    entry_to_xdr,
    entry_to_xdr_object,
)
from soroban_relay.auth.entry import (
    AuthorizationEntry,
    AuthorizedInvocation,
    CredentialKind,
    Credentials,
)

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

ACCOUNT = Keypair.from_raw_ed25519_seed(bytes([1] * 32))
VAULT = StrKey.encode_contract(b"\x07" * 32)
NEW_ADMIN = StrKey.encode_contract(b"\x09" * 32)
PASSPHRASE = Network.TESTNET_NETWORK_PASSPHRASE


def _entry(*, signature_xdr: str | None = None) -> AuthorizationEntry:
    return AuthorizationEntry(
        credentials=Credentials(
            kind=CredentialKind.ADDRESS,
            address=ACCOUNT.public_key,
            nonce=1234567,
            signature_expiration_ledger=5000,
            signature_xdr=signature_xdr,
        ),
        root_invocation=AuthorizedInvocation(
            contract=VAULT,
            function_name="set_admin",
            args=(scval.to_address(NEW_ADMIN).to_xdr(),),
            sub_invocations=(AuthorizedInvocation.check_auth(NEW_ADMIN),),
        ),
    )


# ---------------------------------------------------------------------------
# Round trip
# ---------------------------------------------------------------------------


class TestEntryXdr:
    def test_address_entry_survives(self) -> None:
        entry = _entry()
        assert entry_from_xdr(entry_to_xdr(entry)) == entry

    def test_signed_entry_survives(self) -> None:
        entry = _entry(signature_xdr=encode_signature(ACCOUNT.raw_public_key(), b"\x01" * 64))
        decoded = entry_from_xdr(entry_to_xdr(entry))
        assert decoded.is_signed
        assert decoded.credentials.signature_xdr == entry.credentials.signature_xdr

    def test_void_signature_on_the_wire(self) -> None:
        xdr_obj = entry_to_xdr_object(_entry())
        assert xdr_obj.credentials.address.signature.type == stellar_xdr.SCValType.SCV_VOID

    def test_source_account_entry(self) -> None:
        entry = AuthorizationEntry(
            credentials=Credentials.source_account(),
            root_invocation=AuthorizedInvocation.check_auth(NEW_ADMIN),
        )
        decoded = entry_from_xdr(entry_to_xdr(entry))
        assert decoded.credentials.kind == CredentialKind.SOURCE_ACCOUNT
        assert decoded.address is None
        assert decoded.root_invocation.function_name == "__check_auth"

    def test_sub_invocation_order_kept(self) -> None:
        base = _entry()
        entry = AuthorizationEntry(
            credentials=base.credentials,
            root_invocation=AuthorizedInvocation(
                contract=VAULT,
                function_name="set_admin",
                sub_invocations=(
                    AuthorizedInvocation(contract=VAULT, function_name="first"),
                    AuthorizedInvocation(contract=NEW_ADMIN, function_name="second"),
                ),
            ),
        )
        subs = entry_from_xdr(entry_to_xdr(entry)).root_invocation.sub_invocations
        assert [s.function_name for s in subs] == ["first", "second"]

    def test_address_credentials_without_address_refused(self) -> None:
        entry = _entry()
        # Bypass the frozen model's own validation to reach the encoder.
        object.__setattr__(entry.credentials, "address", None)
        with pytest.raises(ValueError, match="without an address"):
            entry_to_xdr(entry)


# ---------------------------------------------------------------------------
# Preimage
# ---------------------------------------------------------------------------


class TestPreimage:
    def test_envelope_type_and_fields(self) -> None:
        preimage = stellar_xdr.HashIDPreimage.from_xdr(authorization_preimage(_entry(), PASSPHRASE))
        assert preimage.type == stellar_xdr.EnvelopeType.ENVELOPE_TYPE_SOROBAN_AUTHORIZATION
        auth = preimage.soroban_authorization
        assert auth.network_id.hash == Network(PASSPHRASE).network_id()
        assert auth.nonce.int64 == 1234567
        assert auth.signature_expiration_ledger.uint32 == 5000

    def test_network_changes_preimage(self) -> None:
        testnet = authorization_preimage(_entry(), PASSPHRASE)
        public = authorization_preimage(_entry(), Network.PUBLIC_NETWORK_PASSPHRASE)
        assert testnet != public

    def test_deterministic(self) -> None:
        assert authorization_preimage(_entry(), PASSPHRASE) == authorization_preimage(
            _entry(), PASSPHRASE
        )

    def test_source_account_refused(self) -> None:
        entry = AuthorizationEntry(
            credentials=Credentials.source_account(),
            root_invocation=AuthorizedInvocation.check_auth(NEW_ADMIN),
        )
        with pytest.raises(ValueError):
            authorization_preimage(entry, PASSPHRASE)


# ---------------------------------------------------------------------------
# Signatures
# ---------------------------------------------------------------------------


class TestSignatures:
    def test_encode_decode(self) -> None:
        public_key = ACCOUNT.raw_public_key()
        signature = ACCOUNT.sign(b"payload")
        assert decode_signature(encode_signature(public_key, signature)) == (
            public_key,
            signature,
        )

    def test_layout(self) -> None:
        value = stellar_xdr.SCVal.from_xdr(encode_signature(b"\x02" * 32, b"\x03" * 64))
        assert value.type == stellar_xdr.SCValType.SCV_VEC
        assert len(value.vec.sc_vec) == 1
        keys = [item.key.sym.sc_symbol for item in value.vec.sc_vec[0].map.sc_map]
        assert keys == [b"public_key", b"signature"]

    def test_decode_rejects_non_vector(self) -> None:
        with pytest.raises(ValueError):
            decode_signature(scval.to_symbol("nope").to_xdr())

    def test_attach_signature(self) -> None:
        entry = _entry()
        signature = b"\x05" * 64
        signed = attach_signature(entry, ACCOUNT.raw_public_key(), signature)
        assert signed.is_signed
        assert not entry.is_signed
        assert decode_signature(signed.credentials.signature_xdr)[1] == signature
        assert signed.root_invocation == entry.root_invocation

    def test_attach_to_source_account_refused(self) -> None:
        entry = AuthorizationEntry(
            credentials=Credentials.source_account(),
            root_invocation=AuthorizedInvocation.check_auth(NEW_ADMIN),
        )
        with pytest.raises(ValueError):
            attach_signature(entry, b"\x00" * 32, b"\x00" * 64)
