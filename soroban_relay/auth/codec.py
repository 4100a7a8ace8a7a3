"""
XDR codec for authorization entries.

Translates between the frozen model in ``auth.entry`` and the ledger's
binary structures (``stellar_sdk.xdr``). Everything here is pure: no
network, no secrets. Signing itself belongs to the signer; this module
only produces the bytes a signer signs (the preimage) and folds the
resulting signature back into an entry.

Signature layout for account credentials (what the ledger's account
check expects):
    SCVal::Vec([ SCVal::Map({ "public_key": Bytes(32),
                              "signature":  Bytes(64) }) ])
"""

from __future__ import annotations

from dataclasses import replace

from stellar_sdk import Address, Network, scval
from stellar_sdk import xdr as stellar_xdr

from soroban_relay.auth.entry import (
    AuthorizationEntry,
    AuthorizedInvocation,
    CredentialKind,
    Credentials,
)

_CONTRACT_FN = stellar_xdr.SorobanAuthorizedFunctionType.SOROBAN_AUTHORIZED_FUNCTION_TYPE_CONTRACT_FN
_CREDS_ADDRESS = stellar_xdr.SorobanCredentialsType.SOROBAN_CREDENTIALS_ADDRESS
_CREDS_SOURCE = stellar_xdr.SorobanCredentialsType.SOROBAN_CREDENTIALS_SOURCE_ACCOUNT


# =========================================================================
# Decoding
# =========================================================================


def invocation_from_xdr_object(
    invocation: stellar_xdr.SorobanAuthorizedInvocation,
) -> AuthorizedInvocation:
    function = invocation.function
    subs = tuple(invocation_from_xdr_object(sub) for sub in invocation.sub_invocations)

    if function.type != _CONTRACT_FN:
        return AuthorizedInvocation(
            contract="",
            function_name="",
            sub_invocations=subs,
            raw_function_xdr=function.to_xdr(),
        )

    contract_fn = function.contract_fn
    return AuthorizedInvocation(
        contract=Address.from_xdr_sc_address(contract_fn.contract_address).address,
        function_name=contract_fn.function_name.sc_symbol.decode("utf-8"),
        args=tuple(arg.to_xdr() for arg in contract_fn.args),
        sub_invocations=subs,
    )


def entry_from_xdr_object(entry: stellar_xdr.SorobanAuthorizationEntry) -> AuthorizationEntry:
    credentials = entry.credentials
    if credentials.type == _CREDS_ADDRESS:
        addr = credentials.address
        signature = addr.signature
        creds = Credentials(
            kind=CredentialKind.ADDRESS,
            address=Address.from_xdr_sc_address(addr.address).address,
            nonce=addr.nonce.int64,
            signature_expiration_ledger=addr.signature_expiration_ledger.uint32,
            signature_xdr=None
            if signature.type == stellar_xdr.SCValType.SCV_VOID
            else signature.to_xdr(),
        )
    else:
        creds = Credentials.source_account()

    return AuthorizationEntry(
        credentials=creds,
        root_invocation=invocation_from_xdr_object(entry.root_invocation),
    )


def entry_from_xdr(entry_xdr: str) -> AuthorizationEntry:
    """Decode a base64 SorobanAuthorizationEntry."""
    return entry_from_xdr_object(stellar_xdr.SorobanAuthorizationEntry.from_xdr(entry_xdr))


# =========================================================================
# Encoding
# =========================================================================


def invocation_to_xdr_object(
    invocation: AuthorizedInvocation,
) -> stellar_xdr.SorobanAuthorizedInvocation:
    if invocation.raw_function_xdr is not None:
        function = stellar_xdr.SorobanAuthorizedFunction.from_xdr(invocation.raw_function_xdr)
    else:
        function = stellar_xdr.SorobanAuthorizedFunction(
            type=_CONTRACT_FN,
            contract_fn=stellar_xdr.InvokeContractArgs(
                contract_address=Address(invocation.contract).to_xdr_sc_address(),
                function_name=stellar_xdr.SCSymbol(invocation.function_name.encode("utf-8")),
                args=[stellar_xdr.SCVal.from_xdr(arg) for arg in invocation.args],
            ),
        )
    return stellar_xdr.SorobanAuthorizedInvocation(
        function=function,
        sub_invocations=[invocation_to_xdr_object(sub) for sub in invocation.sub_invocations],
    )


def _credentials_to_xdr_object(credentials: Credentials) -> stellar_xdr.SorobanCredentials:
    if credentials.kind == CredentialKind.SOURCE_ACCOUNT:
        return stellar_xdr.SorobanCredentials(type=_CREDS_SOURCE)

    if credentials.address is None:
        raise ValueError("address credentials without an address cannot be encoded")
    if credentials.signature_xdr is None:
        signature = stellar_xdr.SCVal(type=stellar_xdr.SCValType.SCV_VOID)
    else:
        signature = stellar_xdr.SCVal.from_xdr(credentials.signature_xdr)
    return stellar_xdr.SorobanCredentials(
        type=_CREDS_ADDRESS,
        address=stellar_xdr.SorobanAddressCredentials(
            address=Address(credentials.address).to_xdr_sc_address(),
            nonce=stellar_xdr.Int64(credentials.nonce),
            signature_expiration_ledger=stellar_xdr.Uint32(
                credentials.signature_expiration_ledger
            ),
            signature=signature,
        ),
    )


def entry_to_xdr_object(entry: AuthorizationEntry) -> stellar_xdr.SorobanAuthorizationEntry:
    return stellar_xdr.SorobanAuthorizationEntry(
        credentials=_credentials_to_xdr_object(entry.credentials),
        root_invocation=invocation_to_xdr_object(entry.root_invocation),
    )


def entry_to_xdr(entry: AuthorizationEntry) -> str:
    """Encode an entry as base64 SorobanAuthorizationEntry."""
    return entry_to_xdr_object(entry).to_xdr()


# =========================================================================
# Signing support
# =========================================================================


def authorization_preimage(entry: AuthorizationEntry, network_passphrase: str) -> str:
    """Build the base64 HashIdPreimage an address signer signs.

    The signer signs sha256(preimage bytes). Only address credentials
    have a preimage; the nonce and expiration are bound into it, so set
    the expiration before calling this.

    Raises:
        ValueError: If the entry uses source-account credentials.
    """
    if not entry.is_address:
        raise ValueError("source-account entries are authorized by the envelope signature")

    preimage = stellar_xdr.HashIDPreimage(
        type=stellar_xdr.EnvelopeType.ENVELOPE_TYPE_SOROBAN_AUTHORIZATION,
        soroban_authorization=stellar_xdr.HashIDPreimageSorobanAuthorization(
            network_id=stellar_xdr.Hash(Network(network_passphrase).network_id()),
            nonce=stellar_xdr.Int64(entry.credentials.nonce),
            signature_expiration_ledger=stellar_xdr.Uint32(
                entry.credentials.signature_expiration_ledger
            ),
            invocation=invocation_to_xdr_object(entry.root_invocation),
        ),
    )
    return preimage.to_xdr()


def encode_signature(public_key: bytes, signature: bytes) -> str:
    """Encode an ed25519 account signature as base64 SCVal."""
    sig_map = scval.to_map(
        {
            scval.to_symbol("public_key"): scval.to_bytes(public_key),
            scval.to_symbol("signature"): scval.to_bytes(signature),
        }
    )
    return scval.to_vec([sig_map]).to_xdr()


def decode_signature(signature_xdr: str) -> tuple[bytes, bytes]:
    """Decode an account signature SCVal into (public_key, signature).

    Raises:
        ValueError: If the value is not a single-element signature vector.
    """
    value = stellar_xdr.SCVal.from_xdr(signature_xdr)
    if value.vec is None or len(value.vec.sc_vec) != 1:
        raise ValueError("account signature must be a one-element vector")
    sig_map = value.vec.sc_vec[0].map
    if sig_map is None:
        raise ValueError("account signature element must be a map")

    fields: dict[str, bytes] = {}
    for item in sig_map.sc_map:
        fields[item.key.sym.sc_symbol.decode("utf-8")] = item.val.bytes.sc_bytes
    try:
        return fields["public_key"], fields["signature"]
    except KeyError as exc:
        raise ValueError(f"account signature missing field {exc}") from None


def attach_signature(
    entry: AuthorizationEntry, public_key: bytes, signature: bytes
) -> AuthorizationEntry:
    """Return a copy of an address entry carrying an account signature.

    Raises:
        ValueError: If the entry uses source-account credentials.
    """
    if not entry.is_address:
        raise ValueError("cannot attach a signature to source-account credentials")
    return replace(
        entry,
        credentials=replace(
            entry.credentials, signature_xdr=encode_signature(public_key, signature)
        ),
    )
