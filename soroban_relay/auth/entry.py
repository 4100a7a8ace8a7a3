"""
Authorization entry model.

A Soroban authorization entry grants permission for one address (or the
transaction's source account) to authorize a tree of contract calls. The
ledger returns these from simulation; callers may edit them before
signing.

These are plain frozen values. Every edit produces a new entry, so two
code paths editing the same simulation result never see each other's
changes. Conversion to and from ledger XDR lives in ``auth.codec``.

Shape:
    AuthorizationEntry
      credentials: Credentials
          kind == SOURCE_ACCOUNT -> authorized by the paying account,
                                    no further fields
          kind == ADDRESS        -> address, nonce,
                                    signature_expiration_ledger,
                                    signature_xdr (None == void)
      root_invocation: AuthorizedInvocation
          contract, function_name, args (base64 SCVal XDR each),
          sub_invocations (same shape, ordered)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

# Contract-side authorization hook invoked for contract-held identities.
CHECK_AUTH_FUNCTION = "__check_auth"


class CredentialKind(StrEnum):
    SOURCE_ACCOUNT = "source_account"
    ADDRESS = "address"


@dataclass(frozen=True)
class Credentials:
    """Credentials of an authorization entry.

    Attributes:
        kind: SOURCE_ACCOUNT or ADDRESS.
        address: Strkey of the authorizing address (G... account or
            C... contract). ADDRESS only.
        nonce: Replay-protection nonce chosen by simulation. ADDRESS only.
        signature_expiration_ledger: Last ledger at which the signature is
            valid. ADDRESS only.
        signature_xdr: Base64 SCVal carrying the signature, or None for
            the void marker (unsigned). ADDRESS only.
    """

    kind: CredentialKind
    address: str | None = None
    nonce: int = 0
    signature_expiration_ledger: int = 0
    signature_xdr: str | None = None

    def __post_init__(self) -> None:
        if self.kind == CredentialKind.ADDRESS:
            if not self.address:
                raise ValueError("address credentials require an address")
            if self.signature_expiration_ledger < 0:
                raise ValueError("signature_expiration_ledger must be >= 0")
        elif self.address is not None or self.signature_xdr is not None:
            raise ValueError("source-account credentials carry no address or signature")

    @classmethod
    def source_account(cls) -> Credentials:
        return cls(kind=CredentialKind.SOURCE_ACCOUNT)


@dataclass(frozen=True)
class AuthorizedInvocation:
    """One node of the authorized call tree.

    Attributes:
        contract: Strkey (C...) of the called contract.
        function_name: Called function.
        args: Arguments as base64 SCVal XDR, in call order.
        sub_invocations: Calls made by this call that need the same
            authorization, in invocation order.
        raw_function_xdr: Base64 SorobanAuthorizedFunction for non
            contract-call functions (contract creation). Such nodes are
            carried through untouched; contract/function_name are empty.
    """

    contract: str
    function_name: str
    args: tuple[str, ...] = ()
    sub_invocations: tuple[AuthorizedInvocation, ...] = ()
    raw_function_xdr: str | None = None

    @classmethod
    def check_auth(cls, contract: str) -> AuthorizedInvocation:
        """The no-argument self-check call on a contract-held identity."""
        return cls(contract=contract, function_name=CHECK_AUTH_FUNCTION)


@dataclass(frozen=True)
class AuthorizationEntry:
    """A single signable authorization record."""

    credentials: Credentials
    root_invocation: AuthorizedInvocation

    @property
    def is_address(self) -> bool:
        return self.credentials.kind == CredentialKind.ADDRESS

    @property
    def address(self) -> str | None:
        return self.credentials.address

    @property
    def requires_signature(self) -> bool:
        """Address credentials on a classic account need an ed25519 signature.

        Contract-held identities authorize through their own check hook and
        may legitimately carry the void marker.
        """
        return self.is_address and bool(self.address) and self.address.startswith("G")

    @property
    def is_signed(self) -> bool:
        return self.is_address and self.credentials.signature_xdr is not None
