"""
Authorization entries: model, XDR codec and editor.

    - ``AuthorizationEntry`` and friends: frozen values.
    - ``entry_from_xdr()`` / ``entry_to_xdr()``: ledger XDR boundary.
    - ``authorization_preimage()`` / ``attach_signature()``: signing support.
    - Editor: ``set_expiration``, ``clear_signature``,
      ``append_self_invocation``, ``build_source_account_entry``,
      ``replace_entry``, ``prepare_admin_handoff``.
"""

from soroban_relay.auth.codec import (
    attach_signature,
    authorization_preimage,
    decode_signature,
    encode_signature,
    entry_from_xdr,
    entry_to_xdr,
)
from soroban_relay.auth.editor import (
    append_self_invocation,
    build_source_account_entry,
    clear_signature,
    prepare_admin_handoff,
    replace_entry,
    set_expiration,
)
from soroban_relay.auth.entry import (
    CHECK_AUTH_FUNCTION,
    AuthorizationEntry,
    AuthorizedInvocation,
    CredentialKind,
    Credentials,
)

__all__ = [
    "CHECK_AUTH_FUNCTION",
    "AuthorizationEntry",
    "AuthorizedInvocation",
    "CredentialKind",
    "Credentials",
    "append_self_invocation",
    "attach_signature",
    "authorization_preimage",
    "build_source_account_entry",
    "clear_signature",
    "decode_signature",
    "encode_signature",
    "entry_from_xdr",
    "entry_to_xdr",
    "prepare_admin_handoff",
    "replace_entry",
    "set_expiration",
]
