"""
Authorization entry editor.

Pure transforms over authorization entries returned by simulation. Each
function returns a new value; inputs are never modified.

The edits exist for one privileged flow: a classic account that is the
current administrator hands administration to a contract-held identity.
The ledger's simulation does not know that the new administrator's own
``__check_auth`` must also be pre-authorized in the same transaction, so
the entries are patched before signing:

    entries[0]  outer "set admin" authorization (source account)
    entries[1]  new administrator's authorization (address credentials)

The envelope then carries exactly three entries, in this order:

    1. entries[1] with expiration set, signature cleared and
       __check_auth appended.
    2. a copy of entries[0] with __check_auth appended; it takes the
       place of the original set-admin entry, which is dropped.
    3. a source-account entry whose root is __check_auth.

Roles are taken from list position, not from a content scan: simulation
returns authorizations in invocation order. If that ever changes the
wrong entry gets patched and the contract's admin check rejects the
transaction (fail closed); nothing here can corrupt ledger state.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Sequence

from soroban_relay.auth.entry import (
    AuthorizationEntry,
    AuthorizedInvocation,
    Credentials,
)
from soroban_relay.errors import AuthorizationEditError

# Positions of the two simulation entries the admin handoff relies on.
SET_ADMIN_ENTRY_INDEX = 0
NEW_ADMIN_ENTRY_INDEX = 1


# =========================================================================
# Single-entry edits
# =========================================================================


def set_expiration(entry: AuthorizationEntry, ledger_seq: int) -> AuthorizationEntry:
    """Set the signature expiration ledger of an address entry.

    Args:
        entry: Entry with address credentials.
        ledger_seq: Absolute ledger sequence, usually latest + horizon.

    Returns:
        New entry with exactly ``ledger_seq`` as expiration; the invocation
        tree is shared unchanged.

    Raises:
        AuthorizationEditError: On source-account credentials or a
            negative ledger sequence.
    """
    if not entry.is_address:
        raise AuthorizationEditError(
            "cannot set expiration on source-account credentials"
        )
    if ledger_seq < 0:
        raise AuthorizationEditError(f"ledger sequence must be >= 0, got {ledger_seq}")
    return replace(
        entry,
        credentials=replace(entry.credentials, signature_expiration_ledger=ledger_seq),
    )


def clear_signature(entry: AuthorizationEntry) -> AuthorizationEntry:
    """Reset an address entry's signature to the void marker.

    Raises:
        AuthorizationEditError: On source-account credentials.
    """
    if not entry.is_address:
        raise AuthorizationEditError(
            "source-account credentials carry no signature to clear"
        )
    return replace(entry, credentials=replace(entry.credentials, signature_xdr=None))


def append_self_invocation(
    entry: AuthorizationEntry, target_contract: str
) -> AuthorizationEntry:
    """Append a no-argument ``__check_auth`` call on ``target_contract``.

    Not idempotent: two calls append two sub-invocations. Call at most
    once per entry per flow.
    """
    if not target_contract:
        raise AuthorizationEditError("target contract must be non-empty")
    root = entry.root_invocation
    return replace(
        entry,
        root_invocation=replace(
            root,
            sub_invocations=root.sub_invocations
            + (AuthorizedInvocation.check_auth(target_contract),),
        ),
    )


def build_source_account_entry(target_contract: str) -> AuthorizationEntry:
    """New source-account entry whose root is ``__check_auth`` on the target."""
    if not target_contract:
        raise AuthorizationEditError("target contract must be non-empty")
    return AuthorizationEntry(
        credentials=Credentials.source_account(),
        root_invocation=AuthorizedInvocation.check_auth(target_contract),
    )


# =========================================================================
# List edits
# =========================================================================


def replace_entry(
    entries: Sequence[AuthorizationEntry], index: int, entry: AuthorizationEntry
) -> tuple[AuthorizationEntry, ...]:
    """Splice ``entry`` into position ``index``, replacing what was there."""
    if not 0 <= index < len(entries):
        raise AuthorizationEditError(
            f"entry index {index} out of range for {len(entries)} entries"
        )
    result = list(entries)
    result[index] = entry
    return tuple(result)


def prepare_admin_handoff(
    entries: Sequence[AuthorizationEntry],
    target_contract: str,
    expiration_ledger: int,
) -> tuple[AuthorizationEntry, ...]:
    """Patch simulation entries for a transfer of admin to a contract.

    Args:
        entries: Authorization entries exactly as simulation returned them.
        target_contract: The contract becoming administrator.
        expiration_ledger: Absolute expiration for the new admin's entry.

    Returns:
        Three entries: the patched new-admin entry, the set-admin entry
        carrying the self-check (replacing the original), then a
        source-account self-check entry. Entries past index 1 are not
        carried over.

    Raises:
        AuthorizationEditError: Fewer than two entries, or the new admin's
            entry does not use address credentials.
    """
    if len(entries) <= NEW_ADMIN_ENTRY_INDEX:
        raise AuthorizationEditError(
            f"admin handoff needs at least {NEW_ADMIN_ENTRY_INDEX + 1} "
            f"authorization entries, simulation returned {len(entries)}"
        )

    new_admin = entries[NEW_ADMIN_ENTRY_INDEX]
    new_admin = set_expiration(new_admin, expiration_ledger)
    new_admin = clear_signature(new_admin)
    new_admin = append_self_invocation(new_admin, target_contract)

    set_admin_copy = append_self_invocation(entries[SET_ADMIN_ENTRY_INDEX], target_contract)

    return (new_admin, set_admin_copy, build_source_account_entry(target_contract))
