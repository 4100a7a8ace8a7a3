"""
Tests for the authorization entry editor: pure transforms, no XDR.

Test plan:
- set_expiration: source-account entry always errors; address entry gets
  exactly the requested ledger, sub-invocations untouched, input unchanged
- clear_signature: resets to void marker; source-account errors
- append_self_invocation: +1 per call, non-idempotent (+2 for two calls),
  appended node is a no-argument __check_auth on the target
- build_source_account_entry: source-account credentials, __check_auth root
- replace_entry: splices in place, out-of-range errors
- prepare_admin_handoff: positional recipe, exactly three entries (patched
  new admin, set-admin with self-check replacing the original, source
  self-check), fail closed with fewer than two entries
"""

import pytest

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
from soroban_relay.errors import AuthorizationEditError

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

ADMIN_ACCOUNT = "GADMIN" + "A" * 50
USER_ACCOUNT = "GUSER" + "B" * 51
FEE_VAULT = "CFEEVAULT" + "C" * 47
NEW_ADMIN_CONTRACT = "CNEWADMIN" + "D" * 47
SAMPLE_SIGNATURE = "AAAAEAAAAAEAAAABAAAAEQ=="


def _address_entry(
    address: str = USER_ACCOUNT,
    *,
    expiration: int = 100,
    signature: str | None = None,
    subs: tuple[AuthorizedInvocation, ...] = (),
) -> AuthorizationEntry:
    return AuthorizationEntry(
        credentials=Credentials(
            kind=CredentialKind.ADDRESS,
            address=address,
            nonce=42,
            signature_expiration_ledger=expiration,
            signature_xdr=signature,
        ),
        root_invocation=AuthorizedInvocation(
            contract=FEE_VAULT,
            function_name="set_admin",
            sub_invocations=subs,
        ),
    )


def _source_entry() -> AuthorizationEntry:
    return AuthorizationEntry(
        credentials=Credentials.source_account(),
        root_invocation=AuthorizedInvocation(contract=FEE_VAULT, function_name="set_admin"),
    )


# ---------------------------------------------------------------------------
# set_expiration
# ---------------------------------------------------------------------------


class TestSetExpiration:
    def test_source_account_errors(self) -> None:
        with pytest.raises(AuthorizationEditError):
            set_expiration(_source_entry(), 500)

    def test_sets_exact_ledger(self) -> None:
        edited = set_expiration(_address_entry(), 123_456)
        assert edited.credentials.signature_expiration_ledger == 123_456

    def test_sub_invocations_untouched(self) -> None:
        sub = AuthorizedInvocation(contract=NEW_ADMIN_CONTRACT, function_name="transfer")
        entry = _address_entry(subs=(sub,))
        edited = set_expiration(entry, 7)
        assert edited.root_invocation == entry.root_invocation
        assert edited.root_invocation.sub_invocations == (sub,)

    def test_input_not_modified(self) -> None:
        entry = _address_entry(expiration=100)
        set_expiration(entry, 999)
        assert entry.credentials.signature_expiration_ledger == 100

    def test_other_credential_fields_kept(self) -> None:
        entry = _address_entry(signature=SAMPLE_SIGNATURE)
        edited = set_expiration(entry, 5)
        assert edited.credentials.nonce == 42
        assert edited.credentials.address == USER_ACCOUNT
        assert edited.credentials.signature_xdr == SAMPLE_SIGNATURE

    def test_negative_ledger_errors(self) -> None:
        with pytest.raises(AuthorizationEditError):
            set_expiration(_address_entry(), -1)

    def test_edit_error_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            set_expiration(_source_entry(), 1)


# ---------------------------------------------------------------------------
# clear_signature
# ---------------------------------------------------------------------------


class TestClearSignature:
    def test_resets_to_void(self) -> None:
        entry = _address_entry(signature=SAMPLE_SIGNATURE)
        assert entry.is_signed
        cleared = clear_signature(entry)
        assert cleared.credentials.signature_xdr is None
        assert not cleared.is_signed

    def test_already_void_is_fine(self) -> None:
        cleared = clear_signature(_address_entry())
        assert cleared.credentials.signature_xdr is None

    def test_source_account_errors(self) -> None:
        with pytest.raises(AuthorizationEditError):
            clear_signature(_source_entry())


# ---------------------------------------------------------------------------
# append_self_invocation
# ---------------------------------------------------------------------------


class TestAppendSelfInvocation:
    def test_once_adds_exactly_one(self) -> None:
        entry = _address_entry()
        edited = append_self_invocation(entry, NEW_ADMIN_CONTRACT)
        assert len(edited.root_invocation.sub_invocations) == 1

    def test_twice_adds_exactly_two(self) -> None:
        entry = _address_entry()
        edited = append_self_invocation(
            append_self_invocation(entry, NEW_ADMIN_CONTRACT), NEW_ADMIN_CONTRACT
        )
        assert len(edited.root_invocation.sub_invocations) == 2

    def test_appended_node_shape(self) -> None:
        edited = append_self_invocation(_address_entry(), NEW_ADMIN_CONTRACT)
        node = edited.root_invocation.sub_invocations[-1]
        assert node.contract == NEW_ADMIN_CONTRACT
        assert node.function_name == CHECK_AUTH_FUNCTION
        assert node.args == ()
        assert node.sub_invocations == ()

    def test_appends_after_existing(self) -> None:
        existing = AuthorizedInvocation(contract=FEE_VAULT, function_name="deposit")
        edited = append_self_invocation(_address_entry(subs=(existing,)), NEW_ADMIN_CONTRACT)
        subs = edited.root_invocation.sub_invocations
        assert subs[0] == existing
        assert subs[1].function_name == CHECK_AUTH_FUNCTION

    def test_works_on_source_account(self) -> None:
        edited = append_self_invocation(_source_entry(), NEW_ADMIN_CONTRACT)
        assert edited.credentials.kind == CredentialKind.SOURCE_ACCOUNT
        assert len(edited.root_invocation.sub_invocations) == 1

    def test_input_not_modified(self) -> None:
        entry = _address_entry()
        append_self_invocation(entry, NEW_ADMIN_CONTRACT)
        assert entry.root_invocation.sub_invocations == ()

    def test_empty_target_errors(self) -> None:
        with pytest.raises(AuthorizationEditError):
            append_self_invocation(_address_entry(), "")


# ---------------------------------------------------------------------------
# build_source_account_entry
# ---------------------------------------------------------------------------


class TestBuildSourceAccountEntry:
    def test_source_account_credentials(self) -> None:
        entry = build_source_account_entry(NEW_ADMIN_CONTRACT)
        assert entry.credentials.kind == CredentialKind.SOURCE_ACCOUNT
        assert not entry.is_address
        assert not entry.requires_signature

    def test_root_is_check_auth(self) -> None:
        root = build_source_account_entry(NEW_ADMIN_CONTRACT).root_invocation
        assert root.contract == NEW_ADMIN_CONTRACT
        assert root.function_name == CHECK_AUTH_FUNCTION
        assert root.args == ()
        assert root.sub_invocations == ()


# ---------------------------------------------------------------------------
# List edits
# ---------------------------------------------------------------------------


class TestReplaceEntry:
    def test_splices_in_place(self) -> None:
        entries = (_source_entry(), _address_entry())
        new = _address_entry(ADMIN_ACCOUNT)
        result = replace_entry(entries, 1, new)
        assert result == (entries[0], new)
        assert entries[1].address == USER_ACCOUNT

    def test_out_of_range_errors(self) -> None:
        with pytest.raises(AuthorizationEditError):
            replace_entry((_source_entry(),), 1, _address_entry())


class TestPrepareAdminHandoff:
    def _entries(self) -> tuple[AuthorizationEntry, ...]:
        return (
            _source_entry(),
            _address_entry(NEW_ADMIN_CONTRACT, signature=SAMPLE_SIGNATURE),
        )

    def test_exactly_three_entries(self) -> None:
        result = prepare_admin_handoff(self._entries(), NEW_ADMIN_CONTRACT, 1_300)
        assert len(result) == 3

    def test_new_admin_entry_patched(self) -> None:
        result = prepare_admin_handoff(self._entries(), NEW_ADMIN_CONTRACT, 1_300)
        patched = result[0]
        assert patched.credentials.signature_expiration_ledger == 1_300
        assert patched.credentials.signature_xdr is None
        subs = patched.root_invocation.sub_invocations
        assert len(subs) == 1
        assert subs[0].contract == NEW_ADMIN_CONTRACT
        assert subs[0].function_name == CHECK_AUTH_FUNCTION

    def test_original_set_admin_entry_replaced(self) -> None:
        entries = self._entries()
        result = prepare_admin_handoff(entries, NEW_ADMIN_CONTRACT, 1_300)
        assert entries[0] not in result
        set_admin_roots = [
            e for e in result if e.root_invocation.function_name == "set_admin"
        ]
        assert len(set_admin_roots) == 2
        assert all(e.root_invocation.sub_invocations for e in set_admin_roots)

    def test_duplicate_carries_self_check(self) -> None:
        entries = self._entries()
        result = prepare_admin_handoff(entries, NEW_ADMIN_CONTRACT, 1_300)
        dupe = result[1]
        assert dupe.credentials == entries[0].credentials
        assert dupe.root_invocation.function_name == "set_admin"
        assert dupe.root_invocation.sub_invocations[-1].function_name == CHECK_AUTH_FUNCTION

    def test_source_account_self_check_last(self) -> None:
        result = prepare_admin_handoff(self._entries(), NEW_ADMIN_CONTRACT, 1_300)
        assert result[2] == build_source_account_entry(NEW_ADMIN_CONTRACT)

    def test_too_few_entries_fails_closed(self) -> None:
        with pytest.raises(AuthorizationEditError):
            prepare_admin_handoff((_source_entry(),), NEW_ADMIN_CONTRACT, 1_300)

    def test_source_account_in_new_admin_slot_fails(self) -> None:
        with pytest.raises(AuthorizationEditError):
            prepare_admin_handoff((_source_entry(), _source_entry()), NEW_ADMIN_CONTRACT, 1)

    def test_trailing_entries_not_carried(self) -> None:
        extra = _address_entry(USER_ACCOUNT)
        result = prepare_admin_handoff((*self._entries(), extra), NEW_ADMIN_CONTRACT, 1_300)
        assert len(result) == 3
        assert extra not in result

    def test_inputs_unchanged(self) -> None:
        entries = self._entries()
        prepare_admin_handoff(entries, NEW_ADMIN_CONTRACT, 1_300)
        assert entries[1].credentials.signature_xdr == SAMPLE_SIGNATURE
        assert entries[1].root_invocation.sub_invocations == ()


class TestEntryModel:
    def test_account_address_requires_signature(self) -> None:
        assert _address_entry(USER_ACCOUNT).requires_signature

    def test_contract_address_does_not_require_signature(self) -> None:
        assert not _address_entry(NEW_ADMIN_CONTRACT).requires_signature

    def test_address_credentials_need_address(self) -> None:
        with pytest.raises(ValueError):
            Credentials(kind=CredentialKind.ADDRESS)

    def test_source_account_rejects_signature(self) -> None:
        with pytest.raises(ValueError):
            Credentials(kind=CredentialKind.SOURCE_ACCOUNT, signature_xdr=SAMPLE_SIGNATURE)
