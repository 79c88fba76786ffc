"""
Tests for CredentialService commits, revokes and reads.
"""

from unittest.mock import patch

import pytest

from dealer_console.constants import InvitationStatus
from dealer_console.exceptions import NotFoundError, TransportError
from dealer_console.processing.credential_assignment import build_editable_state, reconcile
from dealer_console.schemas.credential_schemas import CredentialExtras, EditableState
from dealer_console.services.credential_service import CredentialService
from dealer_console.services.invitation_service import InvitationService
from tests.fixtures.factories import (
    AdminFactory,
    DealerFactory,
    LegacyStoreConfigFactory,
    StoreConfigFactory,
)


class TestCommit:
    def test_create_writes_both_shapes(self, credential_service):
        dealer = DealerFactory()
        admin = AdminFactory()

        result = credential_service.commit(
            EditableState(ids=["A", " B ", "", "A"], primary_id="B"),
            dealer.id,
            CredentialExtras(integration_id=" int-9 ", company_name="Test Motors Ltd"),
            assigned_by=admin.id,
        )

        assert result.created is True
        assert result.credential_saved is True
        assert result.primary_advertisement_id == "B"
        assert result.additional_advertisement_ids == ["A"]

        stored = credential_service.get_credential(dealer.id)
        assert stored.advertisement_id == "B"
        assert stored.additional_advertisement_ids == ["A"]
        assert stored.primary_advertisement_id == "B"
        assert stored.advertisement_ids_parsed == ["A", "B"]
        assert stored.integration_id == "int-9"
        assert stored.company_name == "Test Motors Ltd"
        assert stored.assigned_by == admin.id
        assert stored.email == dealer.email
        assert stored.store_name == dealer.name

    def test_create_invites_dealer(self, credential_service, identity_provider):
        dealer = DealerFactory()

        result = credential_service.commit(EditableState(ids=["A"], primary_id="A"), dealer.id)

        assert len(identity_provider.calls) == 1
        assert identity_provider.calls[0]["email"] == dealer.email
        assert identity_provider.calls[0]["store_config_id"] == result.store_config_id
        assert result.invitation.status == InvitationStatus.INVITED
        assert result.invitation_warning is None
        assert result.message == "Credentials created, Invitation sent"

        stored = credential_service.get_credential(dealer.id)
        assert stored.invitation_status == InvitationStatus.INVITED
        assert stored.invitation_id == "inv_1"

    def test_invitation_failure_keeps_credential(
        self, db_session, app_config, failing_identity_provider
    ):
        """A provider failure is reported as a warning and the credential stays committed."""
        service = CredentialService(
            session=db_session,
            invitation_service=InvitationService(
                session=db_session, provider=failing_identity_provider, config=app_config
            ),
            config=app_config,
        )
        dealer = DealerFactory()

        result = service.commit(EditableState(ids=["A"], primary_id="A"), dealer.id)

        assert result.credential_saved is True
        assert result.invitation.status == InvitationStatus.FAILED
        assert result.invitation_warning == "Clerk API Error: rate limited"
        assert result.message == "Credentials created, invitation failed: Clerk API Error: rate limited"

        stored = service.get_credential(dealer.id)
        assert stored.advertisement_id == "A"
        assert stored.invitation_status == InvitationStatus.FAILED

    def test_invitations_can_be_switched_off(self, credential_service, identity_provider, app_config):
        app_config.features.send_invitations_on_create = False
        dealer = DealerFactory()

        result = credential_service.commit(EditableState(ids=["A"], primary_id="A"), dealer.id)

        assert identity_provider.calls == []
        assert result.invitation is None
        assert result.message == "Credentials created"

    def test_update_does_not_invite(self, credential_service, identity_provider):
        config_row = StoreConfigFactory(invitation_status="accepted")

        result = credential_service.commit(
            EditableState(ids=["AD-1", "AD-3"], primary_id="AD-3"), config_row.dealer_id
        )

        assert result.created is False
        assert result.message == "Credentials updated"
        assert identity_provider.calls == []
        stored = credential_service.get_credential(config_row.dealer_id)
        assert stored.advertisement_id == "AD-3"
        assert stored.additional_advertisement_ids == ["AD-1"]
        assert stored.invitation_status == InvitationStatus.ACCEPTED

    def test_update_migrates_legacy_record(self, credential_service):
        """Committing the edit state of a legacy-only row fills in the enhanced columns."""
        legacy = LegacyStoreConfigFactory()
        state = credential_service.get_editable_state(legacy.dealer_id)
        assert state == EditableState(ids=["LEG-1", "LEG-2"], primary_id="LEG-1")

        credential_service.commit(state, legacy.dealer_id)

        stored = credential_service.get_credential(legacy.dealer_id)
        assert stored.advertisement_id == "LEG-1"
        assert stored.additional_advertisement_ids == ["LEG-2"]

    def test_blank_extras_clear_columns(self, credential_service):
        config_row = StoreConfigFactory(integration_id="int-1", company_name="Old Name")

        credential_service.commit(
            EditableState(ids=["AD-1"], primary_id="AD-1"),
            config_row.dealer_id,
            CredentialExtras(integration_id="", company_name="   "),
        )

        stored = credential_service.get_credential(config_row.dealer_id)
        assert stored.integration_id is None
        assert stored.company_name is None

    def test_round_trip(self, credential_service):
        dealer = DealerFactory()
        state = EditableState(ids=["Z", "Y", "X"], primary_id="Y")

        credential_service.commit(state, dealer.id)
        rebuilt = build_editable_state(credential_service.get_reconciled(dealer.id))

        assert set(rebuilt.ids) == {"X", "Y", "Z"}
        assert rebuilt.primary_id == "Y"

    def test_empty_state_stores_no_primary(self, credential_service):
        dealer = DealerFactory()

        result = credential_service.commit(EditableState(), dealer.id)

        assert result.primary_advertisement_id == ""
        stored = credential_service.get_credential(dealer.id)
        assert stored.advertisement_id is None
        assert reconcile(stored).primary_id == ""

    def test_unknown_dealer(self, credential_service):
        with pytest.raises(NotFoundError):
            credential_service.commit(EditableState(ids=["A"], primary_id="A"), "no-such-dealer")

    def test_missing_dealer_id(self, credential_service):
        DealerFactory()

        with pytest.raises(NotFoundError):
            credential_service.commit(EditableState(ids=["A"], primary_id="A"), None)


class TestRevoke:
    def test_revoke_clears_ids_and_keeps_row(self, credential_service):
        config_row = StoreConfigFactory(integration_id="int-1", primary_advertisement_id="AD-1")

        result = credential_service.revoke(config_row.dealer_id)

        assert result.revoked is True
        assert result.already_revoked is False
        stored = credential_service.get_credential(config_row.dealer_id)
        assert stored is not None
        assert stored.is_revoked
        assert stored.advertisement_id is None
        assert stored.additional_advertisement_ids == []
        assert stored.primary_advertisement_id is None
        assert stored.advertisement_ids_parsed == []
        assert stored.integration_id is None
        assert stored.email == config_row.email

    def test_revoke_twice_is_a_no_op(self, credential_service):
        config_row = StoreConfigFactory()
        first = credential_service.revoke(config_row.dealer_id)

        second = credential_service.revoke(config_row.dealer_id)

        assert second.revoked is True
        assert second.already_revoked is True
        assert second.revoked_at == first.revoked_at

    def test_revoke_without_credential(self, credential_service):
        dealer = DealerFactory()

        with pytest.raises(NotFoundError):
            credential_service.revoke(dealer.id)

    def test_revoke_without_dealer_id_touches_nothing(self, credential_service):
        config_row = StoreConfigFactory(integration_id="int-1")

        with pytest.raises(NotFoundError):
            credential_service.revoke(None)

        stored = credential_service.get_credential(config_row.dealer_id)
        assert reconcile(stored).ids == ["AD-1", "AD-2"]
        assert stored.integration_id == "int-1"
        assert not stored.is_revoked

    def test_commit_after_revoke_restores_access(self, credential_service, identity_provider):
        config_row = StoreConfigFactory()
        credential_service.revoke(config_row.dealer_id)

        result = credential_service.commit(
            EditableState(ids=["NEW-1"], primary_id="NEW-1"), config_row.dealer_id
        )

        assert result.created is False
        stored = credential_service.get_credential(config_row.dealer_id)
        assert stored.revoked_at is None
        assert stored.advertisement_id == "NEW-1"


class TestBulkReads:
    def test_bulk_load(self, credential_service):
        first = StoreConfigFactory()
        second = LegacyStoreConfigFactory()
        without_credential = DealerFactory()

        result = credential_service.get_credentials_for_dealers(
            [first.dealer_id, second.dealer_id, without_credential.id]
        )

        assert set(result) == {first.dealer_id, second.dealer_id}
        assert reconcile(result[second.dealer_id]).ids == ["LEG-1", "LEG-2"]

    def test_fallback_when_bulk_query_fails(self, credential_service):
        rows = [StoreConfigFactory() for _ in range(3)]
        dealer_ids = [row.dealer_id for row in rows]

        with patch(
            "dealer_console.services.credential_service.get_credentials_bulk",
            side_effect=TransportError("connection reset"),
        ) as bulk:
            result = credential_service.get_credentials_for_dealers(dealer_ids)

        bulk.assert_called_once()
        assert set(result) == set(dealer_ids)
        assert all(result[d].dealer_id == d for d in dealer_ids)

    def test_fallback_disabled(self, credential_service, app_config):
        app_config.features.bulk_load_fallback = False
        row = StoreConfigFactory()

        with patch(
            "dealer_console.services.credential_service.get_credentials_bulk",
            side_effect=TransportError("connection reset"),
        ):
            with pytest.raises(TransportError):
                credential_service.get_credentials_for_dealers([row.dealer_id])
