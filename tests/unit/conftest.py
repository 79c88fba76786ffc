"""
Unit test conftest.py - Component-specific fixtures.

Services get the test session. The identity provider is the only external
dependency and is replaced with a recording fake.
"""

from typing import List, Optional

import pytest

from dealer_console.config import AppConfig, set_config
from dealer_console.constants import InvitationStatus
from dealer_console.exceptions import InvitationError
from dealer_console.schemas.invitation_schemas import InvitationOutcome
from dealer_console.services.credential_service import CredentialService
from dealer_console.services.dealer_logo_service import DealerLogoService
from dealer_console.services.export_service import ExportService
from dealer_console.services.invitation_service import IdentityProvider, InvitationService
from dealer_console.services.submission_service import SubmissionService


class FakeIdentityProvider(IdentityProvider):
    """Records invitations and answers with a canned outcome or error."""

    def __init__(self, error: Optional[Exception] = None, status=InvitationStatus.INVITED):
        self.error = error
        self.status = status
        self.calls: List[dict] = []

    def send_invitation(self, email, dealer_id, store_config_id=None):
        self.calls.append(
            {"email": email, "dealer_id": dealer_id, "store_config_id": store_config_id}
        )
        if self.error:
            raise self.error
        return InvitationOutcome(
            status=self.status,
            invitation_id=f"inv_{len(self.calls)}",
            invitation_url="https://console.example.com/sign-in?__clerk_invitation_token=inv",
            email=email,
            message="Invitation sent",
        )


# ==================== CONFIG FIXTURES ====================


@pytest.fixture
def app_config() -> AppConfig:
    """Configuration installed as the global one for the test."""
    config = AppConfig()
    set_config(config)
    return config


# ==================== PROVIDER FIXTURES ====================


@pytest.fixture
def identity_provider() -> FakeIdentityProvider:
    return FakeIdentityProvider()


@pytest.fixture
def failing_identity_provider() -> FakeIdentityProvider:
    return FakeIdentityProvider(error=InvitationError("Clerk API Error: rate limited"))


# ==================== SERVICE FIXTURES ====================


@pytest.fixture(scope="function")
def invitation_service(db_session, app_config, identity_provider):
    """Invitation service with test session and fake provider."""
    return InvitationService(session=db_session, provider=identity_provider, config=app_config)


@pytest.fixture(scope="function")
def credential_service(db_session, app_config, invitation_service):
    """Credential service with test session."""
    return CredentialService(
        session=db_session, invitation_service=invitation_service, config=app_config
    )


@pytest.fixture(scope="function")
def submission_service(db_session, app_config, credential_service):
    return SubmissionService(
        session=db_session, credential_service=credential_service, config=app_config
    )


@pytest.fixture(scope="function")
def logo_service(db_session, app_config):
    return DealerLogoService(session=db_session, config=app_config)


@pytest.fixture(scope="function")
def export_service(db_session, app_config):
    return ExportService(session=db_session, config=app_config)
