import logging

import pytest
from fastapi.testclient import TestClient

from src.api.http_errors import account_error_status, error_body, proposal_error_status
from src.core.accounts.errors import (
    AccountAlreadyExistsError,
    AccountValidationError,
    AuthenticationRequiredError,
    InvalidCredentialsError,
)
from src.core.proposals.errors import (
    InvalidSignatureRoleError,
    ProposalAccessDeniedError,
    ProposalAlreadySignedError,
    ProposalLockedError,
    ProposalNotFoundError,
    ProposalTransitionError,
    ProposalValidationError,
)


@pytest.mark.parametrize(
    ("error", "expected_status"),
    [
        (ProposalNotFoundError("PROPOSAL_NOT_FOUND"), 404),
        (ProposalValidationError("BAD", field="status"), 400),
        (InvalidSignatureRoleError("INVALID_SIGNATURE_ROLE:x"), 400),
        (ProposalAccessDeniedError("SIGNATURE_ROLE_NOT_PERMITTED:noviq"), 403),
        (ProposalLockedError("PROPOSAL_LOCKED"), 423),
        (ProposalAlreadySignedError("PROPOSAL_ALREADY_SIGNED"), 423),
        (ProposalTransitionError("INVALID_TRANSITION"), 409),
    ],
)
def test_proposal_error_status_mapping(error, expected_status):
    assert proposal_error_status(error) == expected_status


@pytest.mark.parametrize(
    ("error", "expected_status"),
    [
        (AccountValidationError("EMAIL_REQUIRED", field="email"), 400),
        (AccountAlreadyExistsError("ACCOUNT_ALREADY_EXISTS"), 409),
        (InvalidCredentialsError("INVALID_CREDENTIALS"), 401),
        (AuthenticationRequiredError("AUTHENTICATION_REQUIRED"), 401),
    ],
)
def test_account_error_status_mapping(error, expected_status):
    assert account_error_status(error) == expected_status


def test_error_body_omits_missing_field():
    assert error_body("PROPOSAL_LOCKED") == {"message": "PROPOSAL_LOCKED"}
    assert error_body("EMAIL_REQUIRED", field="email") == {
        "message": "EMAIL_REQUIRED",
        "field": "email",
    }


def test_malformed_json_body_is_a_bad_request(admin_client):
    response = admin_client.post(
        "/api/proposals",
        content="{not json",
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 400
    assert "message" in response.json()


def test_unhandled_exception_returns_opaque_500(client, caplog):
    @client.app.get("/api/_boom")
    def _boom():
        raise RuntimeError("database password is hunter2")

    with TestClient(client.app, raise_server_exceptions=False) as raw_client:
        with caplog.at_level(logging.ERROR, logger="src.api.http_errors"):
            response = raw_client.get("/api/_boom")

    assert response.status_code == 500
    assert response.json() == {"message": "Internal server error"}
    assert "hunter2" not in response.text
    assert any(
        record.getMessage() == "Unhandled exception while serving request"
        for record in caplog.records
    )
