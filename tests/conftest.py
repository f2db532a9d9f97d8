"""
Shared fixtures: an in-memory Firestore and a TestClient whose services
are bound to it through dependency overrides.
"""

import os

os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("JWT_SECRET", "test-secret-key-for-hs256-signing-000")

import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.services.account_service import (
    AdminService, OfficerService, WardRepService,
    get_admin_service, get_officer_service, get_ward_rep_service,
)
from app.services.budget_service import BudgetService, get_budget_service
from app.services.citizen_service import CitizenService, get_citizen_service
from app.services.issue_service import IssueService, get_issue_service
from tests.fakes import FakeFirestore


@pytest.fixture
def db():
    return FakeFirestore()


@pytest.fixture
def client(db):
    overrides = {
        get_issue_service: lambda: IssueService(db),
        get_budget_service: lambda: BudgetService(db),
        get_citizen_service: lambda: CitizenService(db),
        get_admin_service: lambda: AdminService(db),
        get_ward_rep_service: lambda: WardRepService(db),
        get_officer_service: lambda: OfficerService(db),
    }
    app.dependency_overrides.update(overrides)
    # no context manager: startup (real Firestore init) is skipped
    yield TestClient(app)
    app.dependency_overrides.clear()
