"""Factories for creating records through the HTTP API."""

import pytest
from fastapi.testclient import TestClient

from app.utils.firestore_helpers import new_document_id


@pytest.fixture
def make_citizen(client: TestClient):
    def factory(**overrides) -> dict:
        body = {"userId": new_document_id(), "wardId": new_document_id(), "address": "12 MG Road, Pune"}
        body.update(overrides)
        response = client.post("/citizen", json=body)
        assert response.status_code == 201, response.text
        return response.json()
    return factory


@pytest.fixture
def make_issue(client: TestClient, make_citizen):
    def factory(citizen: dict = None, **overrides) -> dict:
        citizen = citizen or make_citizen()
        body = {
            "citizenId": citizen["id"],
            "wardId": citizen["wardId"],
            "title": "Pothole",
            "description": "Large pothole on Main St",
            "category": "Roads",
        }
        body.update(overrides)
        response = client.post("/issues", json=body)
        assert response.status_code == 201, response.text
        return response.json()
    return factory


@pytest.fixture
def make_budget(client: TestClient, make_issue):
    def factory(issue: dict = None, **overrides) -> dict:
        issue = issue or make_issue()
        body = {
            "issueId": issue["id"],
            "wardId": issue["wardId"],
            "approvedBy": new_document_id(),
            "estimatedCost": 1000,
            "amountApproved": 800,
        }
        body.update(overrides)
        response = client.post("/budget", json=body)
        assert response.status_code == 201, response.text
        return response.json()
    return factory
