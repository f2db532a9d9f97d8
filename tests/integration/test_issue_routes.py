"""Integration tests for /issues through the full FastAPI stack."""

from fastapi.testclient import TestClient

from app.utils.firestore_helpers import new_document_id
from tests.fakes import FakeFirestore


class TestCreateIssue:
    def test_created_pending_and_recorded_on_citizen(self, client: TestClient, make_citizen, make_issue,
                                                     db: FakeFirestore) -> None:
        citizen = make_citizen()
        issue = make_issue(citizen)

        assert issue["status"] == "Pending Verification"
        assert issue["isActive"] is True
        assert issue["isArchived"] is False

        profile = db.read("citizens", citizen["id"])
        assert [entry["issueId"] for entry in profile["issuesReported"]] == [issue["id"]]
        assert profile["totalIssuesReported"] == 1
        assert profile["totalPending"] == 1

    def test_missing_title(self, client: TestClient) -> None:
        response = client.post("/issues", json={
            "citizenId": new_document_id(), "wardId": new_document_id(), "description": "d",
        })
        assert response.status_code == 400

    def test_blank_title_rejected(self, client: TestClient, db: FakeFirestore) -> None:
        response = client.post("/issues", json={
            "citizenId": new_document_id(), "wardId": new_document_id(),
            "title": "   ", "description": "Large pothole",
        })
        assert response.status_code == 400
        assert "title" in response.json()["detail"]
        assert list(db.collection("issues").stream()) == []

    def test_malformed_citizen_id(self, client: TestClient) -> None:
        response = client.post("/issues", json={
            "citizenId": "citizen-1", "wardId": new_document_id(), "title": "t", "description": "d",
        })
        assert response.status_code == 400
        assert "citizenId" in response.json()["detail"]

    def test_unknown_category_is_a_validation_error(self, client: TestClient) -> None:
        response = client.post("/issues", json={
            "citizenId": new_document_id(), "wardId": new_document_id(),
            "title": "t", "description": "d", "category": "Aliens",
        })
        assert response.status_code == 400


class TestLifecycle:
    def test_pending_to_resolved(self, client: TestClient, make_citizen, make_issue, db: FakeFirestore) -> None:
        citizen = make_citizen()
        issue_id = make_issue(citizen)["id"]
        rep, officer = new_document_id(), new_document_id()

        response = client.post(f"/issues/{issue_id}/verify", json={"wardRepId": rep})
        assert response.status_code == 200
        assert response.json()["status"] == "Verified"
        assert response.json()["verifiedBy"] == rep

        response = client.post(f"/issues/{issue_id}/assign", json={"officerId": officer})
        assert response.status_code == 200
        assert response.json()["status"] == "Assigned"

        response = client.post(f"/issues/{issue_id}/progress", json={"status": "Resolved", "remark": "Filled"})
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "Resolved"
        assert body["resolvedDate"] is not None
        assert body["progressUpdates"][-1]["remark"] == "Filled"

        profile = db.read("citizens", citizen["id"])
        assert profile["issuesReported"][0]["status"] == "Resolved"
        assert profile["totalResolved"] == 1
        assert profile["totalPending"] == 0

    def test_illegal_transition(self, client: TestClient, make_issue) -> None:
        issue_id = make_issue()["id"]
        response = client.post(f"/issues/{issue_id}/progress", json={"status": "Resolved"})
        assert response.status_code == 400
        assert "Invalid status transition" in response.json()["detail"]

    def test_work_halted_keeps_status(self, client: TestClient, make_issue) -> None:
        issue_id = make_issue()["id"]
        client.post(f"/issues/{issue_id}/verify", json={"wardRepId": new_document_id()})
        client.post(f"/issues/{issue_id}/assign", json={"workerId": new_document_id()})

        response = client.post(f"/issues/{issue_id}/progress", json={"status": "Work Halted", "remark": "Rain"})
        assert response.status_code == 200
        assert response.json()["status"] == "Assigned"
        assert response.json()["progressUpdates"][-1]["status"] == "Work Halted"

    def test_patch_cannot_change_status(self, client: TestClient, make_issue) -> None:
        issue_id = make_issue()["id"]
        response = client.patch(f"/issues/{issue_id}", json={"title": "Deep pothole", "status": "Closed"})
        assert response.status_code == 200
        assert response.json()["title"] == "Deep pothole"
        assert response.json()["status"] == "Pending Verification"

    def test_assign_requires_target(self, client: TestClient, make_issue) -> None:
        issue_id = make_issue()["id"]
        client.post(f"/issues/{issue_id}/verify", json={"wardRepId": new_document_id()})
        assert client.post(f"/issues/{issue_id}/assign", json={}).status_code == 400


class TestReads:
    def test_get_expands_citizen(self, client: TestClient, make_citizen, make_issue) -> None:
        citizen = make_citizen()
        issue = make_issue(citizen)

        body = client.get(f"/issues/{issue['id']}").json()
        assert body["citizenId"]["id"] == citizen["id"]
        assert body["citizenId"]["address"] == citizen["address"]
        # no ward document exists, the raw id is kept
        assert body["wardId"] == citizen["wardId"]

    def test_unknown_and_malformed_ids(self, client: TestClient) -> None:
        assert client.get(f"/issues/{new_document_id()}").status_code == 404
        assert client.get("/issues/not-an-id").status_code == 400

    def test_list_filters_and_excludes_archived(self, client: TestClient, make_issue) -> None:
        ward = new_document_id()
        kept = make_issue(wardId=ward, title="Broken streetlight", category="Lighting")
        archived = make_issue(wardId=ward, title="Garbage pile")
        make_issue(title="Elsewhere")
        client.patch(f"/issues/{archived['id']}/archive", json={"archive": True})

        body = client.get("/issues", params={"wardId": ward}).json()
        assert body["total"] == 1
        assert body["items"][0]["id"] == kept["id"]

        body = client.get("/issues", params={"category": "Lighting"}).json()
        assert [item["id"] for item in body["items"]] == [kept["id"]]

    def test_free_text_search(self, client: TestClient, make_issue) -> None:
        make_issue(title="Overflowing drain", description="Water on road")
        make_issue(title="Pothole", description="Near the DRAIN cover")
        make_issue(title="Streetlight", description="Dark lane")

        body = client.get("/issues", params={"q": "drain"}).json()
        assert body["total"] == 2
        assert body["page"] == 1
        assert body["limit"] == 20


class TestEngagement:
    def test_like_toggle(self, client: TestClient, make_issue) -> None:
        issue_id = make_issue()["id"]
        user = new_document_id()

        first = client.post(f"/issues/{issue_id}/like", json={"userId": user}).json()
        second = client.post(f"/issues/{issue_id}/like", json={"userId": user}).json()

        assert first == {"likesCount": 1, "liked": True}
        assert second == {"likesCount": 0, "liked": False}

    def test_views_increment(self, client: TestClient, make_issue) -> None:
        issue_id = make_issue()["id"]
        client.post(f"/issues/{issue_id}/views")
        assert client.post(f"/issues/{issue_id}/views").json() == {"views": 2}

    def test_views_on_missing_issue(self, client: TestClient) -> None:
        assert client.post(f"/issues/{new_document_id()}/views").status_code == 404

    def test_comment(self, client: TestClient, make_issue) -> None:
        issue_id = make_issue()["id"]
        user = new_document_id()
        response = client.post(f"/issues/{issue_id}/comment", json={"userId": user, "text": "Still unfixed"})
        assert response.status_code == 201
        assert response.json()["comments"][0]["userId"] == user

    def test_like_requires_user(self, client: TestClient, make_issue) -> None:
        issue_id = make_issue()["id"]
        assert client.post(f"/issues/{issue_id}/like", json={}).status_code == 400


class TestArchiveAndDelete:
    def test_archive_and_restore(self, client: TestClient, make_issue) -> None:
        issue_id = make_issue()["id"]
        body = client.patch(f"/issues/{issue_id}/archive", json={"archive": True}).json()
        assert body["isArchived"] is True and body["isActive"] is False

        body = client.patch(f"/issues/{issue_id}/archive", json={"archive": False}).json()
        assert body["isArchived"] is False and body["isActive"] is True

    def test_delete(self, client: TestClient, make_issue) -> None:
        issue_id = make_issue()["id"]
        assert client.delete(f"/issues/{issue_id}").status_code == 200
        assert client.get(f"/issues/{issue_id}").status_code == 404
        assert client.delete(f"/issues/{issue_id}").status_code == 404

    def test_delete_removes_citizen_entry(self, client: TestClient, make_citizen, make_issue,
                                          db: FakeFirestore) -> None:
        citizen = make_citizen()
        kept = make_issue(citizen)["id"]
        deleted = make_issue(citizen)["id"]

        assert client.delete(f"/issues/{deleted}").status_code == 200

        profile = db.read("citizens", citizen["id"])
        assert [entry["issueId"] for entry in profile["issuesReported"]] == [kept]
        assert profile["totalIssuesReported"] == 1
        assert profile["totalPending"] == 1


def test_get_expands_seeded_ward(client: TestClient, make_citizen, make_issue, db: FakeFirestore) -> None:
    ward = new_document_id()
    db.put("wards", ward, {"name": "Kothrud"})
    issue = make_issue(make_citizen(wardId=ward))

    body = client.get(f"/issues/{issue['id']}").json()
    assert body["wardId"] == {"id": ward, "name": "Kothrud"}
