"""Integration tests for /citizen."""

from fastapi.testclient import TestClient

from app.utils.firestore_helpers import new_document_id


class TestProfiles:
    def test_create(self, make_citizen) -> None:
        citizen = make_citizen(pincode="411001")
        assert citizen["pincode"] == "411001"
        assert citizen["totalIssuesReported"] == 0
        assert citizen["isVerifiedCitizen"] is False

    def test_one_profile_per_user(self, client: TestClient, make_citizen) -> None:
        user = new_document_id()
        make_citizen(userId=user)
        response = client.post("/citizen", json={"userId": user, "wardId": new_document_id(), "address": "Other"})
        assert response.status_code == 409

    def test_missing_address(self, client: TestClient) -> None:
        response = client.post("/citizen", json={"userId": new_document_id(), "wardId": new_document_id()})
        assert response.status_code == 400

    def test_invalid_pincode(self, client: TestClient) -> None:
        response = client.post("/citizen", json={
            "userId": new_document_id(), "wardId": new_document_id(), "address": "x", "pincode": "0123",
        })
        assert response.status_code == 400

    def test_update_ignores_ledger_fields(self, client: TestClient, make_citizen) -> None:
        citizen = make_citizen()
        response = client.patch(f"/citizen/{citizen['id']}", json={
            "address": "14 FC Road", "totalResolved": 9, "userId": new_document_id(),
        })
        assert response.status_code == 200
        assert response.json()["address"] == "14 FC Road"
        assert response.json()["totalResolved"] == 0
        assert response.json()["userId"] == citizen["userId"]

    def test_delete_frees_user(self, client: TestClient, make_citizen) -> None:
        user = new_document_id()
        citizen = make_citizen(userId=user)
        assert client.delete(f"/citizen/{citizen['id']}").status_code == 200
        assert client.get(f"/citizen/{citizen['id']}").status_code == 404
        make_citizen(userId=user)


class TestReportedIssues:
    def test_report_and_update_status(self, client: TestClient, make_citizen) -> None:
        citizen_id = make_citizen()["id"]
        first, second = new_document_id(), new_document_id()

        client.post(f"/citizen/{citizen_id}/report-issue", json={"issueId": first, "title": "Pothole"})
        response = client.post(f"/citizen/{citizen_id}/report-issue", json={"issueId": second, "title": "Lamp"})
        assert response.status_code == 201
        assert response.json()["totalIssuesReported"] == 2
        assert response.json()["totalPending"] == 2

        response = client.patch(f"/citizen/{citizen_id}/report-issue/{first}", json={"status": "Closed"})
        assert response.status_code == 200
        body = response.json()
        assert body["totalResolved"] == 1
        assert body["totalPending"] == 1
        assert body["activityLog"][-1]["action"] == "Issue status updated to Closed"

    def test_duplicate_report(self, client: TestClient, make_citizen) -> None:
        citizen_id = make_citizen()["id"]
        issue_id = new_document_id()
        client.post(f"/citizen/{citizen_id}/report-issue", json={"issueId": issue_id})
        response = client.post(f"/citizen/{citizen_id}/report-issue", json={"issueId": issue_id})
        assert response.status_code == 409

    def test_update_unreported_issue(self, client: TestClient, make_citizen) -> None:
        citizen_id = make_citizen()["id"]
        response = client.patch(f"/citizen/{citizen_id}/report-issue/{new_document_id()}", json={"status": "Verified"})
        assert response.status_code == 404

    def test_unknown_status(self, client: TestClient, make_citizen) -> None:
        citizen_id = make_citizen()["id"]
        response = client.post(f"/citizen/{citizen_id}/report-issue", json={
            "issueId": new_document_id(), "status": "Done",
        })
        assert response.status_code == 400


class TestActivity:
    def test_comment_and_activity(self, client: TestClient, make_citizen) -> None:
        citizen_id = make_citizen()["id"]
        client.post(f"/citizen/{citizen_id}/comment", json={"commentText": "Thanks for the quick fix"})
        response = client.post(f"/citizen/{citizen_id}/activity", json={"action": "Shared issue"})

        assert response.status_code == 201
        actions = [entry["action"] for entry in response.json()["activityLog"]]
        assert actions == ["Commented", "Shared issue"]

    def test_verify_and_archive(self, client: TestClient, make_citizen) -> None:
        citizen_id = make_citizen()["id"]

        body = client.patch(f"/citizen/{citizen_id}/verify", json={"verify": True}).json()
        assert body["isVerifiedCitizen"] is True

        body = client.patch(f"/citizen/{citizen_id}/archive", json={"archive": True}).json()
        assert body["isArchived"] is True
        assert body["isActive"] is False
        assert [entry["action"] for entry in body["activityLog"]] == ["Verified as citizen", "Archived profile"]


class TestListing:
    def test_pagination(self, client: TestClient, make_citizen) -> None:
        for _ in range(25):
            make_citizen()

        body = client.get("/citizen", params={"limit": 10, "page": 3}).json()
        assert body["total"] == 25
        assert body["page"] == 3
        assert body["limit"] == 10
        assert len(body["items"]) == 5

    def test_filters(self, client: TestClient, make_citizen) -> None:
        ward = new_document_id()
        verified = make_citizen(wardId=ward, alternatePhone="9876543210")
        make_citizen(wardId=ward)
        make_citizen()
        client.patch(f"/citizen/{verified['id']}/verify", json={"verify": True})

        assert client.get("/citizen", params={"wardId": ward}).json()["total"] == 2
        body = client.get("/citizen", params={"wardId": ward, "verified": "true"}).json()
        assert [item["id"] for item in body["items"]] == [verified["id"]]

        body = client.get("/citizen", params={"q": "98765"}).json()
        assert [item["id"] for item in body["items"]] == [verified["id"]]

    def test_limit_ceiling(self, client: TestClient, make_citizen) -> None:
        make_citizen()
        assert client.get("/citizen", params={"limit": 1000}).json()["limit"] == 100
