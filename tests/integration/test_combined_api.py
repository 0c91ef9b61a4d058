from fastapi.testclient import TestClient

from intake.main import create_app
from tests.helpers import PDF_BYTES, make_settings

CONTACT = {
    "name": "Grace",
    "mobile": "+1 555 010 9999",
    "email": "grace@example.com",
    "subject": "Partnership",
    "message": "Let's talk.",
}


def test_contact_without_resume(combined_client):
    response = combined_client.post("/api/contact", data=CONTACT)

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Contact saved successfully!"
    assert "kind" not in body["data"]
    assert body["data"]["createdAt"].endswith(("Z", "+00:00"))
    assert body["data"]["resumeFileId"] is None
    assert body["data"]["resumeDownloadUrl"] is None


def test_contact_with_resume_is_downloadable(combined_client):
    response = combined_client.post(
        "/api/contact",
        data=CONTACT,
        files={"resume": ("cv.pdf", PDF_BYTES, "application/pdf")},
    )

    record = response.json()["data"]
    download = combined_client.get(record["resumeDownloadUrl"])

    assert download.status_code == 200
    assert download.content == PDF_BYTES


def test_contact_listing_newest_first(combined_client):
    combined_client.post("/api/contact", data={**CONTACT, "name": "First"})
    combined_client.post("/api/contact", data={**CONTACT, "name": "Second"})

    body = combined_client.get("/api/contacts").json()

    assert body["success"] is True
    assert [r["name"] for r in body["data"]] == ["Second", "First"]


def test_contact_missing_email(combined_client):
    response = combined_client.post("/api/contact", data={"name": "Grace"})

    assert response.status_code == 400
    assert response.json() == {
        "success": False,
        "message": "Missing required fields: email",
    }


def test_contact_rejects_non_pdf(combined_client):
    response = combined_client.post(
        "/api/contact",
        data=CONTACT,
        files={"resume": ("notes.txt", b"plain text", "text/plain")},
    )

    assert response.status_code == 400
    assert combined_client.get("/api/contacts").json()["data"] == []


def test_split_routes_are_not_mounted(combined_client):
    assert combined_client.post("/api/contact/general", json=CONTACT).status_code == 404
    assert combined_client.get("/api/contacts/internship").status_code == 404


def test_restricted_cors_only_allows_listed_origins(database):
    settings = make_settings(SCHEMA_VARIANT="combined", CORS_ALLOW_ALL_ORIGINS=False)
    with TestClient(create_app(settings, database=database)) as client:
        allowed = client.get("/", headers={"Origin": "http://localhost:3000"})
        denied = client.get("/", headers={"Origin": "https://elsewhere.example"})

    assert allowed.headers["access-control-allow-origin"] == "http://localhost:3000"
    assert "access-control-allow-origin" not in denied.headers
