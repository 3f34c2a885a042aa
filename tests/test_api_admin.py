"""
Tests for admin management endpoints: companies, verifier grants, questions and staff users.
"""
from bgv.db.models.question import FormQuestion

from conftest import auth_headers, make_application, make_user


def test_company_crud(client, admin):
    headers = auth_headers(admin)

    created = client.post("/api/companies", headers=headers, json={
        "name": "  Initech ",
        "email": "hr@initech.example.com",
        "industry": "Software",
    })
    assert created.status_code == 201
    company = created.json()["data"]
    assert company["name"] == "Initech"
    assert company["verification_form_link"] == f"http://localhost:5173/user-form/{company['id']}"

    duplicate = client.post("/api/companies", headers=headers, json={"name": "Other", "email": "HR@initech.example.com"})
    assert duplicate.status_code == 400
    assert duplicate.json()["message"] == "Company with this email already exists"

    nameless = client.post("/api/companies", headers=headers, json={"email": "x@initech.example.com"})
    assert nameless.json()["message"] == "Company name is required"

    updated = client.put(f"/api/companies/{company['id']}", headers=headers, json={"contact_person": "Bill"})
    assert updated.json()["data"]["contact_person"] == "Bill"

    detail = client.get(f"/api/companies/{company['id']}", headers=headers).json()["data"]
    assert detail["application_count"] == 0

    deleted = client.delete(f"/api/companies/{company['id']}", headers=headers)
    assert deleted.json()["data"]["is_active"] is False

    listed = client.get("/api/companies", headers=headers).json()["data"]
    assert company["id"] not in [c["id"] for c in listed]
    with_inactive = client.get("/api/companies", params={"include_inactive": "true"}, headers=headers).json()["data"]
    assert company["id"] in [c["id"] for c in with_inactive]

    form = client.get(f"/api/companies/{company['id']}/form")
    assert form.status_code == 404


def test_company_applications(client, db, admin, company):
    make_application(db, company)
    headers = auth_headers(admin)

    response = client.get(f"/api/companies/{company.id}/applications", headers=headers)
    assert len(response.json()["data"]) == 1

    missing = client.get("/api/companies/999/applications", headers=headers)
    assert missing.status_code == 404


def test_verifier_grants(client, db, admin, company):
    verifier = make_user(db, "grantee@example.com", first_name="Gina")
    headers = auth_headers(admin)
    url = f"/api/companies/{company.id}/verifiers"

    granted = client.post(url, headers=headers, json={"verifier_id": verifier.id})
    assert granted.status_code == 201
    assert granted.json()["data"] == {"verifierId": verifier.id, "companyId": company.id, "isActive": True}

    listed = client.get(url, headers=headers).json()["data"]
    assert [v["email"] for v in listed] == ["grantee@example.com"]

    verifiers = client.get("/api/users/verifiers", headers=headers).json()["data"]
    gina = next(v for v in verifiers if v["id"] == verifier.id)
    assert gina["companies"] == [{"id": company.id, "name": "Acme Corp"}]

    removed = client.delete(f"{url}/{verifier.id}", headers=headers)
    assert removed.json() == {"success": True, "message": "Verifier unassigned from company successfully"}
    assert client.get(url, headers=headers).json()["data"] == []

    again = client.delete(f"{url}/{verifier.id}", headers=headers)
    assert again.status_code == 404


def test_question_crud(client, db, admin):
    headers = auth_headers(admin)

    created = client.post("/api/questions", headers=headers, json={
        "question_text": "Have you lived abroad?",
        "form_section": "personal",
        "display_order": 2,
    })
    assert created.status_code == 201
    question_id = created.json()["data"]["id"]

    missing_text = client.post("/api/questions", headers=headers, json={"form_section": "personal"})
    assert missing_text.status_code == 400

    active = client.get("/api/questions/active").json()["data"]
    assert [q["id"] for q in active] == [question_id]

    updated = client.put(f"/api/questions/{question_id}", headers=headers, json={"display_order": 5})
    assert updated.json()["data"]["display_order"] == 5

    client.delete(f"/api/questions/{question_id}", headers=headers)
    assert client.get("/api/questions/active").json()["data"] == []
    assert db.get(FormQuestion, question_id).is_active is False

    assert client.get("/api/questions/9999", headers=headers).status_code == 404


def test_create_staff_user(client, admin):
    headers = auth_headers(admin)

    created = client.post("/api/users", headers=headers, json={
        "email": "New.Verifier@example.com",
        "password": "secret1",
        "first_name": "Nia",
    })
    assert created.status_code == 201
    assert created.json()["data"]["email"] == "new.verifier@example.com"
    assert created.json()["data"]["user_type"] == "verifier"

    duplicate = client.post("/api/users", headers=headers, json={
        "email": "new.verifier@example.com",
        "password": "secret1",
        "first_name": "Nia",
    })
    assert duplicate.status_code == 400
    assert duplicate.json()["message"] == "User with this email already exists"

    short = client.post("/api/users", headers=headers, json={
        "email": "short@example.com",
        "password": "abc",
        "first_name": "Sam",
    })
    assert short.status_code == 400
    assert short.json()["message"].startswith("Invalid value for password")


def test_users_require_admin(client, db):
    verifier = make_user(db, "plain@example.com")
    response = client.post("/api/users", headers=auth_headers(verifier), json={
        "email": "x@example.com", "password": "secret1", "first_name": "X",
    })
    assert response.status_code == 403


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] in ("healthy", "degraded")
    assert "database" in body
    assert body["storage"] in ("local", "s3")
