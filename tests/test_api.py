"""
API Tests - exercises the FastAPI app end to end with TestClient.

Each test gets its own temporary database (see conftest.kustoc_home).
"""

import pytest

CLIENT = {
    "name": "Ana Torres",
    "company": "Taller Torres",
    "sector": "Auto repair shops",
    "email": "ana@tallertorres.example",
    "tax_id": "B12345678",
    "status": "Active",
}


@pytest.fixture
def client_id(client):
    response = client.post("/api/clients", json=CLIENT)
    assert response.status_code == 201
    return response.json()["client_id"]


@pytest.fixture
def jump_id(client):
    response = client.post("/api/jumps", json={"name": "Workshop booking", "features": ["Calendar"]})
    assert response.status_code == 201
    return response.json()["jump_id"]


@pytest.fixture
def copilot_id(client):
    response = client.post("/api/copilots", json={"name": "Luis", "email": "luis@example.com"})
    assert response.status_code == 201
    return response.json()["copilot_id"]


@pytest.fixture
def project_id(client, client_id, jump_id, copilot_id):
    response = client.post(
        "/api/projects",
        json={
            "name": "Booking",
            "client_id": client_id,
            "jump_id": jump_id,
            "copilot_id": copilot_id,
            "start_date": "2026-01-10",
            "status": "planning",
            "contracted_hours": 20,
        },
    )
    assert response.status_code == 201
    return response.json()["project_id"]


class TestHealth:
    def test_health(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["schema_version"] == data["target_schema_version"]

    def test_request_id_echoed(self, client):
        response = client.get("/api/health", headers={"X-Request-ID": "req-test-123"})
        assert response.headers["x-request-id"] == "req-test-123"

    def test_request_id_generated(self, client):
        assert client.get("/api/health").headers["x-request-id"].startswith("req-")


class TestClientsApi:
    def test_create_returns_201_with_id(self, client):
        response = client.post("/api/clients", json=CLIENT)
        assert response.status_code == 201
        assert response.json()["client_id"] == "CLI001"

    def test_list_is_bare_array(self, client, client_id):
        response = client.get("/api/clients")
        assert response.status_code == 200
        assert [c["client_id"] for c in response.json()] == [client_id]

    def test_missing_field_is_400_with_field_name(self, client):
        body = {k: v for k, v in CLIENT.items() if k != "tax_id"}
        response = client.post("/api/clients", json=body)
        assert response.status_code == 400
        assert response.json()["error_code"] == "validation_error"
        assert "tax_id" in response.json()["detail"]

    def test_duplicate_email_is_400(self, client, client_id):
        response = client.post("/api/clients", json=CLIENT)
        assert response.status_code == 400

    def test_get_missing_is_404(self, client):
        response = client.get("/api/clients/CLI404")
        assert response.status_code == 404
        assert response.json() == {"detail": "clients 'CLI404' not found", "error_code": "not_found"}

    def test_put_is_partial(self, client, client_id):
        response = client.put(f"/api/clients/{client_id}", json={"phone": "600"})
        assert response.status_code == 200
        assert response.json()["phone"] == "600"
        assert response.json()["name"] == CLIENT["name"]

    def test_delete(self, client, client_id):
        response = client.delete(f"/api/clients/{client_id}")
        assert response.status_code == 200
        assert response.json() == {"success": True, "deleted": {"clients": 1}}
        assert client.get(f"/api/clients/{client_id}").status_code == 404

    def test_delete_with_dependents_is_409(self, client, client_id, project_id):
        response = client.delete(f"/api/clients/{client_id}")
        assert response.status_code == 409
        assert response.json()["error_code"] == "has_dependents"

    def test_interaction_with_file(self, client, client_id):
        response = client.post(
            f"/api/clients/{client_id}/interactions",
            data={"interaction_type": "Meeting", "interaction_summary": "Kickoff"},
            files={"file": ("minutes.pdf", b"%PDF-1.4 minutes", "application/pdf")},
        )
        assert response.status_code == 201
        stored = response.json()["interaction_files"]
        assert stored.startswith("interaction_files-") and stored.endswith(".pdf")

        download = client.get(f"/uploads/{stored}")
        assert download.status_code == 200
        assert download.content == b"%PDF-1.4 minutes"

        listed = client.get(f"/api/clients/{client_id}/interactions").json()
        assert [i["interaction_summary"] for i in listed] == ["Kickoff"]
        assert client.get(f"/api/clients/{client_id}").json()["last_interaction"] == listed[0]["interaction_date"]

    def test_interaction_without_file(self, client, client_id):
        response = client.post(f"/api/clients/{client_id}/interactions", data={"interaction_type": "Call"})
        assert response.status_code == 201
        assert response.json()["interaction_files"] is None

    def test_interaction_for_missing_client_stores_nothing(self, client, kustoc_home):
        response = client.post(
            "/api/clients/CLI404/interactions",
            data={"interaction_type": "Call"},
            files={"file": ("a.txt", b"x", "text/plain")},
        )
        assert response.status_code == 404
        uploads_dir = kustoc_home / "uploads"
        assert not uploads_dir.exists() or list(uploads_dir.iterdir()) == []

    def test_nested_listings(self, client, client_id, project_id, jump_id):
        assert [p["project_id"] for p in client.get(f"/api/clients/{client_id}/projects").json()] == [project_id]
        assert client.get(f"/api/clients/{client_id}/invoices").json() == []
        assert client.get(f"/api/clients/{client_id}/api-keys").json() == []
        client.post(f"/api/jumps/{jump_id}/clients", json={"client_id": client_id})
        assert [j["jump_id"] for j in client.get(f"/api/clients/{client_id}/jumps").json()] == [jump_id]


class TestJumpsApi:
    def test_clients_association(self, client, jump_id, client_id):
        first = client.post(f"/api/jumps/{jump_id}/clients", json={"client_id": client_id})
        again = client.post(f"/api/jumps/{jump_id}/clients", json={"client_id": client_id})
        assert first.status_code == 201 and first.json()["created"] is True
        assert again.json()["created"] is False

        jump = client.get(f"/api/jumps/{jump_id}").json()
        assert [c["client_id"] for c in jump["clients"]] == [client_id]

        removed = client.delete(f"/api/jumps/{jump_id}/clients/{client_id}")
        assert removed.status_code == 200
        assert client.delete(f"/api/jumps/{jump_id}/clients/{client_id}").status_code == 404

    def test_association_to_missing_client_is_400(self, client, jump_id):
        response = client.post(f"/api/jumps/{jump_id}/clients", json={"client_id": "CLI404"})
        assert response.status_code == 400
        assert response.json()["error_code"] == "missing_reference"

    def test_image_upload(self, client, jump_id):
        response = client.post(f"/api/jumps/{jump_id}/images", files={"file": ("shot.PNG", b"\x89PNG", "image/png")})
        assert response.status_code == 201
        images = response.json()["images"]
        assert len(images) == 1 and images[0].endswith(".png")

    def test_array_fields_round_trip_unchanged(self, client):
        features = ["x", " padded ", ""]
        created = client.post("/api/jumps", json={"name": "Exact", "features": features})
        assert created.status_code == 201
        assert created.json()["features"] == features
        assert client.get(f"/api/jumps/{created.json()['jump_id']}").json()["features"] == features

    def test_comma_string_split(self, client):
        created = client.post("/api/jumps", json={"name": "Split", "features": "a, b ,,c"})
        assert created.json()["features"] == ["a", "b", "c"]

    def test_invalid_status(self, client, jump_id):
        response = client.put(f"/api/jumps/{jump_id}", json={"status": "shipped"})
        assert response.status_code == 400


class TestCopilotsApi:
    def test_specialty_round_trip_unchanged(self, client):
        body = {"name": "Ines", "email": "ines@example.com", "specialty": ["  Python ", "", "C#"]}
        created = client.post("/api/copilots", json=body).json()
        assert client.get(f"/api/copilots/{created['copilot_id']}").json()["specialty"] == body["specialty"]

    def test_filter_by_availability(self, client, copilot_id):
        client.post("/api/copilots", json={"name": "Eva", "email": "eva@example.com", "availability": "busy"})
        busy = client.get("/api/copilots", params={"availability": "busy"}).json()
        assert [c["name"] for c in busy] == ["Eva"]


class TestProjectsApi:
    def test_missing_client_rejected(self, client, jump_id):
        response = client.post(
            "/api/projects",
            json={
                "name": "Orphan",
                "client_id": "CLI999",
                "jump_id": jump_id,
                "start_date": "2026-01-01",
                "status": "planning",
                "contracted_hours": 1,
            },
        )
        assert response.status_code == 400
        assert response.json()["error_code"] == "missing_reference"

    def test_filters(self, client, project_id, client_id):
        assert len(client.get("/api/projects", params={"client_id": client_id}).json()) == 1
        assert client.get("/api/projects", params={"status": "completed"}).json() == []

    def test_team_endpoints(self, client, project_id, copilot_id):
        other = client.post("/api/copilots", json={"name": "Marta", "email": "marta@example.com"}).json()

        added = client.post(f"/api/projects/{project_id}/copilots", json={"copilot_id": other["copilot_id"]})
        assert added.status_code == 201
        names = [c["name"] for c in client.get(f"/api/projects/{project_id}/copilots").json()]
        assert names == ["Luis", "Marta"]

        replaced = client.put(f"/api/projects/{project_id}/copilots", json={"copilots": [other["copilot_id"]]})
        assert replaced.json()["removed"] == [copilot_id]
        assert client.get(f"/api/projects/{project_id}").json()["copilot_id"] == other["copilot_id"]

        lead = client.put(f"/api/projects/{project_id}/copilot", json={"copilot_id": copilot_id})
        assert lead.json()["copilot_id"] == copilot_id

        assert client.delete(f"/api/projects/{project_id}/copilots/{copilot_id}").status_code == 200

    def test_set_jump(self, client, project_id):
        other = client.post("/api/jumps", json={"name": "Other"}).json()
        response = client.put(f"/api/projects/{project_id}/jump", json={"jump_id": other["jump_id"]})
        assert response.json()["jump_id"] == other["jump_id"]

    def test_api_keys_and_referrals(self, client, project_id, client_id, jump_id):
        key = client.post("/api/api-keys", json={"client_id": client_id, "jump_id": jump_id, "service": "stripe"})
        ref = client.post(
            "/api/referrals",
            json={"program_name": "Hosting", "referral_url": "https://x", "platform": "web", "commission": "10%"},
        )
        key_id, ref_id = key.json()["api_key_id"], ref.json()["referral_id"]

        assert client.put(f"/api/projects/{project_id}/api-keys", json={"api_keys": [key_id]}).json()["added"] == [key_id]
        assert client.put(f"/api/projects/{project_id}/referrals", json={"referrals": [ref_id]}).status_code == 200
        assert [k["api_key_id"] for k in client.get(f"/api/projects/{project_id}/api-keys").json()] == [key_id]
        assert [r["referral_id"] for r in client.get(f"/api/projects/{project_id}/referrals").json()] == [ref_id]

    def test_tasks(self, client, project_id):
        created = client.post(f"/api/projects/{project_id}/tasks", json={"description": "Deploy"})
        assert created.status_code == 201
        task_id = created.json()["task_id"]

        done = client.put(f"/api/projects/{project_id}/tasks/{task_id}", json={"status": "completed"})
        assert done.json()["completed_at"]
        assert len(client.get(f"/api/projects/{project_id}/tasks").json()) == 1

        deleted = client.delete(f"/api/projects/{project_id}/tasks/{task_id}")
        assert deleted.json() == {"success": True, "deleted": {"tasks": 1}}

    def test_delete_cascades(self, client, project_id):
        client.post(f"/api/projects/{project_id}/tasks", json={"description": "Deploy"})
        response = client.delete(f"/api/projects/{project_id}")
        assert response.json()["deleted"] == {"tasks": 1, "project_copilots": 1, "projects": 1}


class TestInvoicesApi:
    @pytest.fixture
    def invoice(self, client, client_id, project_id):
        response = client.post(
            "/api/invoices",
            json={
                "client_id": client_id,
                "project_id": project_id,
                "issue_date": "2026-02-01",
                "billing_name": "Taller Torres SL",
                "billing_tax_id": "B12345678",
                "status": "sent",
                "tax": 21,
                "items": [{"description": "Setup", "quantity": 2, "unit_price": 500}],
            },
        )
        assert response.status_code == 201
        return response.json()

    def test_total_and_items(self, client, invoice):
        assert invoice["total"] == pytest.approx(1210.0)
        fetched = client.get(f"/api/invoices/{invoice['invoice_id']}").json()
        assert [i["quantity"] for i in fetched["items"]] == [2]

    def test_status_and_pay(self, client, invoice):
        iid = invoice["invoice_id"]
        patched = client.patch(f"/api/invoices/{iid}/status", json={"status": "overdue"})
        assert patched.json()["status"] == "overdue"
        paid = client.put(f"/api/invoices/{iid}/pay", json={"payment_method": "card"})
        assert paid.json()["payment_status"] == "paid"
        assert client.get("/api/invoices", params={"status": "paid"}).json()[0]["invoice_id"] == iid

    def test_pay_without_body(self, client, invoice):
        response = client.put(f"/api/invoices/{invoice['invoice_id']}/pay")
        assert response.status_code == 200
        assert response.json()["status"] == "paid"

    def test_update_items(self, client, invoice):
        response = client.put(
            f"/api/invoices/{invoice['invoice_id']}",
            json={"tax": 0, "items": [{"description": "Hours", "quantity": 3, "unit_price": 40}]},
        )
        assert response.json()["total"] == pytest.approx(120.0)

    def test_delete(self, client, invoice):
        response = client.delete(f"/api/invoices/{invoice['invoice_id']}")
        assert response.json()["deleted"] == {"invoice_items": 1, "invoices": 1}


class TestApiKeysAndReferralsApi:
    def test_key_lifecycle(self, client, client_id, jump_id):
        created = client.post("/api/api-keys", json={"client_id": client_id, "jump_id": jump_id, "service": "maps"})
        assert created.status_code == 201
        key_id = created.json()["api_key_id"]

        off = client.put(f"/api/api-keys/{key_id}/deactivate")
        assert off.json()["status"] == "inactive"
        regenerated = client.post(f"/api/api-keys/{key_id}/regenerate")
        assert regenerated.json()["api_key"] != created.json()["api_key"]
        assert client.delete(f"/api/api-keys/{key_id}").json()["deleted"] == {"api_keys": 1}

    def test_referral_convert(self, client, client_id):
        ref = client.post(
            "/api/referrals",
            json={"program_name": "Hosting", "referral_url": "https://x", "platform": "web", "commission": "10%"},
        ).json()
        converted = client.put(f"/api/referrals/{ref['referral_id']}/convert", json={"client_id": client_id})
        assert converted.json()["status"] == "converted"
        assert converted.json()["converted_at"]


class TestReferenceSettingsDashboardApi:
    @pytest.mark.parametrize(
        "catalogue", ["sectors", "client-statuses", "project-statuses", "jump-statuses", "interaction-types"]
    )
    def test_reference_catalogues(self, client, catalogue):
        response = client.get(f"/api/reference/{catalogue}")
        assert response.status_code == 200
        assert len(response.json()) > 0

    def test_unknown_catalogue_is_404(self, client):
        assert client.get("/api/reference/colours").status_code == 404

    def test_settings_roundtrip(self, client):
        assert "company" in client.get("/api/settings").json()
        updated = client.put("/api/settings/appearance", json={"theme": "dark"})
        assert updated.json()["appearance"]["theme"] == "dark"
        assert client.put("/api/settings/payroll", json={"x": 1}).status_code == 400
        reset = client.post("/api/settings/reset")
        assert reset.json()["appearance"]["theme"] == "system"

    def test_dashboard(self, client, project_id):
        stats = client.get("/api/dashboard/stats").json()
        assert stats["counts"]["projects"] == 1
        assert stats["recent_projects"][0]["project_id"] == project_id
