from datetime import datetime, timedelta, timezone

from sqlalchemy import text

from conftest import make_employer, make_job
from udyoga_setu.db.postgres import get_db_session
from udyoga_setu.services.job_service import get_job_service


def set_status(job_id, status, created_at=None):
    params = {"status": status, "id": job_id}
    extra = ""
    if created_at:
        extra = ", created_at = :created"
        params["created"] = created_at.isoformat(timespec="microseconds")
    with get_db_session() as db:
        db.execute(text(f"UPDATE jobs SET status = :status{extra} WHERE id = :id"), params)


class TestJobCrud:
    def test_create_job_has_display_fields(self, client, employer):
        job = make_job(client, employer)

        assert job["status"] == "active"
        assert job["company_name"] == "Acme Textiles"
        assert job["salary_display"] == "₹15,000 - ₹22,000"
        assert job["job_type_display"] == "Full-time"
        assert job["experience_display"] == "Entry Level (0-2 years)"
        assert job["posted_ago"] == "0m ago"
        assert job["requirements"] == ["ITI certificate"]
        assert job["benefits"] == ["PF", "ESI"]
        assert job["kiosk_enabled"] is False

    def test_salary_range_must_be_ordered(self, client, employer):
        response = client.post(
            "/api/jobs",
            json={"title": "Tailor", "location": "Tiruppur", "description": "Stitching",
                  "contact_email": "hr@acme.in", "salary_min": 30000, "salary_max": 20000},
            headers=employer["headers"],
        )
        assert response.status_code == 400

    def test_create_requires_company_profile(self, client):
        client.post("/api/auth/register", json={"email": "new@firm.in", "password": "password123"})
        token = client.post("/api/auth/login", json={"email": "new@firm.in", "password": "password123"}).json()
        response = client.post(
            "/api/jobs",
            json={"title": "Tailor", "location": "Tiruppur", "description": "Stitching", "contact_email": "a@b.in"},
            headers={"Authorization": f"Bearer {token['access_token']}"},
        )
        assert response.status_code == 404

    def test_update_only_sent_fields(self, client, employer, job):
        response = client.put(
            f"/api/jobs/{job['id']}",
            json={"title": "Senior Machine Operator", "skills": ["looms", "maintenance"]},
            headers=employer["headers"],
        )

        assert response.status_code == 200
        body = response.json()
        assert body["title"] == "Senior Machine Operator"
        assert body["skills"] == ["looms", "maintenance"]
        assert body["location"] == job["location"]

    def test_update_with_no_fields(self, client, employer, job):
        assert client.put(f"/api/jobs/{job['id']}", json={}, headers=employer["headers"]).status_code == 400

    def test_null_fields_are_ignored(self, client, employer, job):
        response = client.put(
            f"/api/jobs/{job['id']}", json={"title": None, "location": "Erode"}, headers=employer["headers"]
        )

        assert response.status_code == 200
        assert response.json()["title"] == "Machine Operator"
        assert response.json()["location"] == "Erode"

    def test_only_nulls_is_an_empty_update(self, client, employer, job):
        response = client.put(f"/api/jobs/{job['id']}", json={"title": None}, headers=employer["headers"])
        assert response.status_code == 400

    def test_update_checks_salary_against_stored_value(self, client, employer, job):
        response = client.put(f"/api/jobs/{job['id']}", json={"salary_min": 30000}, headers=employer["headers"])

        assert response.status_code == 400
        assert client.get(f"/api/jobs/{job['id']}").json()["salary_min"] == 15000

    def test_employer_can_pause_and_close(self, client, employer, job):
        for status in ("paused", "closed", "draft"):
            response = client.put(f"/api/jobs/{job['id']}", json={"status": status}, headers=employer["headers"])
            assert response.json()["status"] == status

    def test_employer_cannot_reactivate_rejected_job(self, client, employer, admin_headers, job):
        client.post(f"/api/moderation/jobs/{job['id']}/reject", headers=admin_headers)

        response = client.put(f"/api/jobs/{job['id']}", json={"status": "active"}, headers=employer["headers"])

        assert response.status_code == 403
        assert client.get(f"/api/jobs/{job['id']}").json()["status"] == "rejected"

    def test_employer_cannot_move_job_into_moderation_states(self, client, employer, job):
        for status in ("pending", "under_review", "flagged", "rejected"):
            response = client.put(f"/api/jobs/{job['id']}", json={"status": status}, headers=employer["headers"])
            assert response.status_code == 403

    def test_other_company_cannot_edit(self, client, employer, job):
        other = make_employer(client, email="owner@silk.in", company_name="Silk House")
        response = client.put(f"/api/jobs/{job['id']}", json={"title": "Hijacked"}, headers=other["headers"])
        assert response.status_code == 404
        assert client.delete(f"/api/jobs/{job['id']}", headers=other["headers"]).status_code == 404

    def test_delete_job_removes_applications(self, client, employer, job):
        client.post("/api/applications", json={
            "job_id": job["id"], "applicant_name": "Meena", "applicant_phone": "9123456780",
        })

        assert client.delete(f"/api/jobs/{job['id']}", headers=employer["headers"]).status_code == 200
        assert client.get(f"/api/jobs/{job['id']}").status_code == 404
        assert client.get("/api/companies/applications", headers=employer["headers"]).json() == []

    def test_company_jobs(self, client, employer, job):
        make_job(client, employer, title="Packer")
        jobs = client.get("/api/companies/jobs", headers=employer["headers"]).json()
        assert sorted(j["title"] for j in jobs) == ["Machine Operator", "Packer"]

    def test_unknown_job(self, client):
        assert client.get("/api/jobs/missing").status_code == 404


class TestJobListing:
    def test_only_active_jobs_are_listed(self, client, employer, job):
        hidden = make_job(client, employer, title="Night Watchman")
        set_status(hidden["id"], "pending")

        body = client.get("/api/jobs").json()

        assert body["total"] == 1
        assert [j["id"] for j in body["jobs"]] == [job["id"]]

    def test_filters(self, client, employer):
        make_job(client, employer, title="Electrician", location="Mysuru", job_type="contract")
        make_job(client, employer, title="Electrical Helper", location="Hubballi", job_type="full-time")
        make_job(client, employer, title="Driver", location="Mysuru", job_type="full-time")

        assert client.get("/api/jobs?search=ELECTRIC").json()["total"] == 2
        assert client.get("/api/jobs?location=mysuru").json()["total"] == 2
        assert client.get("/api/jobs?job_type=contract").json()["total"] == 1
        assert client.get("/api/jobs?search=electric&location=mysuru").json()["total"] == 1

    def test_pagination(self, client, employer):
        for i in range(5):
            make_job(client, employer, title=f"Helper {i}")

        body = client.get("/api/jobs?page=2&page_size=2").json()

        assert body["total"] == 5
        assert body["page"] == 2
        assert len(body["jobs"]) == 2


class TestModeration:
    def test_requires_admin(self, client, employer):
        assert client.get("/api/moderation/queue", headers=employer["headers"]).status_code == 403

    def test_queue_holds_pending_review_and_flagged(self, client, employer, admin_headers):
        now = datetime.now(timezone.utc)
        pending = make_job(client, employer, title="Pending Job")
        flagged = make_job(client, employer, title="Flagged Job")
        make_job(client, employer, title="Live Job")
        set_status(pending["id"], "pending", created_at=now - timedelta(hours=2))
        set_status(flagged["id"], "flagged", created_at=now - timedelta(hours=1))

        queue = client.get("/api/moderation/queue", headers=admin_headers).json()

        assert [j["title"] for j in queue] == ["Pending Job", "Flagged Job"]

    def test_jobs_by_status(self, client, employer, admin_headers, job):
        set_status(job["id"], "rejected")
        response = client.get("/api/moderation/jobs?status=rejected&status=flagged", headers=admin_headers)
        assert [j["id"] for j in response.json()] == [job["id"]]

    def test_approve(self, client, employer, admin_headers, job):
        set_status(job["id"], "pending")

        body = client.post(
            f"/api/moderation/jobs/{job['id']}/approve", json={"notes": "Looks fine"}, headers=admin_headers
        ).json()

        assert body["status"] == "active"
        assert body["moderation_notes"] == "Looks fine"
        assert body["moderated_by"]
        assert body["moderated_at"]

    def test_reject_without_body(self, client, employer, admin_headers, job):
        body = client.post(f"/api/moderation/jobs/{job['id']}/reject", headers=admin_headers).json()
        assert body["status"] == "rejected"

    def test_flag_raises_priority(self, client, employer, admin_headers, job):
        body = client.post(
            f"/api/moderation/jobs/{job['id']}/flag", json={"reason": "Misleading salary"}, headers=admin_headers
        ).json()

        assert body["status"] == "flagged"
        assert body["priority"] == "high"
        assert body["flagged_reason"] == "Misleading salary"

    def test_request_edits(self, client, employer, admin_headers, job):
        body = client.post(
            f"/api/moderation/jobs/{job['id']}/request-edits",
            json={"notes": "Add shift timings"}, headers=admin_headers
        ).json()
        assert body["status"] == "under_review"
        assert body["moderation_notes"] == "Add shift timings"

    def test_priority(self, client, employer, admin_headers, job):
        body = client.put(
            f"/api/moderation/jobs/{job['id']}/priority", json={"priority": "urgent"}, headers=admin_headers
        ).json()
        assert body["priority"] == "urgent"

    def test_moderating_unknown_job(self, client, admin_headers):
        assert client.post("/api/moderation/jobs/missing/approve", headers=admin_headers).status_code == 404

    def test_bulk_approve_counts_existing_jobs(self, client, employer, admin_headers):
        first = make_job(client, employer, title="First")
        second = make_job(client, employer, title="Second")
        set_status(first["id"], "pending")
        set_status(second["id"], "pending")

        response = client.post(
            "/api/moderation/bulk/approve",
            json={"job_ids": [first["id"], second["id"], "missing"]}, headers=admin_headers
        )

        assert response.json() == {"updated": 2}
        assert client.get(f"/api/jobs/{first['id']}").json()["status"] == "active"

    def test_bulk_reject(self, client, employer, admin_headers, job):
        response = client.post(
            "/api/moderation/bulk/reject", json={"job_ids": [job["id"]], "notes": "Spam"}, headers=admin_headers
        )
        assert response.json() == {"updated": 1}
        assert client.get(f"/api/jobs/{job['id']}").json()["moderation_notes"] == "Spam"

    def test_bulk_requires_ids(self, client, admin_headers):
        assert client.post("/api/moderation/bulk/approve", json={"job_ids": []}, headers=admin_headers).status_code == 422


class TestModerationStats:
    def test_stats(self, client, employer, admin_headers):
        now = datetime.now(timezone.utc)
        a = make_job(client, employer, title="Approved")
        r = make_job(client, employer, title="Rejected")
        p = make_job(client, employer, title="Pending")
        f = make_job(client, employer, title="Flagged")
        set_status(a["id"], "pending", created_at=now - timedelta(hours=3))
        set_status(r["id"], "pending", created_at=now - timedelta(hours=1))
        set_status(p["id"], "pending")
        set_status(f["id"], "flagged")
        service = get_job_service()
        service.approve_job(a["id"])
        service.reject_job(r["id"])

        stats = client.get("/api/moderation/stats", headers=admin_headers).json()

        assert stats["total"] == 4
        assert stats["pending"] == 1
        assert stats["flagged"] == 1
        assert stats["approved_today"] == 1
        assert stats["rejected_today"] == 1
        assert stats["avg_review_time"] == 2.0

    def test_empty(self, client, admin_headers):
        stats = client.get("/api/moderation/stats", headers=admin_headers).json()
        assert stats["total"] == 0
        assert stats["avg_review_time"] == 0.0
