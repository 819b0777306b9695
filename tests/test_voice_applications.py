import pytest
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from udyoga_setu.db.postgres import get_db_session, fetch_one
from udyoga_setu.services.voice_application_service import calculate_applicant_score

TRANSCRIPT = (
    "My name is Ravi Kumar. I worked at Infosys for three years as a developer. "
    "I know Python and SQL. I studied at Mysore University and have a BSc degree."
)


def apply_by_voice(client, job_id, audio=None, **overrides):
    form = {
        "job_id": job_id,
        "applicant_name": "Ravi Kumar",
        "applicant_phone": "9845012345",
        "transcript": TRANSCRIPT,
    }
    form.update(overrides)
    files = {"audio": audio} if audio else None
    return client.post("/api/applications/voice", data=form, files=files)


class TestApplicantScore:
    def test_complete_voice_application(self):
        assert calculate_applicant_score("Ravi", "ravi@mail.in", "98450", "voice", True) == 100

    def test_minimal(self):
        assert calculate_applicant_score("", None, "", "online", False) == 60

    def test_email_without_at_sign(self):
        assert calculate_applicant_score("Ravi", "ravi", "98450", "online", False) == 80


class TestVoiceApplication:
    def test_generates_and_stores_resume(self, client, storage, employer, job):
        response = apply_by_voice(client, job["id"])

        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "submitted"
        assert body["voice_recording_url"] is None
        assert body["resume"]["personal_info"]["name"] == "Ravi Kumar"
        assert body["resume"]["language"] == "en-US"

        path = f"voice/{body['id']}/Ravi_Kumar_Generated_Resume.html"
        stored = storage.bucket("resumes").download(path)
        assert stored.content_type == "text/html; charset=utf-8"
        assert b"I know Python and SQL" in stored.data
        assert body["resume_url"].endswith(f"/api/storage/resumes/{path}")

        row = fetch_one("SELECT * FROM job_applications WHERE id = :id", {"id": body["id"]})
        assert row["application_method"] == "voice"
        assert row["voice_transcript"] == TRANSCRIPT
        assert row["resume_file_id"] == path
        assert row["applicant_score"] == 100

    def test_shows_up_on_dashboard(self, client, employer, job):
        app_id = apply_by_voice(client, job["id"]).json()["id"]

        apps = client.get("/api/companies/applications", headers=employer["headers"]).json()

        assert [a["id"] for a in apps] == [app_id]
        assert apps[0]["source_table"] == "job_applications"
        assert apps[0]["application_method"] == "voice"
        assert client.get(f"/api/jobs/{job['id']}").json()["total_applications"] == 1

    def test_recording_is_kept(self, client, storage, job):
        body = apply_by_voice(client, job["id"], audio=("intro.webm", b"\x1aE\xdf\xa3 webm", "audio/webm")).json()

        assert body["voice_recording_url"]
        objects = storage.bucket("voice").objects
        assert len(objects) == 1
        path, blob = next(iter(objects.items()))
        assert path.startswith(f"{body['id']}/recording_")
        assert path.endswith(".webm")
        assert blob.content_type == "audio/webm"

    def test_failed_insert_leaves_no_blobs(self, client, storage, job):
        with get_db_session() as db:
            db.execute(text("DROP TABLE job_applications"))

        with pytest.raises(SQLAlchemyError):
            apply_by_voice(client, job["id"], audio=("intro.webm", b"\x1aE\xdf\xa3 webm", "audio/webm"))

        assert storage.bucket("resumes").objects == {}
        assert storage.bucket("voice").objects == {}

    def test_unsupported_recording(self, client, job):
        response = apply_by_voice(client, job["id"], audio=("intro.txt", b"text", "text/plain"))
        assert response.status_code == 400

    def test_hindi_is_detected(self, client, job):
        body = apply_by_voice(client, job["id"], transcript="मेरा नाम राहुल शर्मा है। मैंने पांच साल काम किया।").json()

        assert body["resume"]["language"] == "hi-IN"
        assert body["resume"]["personal_info"]["name"] == "राहुल शर्मा"

    def test_explicit_language_wins(self, client, job):
        body = apply_by_voice(client, job["id"], language="kn-IN").json()
        assert body["resume"]["language"] == "kn-IN"

    def test_empty_transcript(self, client, job):
        assert apply_by_voice(client, job["id"], transcript="   ").status_code == 400

    def test_unknown_job(self, client):
        assert apply_by_voice(client, "missing").status_code == 404

    def test_closed_job(self, client, employer, job):
        client.put(f"/api/jobs/{job['id']}", json={"status": "closed"}, headers=employer["headers"])
        assert apply_by_voice(client, job["id"]).status_code == 400


class TestParseTranscriptEndpoint:
    def test_preview(self, client):
        body = client.post("/api/applications/parse-transcript", json={"transcript": TRANSCRIPT}).json()

        assert body["personal_info"]["name"] == "Ravi Kumar"
        assert body["skills"] == ["I know Python and SQL"]
        assert body["language"] == "en-US"

    def test_unsupported_language(self, client):
        response = client.post(
            "/api/applications/parse-transcript", json={"transcript": TRANSCRIPT, "language": "fr-FR"}
        )
        assert response.status_code == 422
