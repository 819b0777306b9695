"""Shared fixtures: SQLite database, in-memory storage, employer/admin accounts."""

import os
import tempfile

_db_dir = tempfile.mkdtemp(prefix="udyoga-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_db_dir, 'test.db')}"
os.environ["JWT_SECRET_KEY"] = "test-secret"
os.environ["PUBLIC_BASE_URL"] = "http://testserver"
os.environ["AUTO_CREATE_TABLES"] = "false"

import pytest  # noqa: E402
from fastapi import HTTPException  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from udyoga_setu.core.auth import create_user  # noqa: E402
from udyoga_setu.db.mongodb import BUCKETS  # noqa: E402
from udyoga_setu.db.schema import create_tables, drop_tables  # noqa: E402
from udyoga_setu.main import app  # noqa: E402
from udyoga_setu.services.storage_service import StoredObject, get_storage, public_url  # noqa: E402


class FakeBucket:
    """Dict-backed stand-in for a GridFS bucket."""

    def __init__(self, name):
        self.name = name
        self.objects = {}

    def upload(self, path, data, content_type, metadata=None):
        self.objects[path] = StoredObject(path, data, content_type, dict(metadata or {}))
        return public_url(self.name, path)

    def download(self, path):
        return self.objects.get(path)

    def remove(self, paths):
        removed = 0
        for path in paths:
            if self.objects.pop(path, None) is not None:
                removed += 1
        return removed


class FakeStorage:
    def __init__(self):
        self._buckets = {name: FakeBucket(name) for name in BUCKETS}

    def bucket(self, name):
        if name not in self._buckets:
            raise HTTPException(status_code=404, detail=f"Unknown storage bucket '{name}'")
        return self._buckets[name]

    def bucket_names(self):
        return list(self._buckets)


@pytest.fixture(autouse=True)
def database():
    drop_tables()
    create_tables()
    yield


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def client(storage):
    app.dependency_overrides[get_storage] = lambda: storage
    # no context manager: startup (MongoDB, cleanup task) stays off
    yield TestClient(app)
    app.dependency_overrides.clear()


def login(client, email, password="password123"):
    response = client.post("/api/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return response.json()["access_token"]


def make_employer(client, email="hr@acme.in", company_name="Acme Textiles"):
    """Register, log in and create a company. Returns headers, token and ids."""
    response = client.post("/api/auth/register", json={"email": email, "password": "password123"})
    assert response.status_code == 201, response.text
    token = login(client, email)
    headers = {"Authorization": f"Bearer {token}"}
    response = client.post(
        "/api/companies/profile",
        json={"name": company_name, "location": "Bengaluru", "industry": "Manufacturing"},
        headers=headers,
    )
    assert response.status_code == 201, response.text
    company = response.json()
    return {"headers": headers, "token": token, "company_id": company["id"], "user_id": company["user_id"]}


def make_job(client, employer, **overrides):
    payload = {
        "title": "Machine Operator",
        "location": "Peenya, Bengaluru",
        "job_type": "full-time",
        "salary_min": 15000,
        "salary_max": 22000,
        "description": "Operate and maintain looms on the factory floor.",
        "requirements": ["ITI certificate"],
        "benefits": ["PF", "ESI"],
        "experience_level": "entry",
        "skills": ["loom operation"],
        "contact_email": "hr@acme.in",
    }
    payload.update(overrides)
    response = client.post("/api/jobs", json=payload, headers=employer["headers"])
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def employer(client):
    return make_employer(client)


@pytest.fixture
def job(client, employer):
    return make_job(client, employer)


@pytest.fixture
def admin_headers(client):
    create_user("admin@udyoga.in", "password123", role="admin")
    return {"Authorization": f"Bearer {login(client, 'admin@udyoga.in')}"}
