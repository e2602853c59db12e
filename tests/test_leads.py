"""Tests for admission enquiries and course comments."""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import pytest
import yaml
from fastapi.testclient import TestClient
from pydantic import ValidationError

# pylint: disable=wrong-import-position

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from leads import (
    AdmissionLead,
    CourseComment,
    add_course_comment,
    comments_collection,
    list_course_comments,
)
from main import app
from store import get_store
from store.yaml_store import YamlDocumentStore


@pytest.fixture
def store(tmp_path: Path):
    yaml_store = YamlDocumentStore(tmp_path)
    app.dependency_overrides[get_store] = lambda: yaml_store
    yield yaml_store
    app.dependency_overrides.clear()


def test_admission_lead_validation():
    lead = AdmissionLead(name="Asha", email="asha@example.com", phone=" +91 98765-43210 ")
    assert lead.phone == "+91 98765-43210"
    assert lead.source == "website"

    with pytest.raises(ValidationError):
        AdmissionLead(name="Asha", email="not-an-email", phone="9876543210")
    with pytest.raises(ValidationError):
        AdmissionLead(name="Asha", email="asha@example.com", phone="call me maybe")


def test_post_admission_stores_lead(store, tmp_path: Path):
    payload = {
        "name": "Asha",
        "email": "asha@example.com",
        "phone": "9876543210",
        "course": "MBBS",
        "source": "counselling-form",
    }

    with TestClient(app) as client:
        response = client.post("/admissions", json=payload)

    assert response.status_code == 201
    doc_id = response.json()["id"]
    saved = yaml.safe_load((tmp_path / "admissions.yaml").read_text(encoding="utf-8"))
    assert saved[0]["id"] == doc_id
    assert saved[0]["status"] == "new"
    assert saved[0]["course"] == "MBBS"
    assert "createdAt" in saved[0]
    assert "collegeId" not in saved[0]


def test_post_admission_rejects_bad_email(store):
    with TestClient(app) as client:
        response = client.post(
            "/admissions",
            json={"name": "Asha", "email": "asha", "phone": "9876543210"},
        )

    assert response.status_code == 422


def test_course_comments_round_trip(store):
    with TestClient(app) as client:
        first = client.post("/course/c1/comments", json={"text": "Great faculty"})
        second = client.post("/course/c1/comments", json={"text": "  Good hostel  "})
        listing = client.get("/course/c1/comments")
        other = client.get("/course/c2/comments")

    assert first.status_code == 201
    assert second.json()["text"] == "Good hostel"
    texts = [comment["text"] for comment in listing.json()]
    assert sorted(texts) == ["Good hostel", "Great faculty"]
    assert other.json() == []


def test_comments_are_newest_first(store):
    collection = comments_collection("c1")
    for text, created in (("old", "2024-01-01"), ("new", "2025-01-01")):
        asyncio.run(
            store.add(collection, {"text": text, "createdAt": f"{created}T00:00:00+00:00"})
        )
    asyncio.run(add_course_comment(store, "c1", CourseComment(text="newest")))

    comments = asyncio.run(list_course_comments(store, "c1"))
    assert [comment["text"] for comment in comments] == ["newest", "new", "old"]


def test_comments_collection_rejects_bad_ids():
    assert comments_collection(" c1 ") == "courses/c1/comments"
    for bad in ("", "  ", "a/b", ".", ".."):
        with pytest.raises(ValueError):
            comments_collection(bad)


def test_job_application_fields_are_stored(store, tmp_path: Path):
    payload = {
        "fullName": "Ravi Kumar",
        "phone": "9876543210",
        "email": "ravi@example.com",
        "experience": "2 years",
        "resume": "https://drive.example.com/ravi.pdf",
        "jobTitle": "Frontend Developer",
        "companyName": "Acme",
        "jobId": "j1",
        "applicationType": "job",
        "action": "job_application",
        "source": "jobs_page",
    }

    with TestClient(app) as client:
        response = client.post("/admissions", json=payload)

    assert response.status_code == 201
    saved = yaml.safe_load((tmp_path / "admissions.yaml").read_text(encoding="utf-8"))
    record = saved[0]
    for key, value in payload.items():
        assert record[key] == value
    assert "name" not in record


def test_admission_form_mobile_is_stored_as_phone(store, tmp_path: Path):
    payload = {
        "name": "Meera",
        "mobile": "98765 43210",
        "email": "meera@example.com",
        "course": "BBA",
        "location": "Kochi",
    }

    with TestClient(app) as client:
        response = client.post("/admissions", json=payload)

    assert response.status_code == 201
    record = yaml.safe_load((tmp_path / "admissions.yaml").read_text(encoding="utf-8"))[0]
    assert record["phone"] == "98765 43210"
    assert record["location"] == "Kochi"
    assert "mobile" not in record


def test_unknown_or_nameless_leads_are_rejected(store, tmp_path: Path):
    with TestClient(app) as client:
        unknown = client.post(
            "/admissions",
            json={
                "name": "Asha",
                "email": "asha@example.com",
                "phone": "9876543210",
                "referrer": "newsletter",
            },
        )
        nameless = client.post(
            "/admissions",
            json={"email": "asha@example.com", "phone": "9876543210"},
        )

    assert unknown.status_code == 422
    assert nameless.status_code == 422
    assert not (tmp_path / "admissions.yaml").exists()


def test_blank_course_id_is_not_found(store):
    with TestClient(app) as client:
        listing = client.get("/course/%20/comments")
        posted = client.post("/course/%20/comments", json={"text": "Hello"})

    assert listing.status_code == 404
    assert posted.status_code == 404
