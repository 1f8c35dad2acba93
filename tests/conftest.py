"""
Pytest configuration and fixtures for the job board tests.
"""

import os
import sys
from datetime import datetime, timedelta
from pathlib import Path

import pytest

# Add project root to Python path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

# Use an in-memory database before the app module configures itself
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.pop("LOG_DIR", None)

from werkzeug.security import generate_password_hash  # noqa: E402

from app import app as flask_app  # noqa: E402
from models import db, User, Company, JobPost, JobApplication, JobSeeker  # noqa: E402


@pytest.fixture
def app():
    flask_app.config.update(TESTING=True, WTF_CSRF_ENABLED=False)
    with flask_app.app_context():
        db.drop_all()
        db.create_all()
        yield flask_app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    counter = {"n": 0}

    def _make_user(role="seeker", username=None, password="secret123"):
        counter["n"] += 1
        username = username or f"{role}{counter['n']}"
        user = User(
            username=username,
            email=f"{username}@jobboard.io",
            password=generate_password_hash(password),
            role=role,
        )
        db.session.add(user)
        db.session.commit()
        return user

    return _make_user


@pytest.fixture
def make_company(app):
    def _make_company(owner, **fields):
        fields.setdefault("name", "Acme Labs")
        fields.setdefault("about", "We build things.")
        company = Company(user_id=owner.id, **fields)
        db.session.add(company)
        db.session.commit()
        return company

    return _make_company


@pytest.fixture
def make_job(app):
    counter = {"n": 0}

    def _make_job(company, **fields):
        counter["n"] += 1
        fields.setdefault("title", f"Engineer {counter['n']}")
        fields.setdefault("description", "Build and ship product features.")
        fields.setdefault("location", "Berlin")
        fields.setdefault("employment_type", "full-time")
        fields.setdefault("created_at", datetime(2024, 1, 1) + timedelta(days=counter["n"]))
        job = JobPost(company_id=company.id, **fields)
        db.session.add(job)
        db.session.commit()
        return job

    return _make_job


@pytest.fixture
def make_application(app):
    def _make_application(user, job, status="pending"):
        application = JobApplication(user_id=user.id, job_id=job.id, status=status)
        db.session.add(application)
        db.session.commit()
        return application

    return _make_application


@pytest.fixture
def make_profile(app):
    def _make_profile(user, skills=(), years_of_experience=None):
        profile = JobSeeker(
            user_id=user.id,
            skills=list(skills),
            years_of_experience=years_of_experience,
        )
        db.session.add(profile)
        db.session.commit()
        return profile

    return _make_profile


@pytest.fixture
def login(client):
    def _login(user):
        with client.session_transaction() as sess:
            sess["user_id"] = user.id
            sess["role"] = user.role
            sess["username"] = user.username

    return _login
