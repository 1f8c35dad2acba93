from datetime import datetime

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy.orm import validates

db = SQLAlchemy()

JOB_STATUSES = ("draft", "active", "expired")
APPLICATION_STATUSES = ("pending", "reviewing", "shortlisted", "rejected")
ROLES = ("seeker", "recruiter")


def _check_choice(value, choices, field):
    value = (value or "").strip().lower()
    if value not in choices:
        raise ValueError(f"Invalid {field}: {value!r}")
    return value


class User(db.Model):
    __tablename__ = "user"

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=False)
    password = db.Column(db.String(200), nullable=False)
    role = db.Column(db.String(20), nullable=False)

    # Relationship: a user can have many applications
    applications = db.relationship("JobApplication", backref="user", lazy=True)
    # Relationship: a recruiter owns at most one company
    company = db.relationship("Company", backref="owner", uselist=False)
    # Relationship: a seeker has at most one profile
    job_seeker = db.relationship("JobSeeker", backref="user", uselist=False)

    @validates("role")
    def validate_role(self, key, value):
        return _check_choice(value, ROLES, key)


class Company(db.Model):
    __tablename__ = "company"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    logo = db.Column(db.String(500))
    location = db.Column(db.String(100))
    website = db.Column(db.String(500))
    founded_year = db.Column(db.Integer)
    size = db.Column(db.String(50))
    industry = db.Column(db.String(100))
    x_account = db.Column(db.String(100))
    about = db.Column(db.Text, default="")
    user_id = db.Column(db.Integer, db.ForeignKey("user.id"), unique=True, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    # Relationship: a company can post many jobs
    jobs = db.relationship("JobPost", backref="company", lazy=True)

    def active_jobs(self):
        """Active postings, newest first."""
        return (
            JobPost.query
            .filter_by(company_id=self.id, status="active")
            .order_by(JobPost.created_at.desc(), JobPost.id.desc())
            .all()
        )


class JobPost(db.Model):
    __tablename__ = "job_post"

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=False, default="")
    location = db.Column(db.String(100))
    employment_type = db.Column(db.String(50))
    salary_from = db.Column(db.Integer)
    salary_to = db.Column(db.Integer)
    status = db.Column(db.String(20), nullable=False, default="active")
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    company_id = db.Column(db.Integer, db.ForeignKey("company.id"), nullable=False)

    # Relationship: a job can have many applications
    applications = db.relationship("JobApplication", backref="job", lazy=True)

    @validates("status")
    def validate_status(self, key, value):
        return _check_choice(value, JOB_STATUSES, key)


class JobApplication(db.Model):
    __tablename__ = "job_application"
    __table_args__ = (
        db.UniqueConstraint("user_id", "job_id", name="uq_application_user_job"),
        db.CheckConstraint(
            "status IN ('pending', 'reviewing', 'shortlisted', 'rejected')",
            name="ck_application_status",
        ),
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False)
    job_id = db.Column(db.Integer, db.ForeignKey("job_post.id"), nullable=False)
    cover_letter = db.Column(db.Text)
    status = db.Column(db.String(20), nullable=False, default="pending")
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    @validates("status")
    def validate_status(self, key, value):
        return _check_choice(value, APPLICATION_STATUSES, key)


class JobSeeker(db.Model):
    __tablename__ = "job_seeker"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("user.id"), unique=True, nullable=False)
    skills = db.Column(db.JSON, nullable=False, default=list)
    years_of_experience = db.Column(db.Integer)
    about = db.Column(db.Text)
