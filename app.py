from flask import (
    Flask, render_template, request, redirect,
    session, url_for, flash, jsonify, abort
)
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import joinedload
from werkzeug.exceptions import HTTPException
from werkzeug.security import generate_password_hash, check_password_hash
from flask_wtf.csrf import CSRFProtect
import click
import os
import re

from forms import (
    SignupForm, LoginForm, CompanyForm, JobForm, ProfileForm, ApplyForm,
    StatusForm, parse_skills
)
from insights import can_view_insights, get_job_insights
from logging_config import setup_logging, log_structured
from models import db, User, Company, JobPost, JobApplication, JobSeeker

logger = setup_logging("job_board")

# ================= APP =================
app = Flask(__name__)
app.config["PREFERRED_URL_SCHEME"] = "https"


# ================= SECRET KEY =================
app.secret_key = os.environ.get("SECRET_KEY", "dev-secret-key")

# ================= SESSION CONFIG =================

app.config.update(
    SESSION_COOKIE_HTTPONLY=True,
    SESSION_COOKIE_SAMESITE="Lax",
    SESSION_COOKIE_SECURE=os.environ.get("RENDER") == "true"
)

csrf = CSRFProtect(app)


# ================= DATABASE CONFIG =================
DATABASE_URL = os.environ.get("DATABASE_URL")

# Local fallback
if not DATABASE_URL:
    DATABASE_URL = "sqlite:///job_board.db"

# Fix postgres:// issue
if DATABASE_URL.startswith("postgres://"):
    DATABASE_URL = DATABASE_URL.replace("postgres://", "postgresql://", 1)

app.config["SQLALCHEMY_DATABASE_URI"] = DATABASE_URL
app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = False
app.config["SQLALCHEMY_ENGINE_OPTIONS"] = {"pool_pre_ping": True}

# One engine per process; sessions are scoped to the app context and
# removed when it tears down.
db.init_app(app)

with app.app_context():
    db.create_all()
    logger.info("Database schema ready")


@app.cli.command("init-db")
def init_db_command():
    """Create all tables."""
    db.create_all()
    click.echo("Initialized the database.")


# ================= HELPERS =================
def current_user():
    user_id = session.get("user_id")
    if user_id is None:
        return None
    return db.session.get(User, user_id)


@app.template_filter("money")
def money(value):
    return f"{value:,}"


@app.template_filter("display_url")
def display_url(value):
    return re.sub(r"^https?://", "", value or "")


# ================= ERRORS =================
@app.errorhandler(HTTPException)
def handle_http_error(error):
    if request.path.startswith("/api/"):
        return jsonify(error=error.description), error.code
    return error


# ================= HOME =================
@app.route("/")
def home():
    return redirect("/login")

# ================= SIGNUP =================
@app.route("/signup", methods=["GET", "POST"])
def signup():
    form = SignupForm()
    if form.validate_on_submit():
        if User.query.filter_by(email=form.email.data).first():
            flash("User already exists", "error")
            return redirect("/signup")

        user = User(
            username=form.username.data,
            email=form.email.data,
            password=generate_password_hash(form.password.data),
            role=form.role.data
        )
        db.session.add(user)
        db.session.commit()
        log_structured(logger, "info", "User signed up", user_id=user.id, role=user.role)

        flash("Account created successfully", "success")
        return redirect("/login")

    return render_template("signup.html", form=form)

# ================= LOGIN =================
@app.route("/login", methods=["GET", "POST"])
def login():
    form = LoginForm()
    if form.validate_on_submit():
        user = User.query.filter_by(email=form.email.data).first()

        if user and check_password_hash(user.password, form.password.data):
            session.clear()
            session["user_id"] = user.id
            session["role"] = user.role
            session["username"] = user.username
            log_structured(logger, "info", "User logged in", user_id=user.id)

            return redirect(
                "/recruiter/dashboard"
                if user.role == "recruiter"
                else "/seeker/dashboard"
            )

        flash("Invalid credentials", "error")

    return render_template("login.html", form=form)

# ================= LOGOUT =================
@app.route("/logout")
def logout():
    session.clear()
    return redirect("/login")

# ================= COMPANY PROFILE =================
@app.route("/companies/<int:company_id>")
def company_profile(company_id):
    company = db.session.get(Company, company_id)
    if company is None:
        abort(404)

    return render_template(
        "company.html",
        company=company,
        jobs=company.active_jobs()
    )

# ================= CREATE COMPANY =================
@app.route("/company/new", methods=["GET", "POST"])
def create_company():
    if session.get("role") != "recruiter":
        return redirect("/login")

    existing = Company.query.filter_by(user_id=session["user_id"]).first()
    if existing:
        return redirect(url_for("company_profile", company_id=existing.id))

    form = CompanyForm()
    if form.validate_on_submit():
        company = Company(
            name=form.name.data,
            logo=form.logo.data or None,
            location=form.location.data or None,
            website=form.website.data or None,
            founded_year=form.founded_year.data,
            size=form.size.data or None,
            industry=form.industry.data or None,
            x_account=(form.x_account.data or "").lstrip("@") or None,
            about=form.about.data,
            user_id=session["user_id"]
        )
        db.session.add(company)
        db.session.commit()
        log_structured(logger, "info", "Company created", company_id=company.id)

        flash("Company created successfully", "success")
        return redirect(url_for("company_profile", company_id=company.id))

    return render_template("company_form.html", form=form)

# ================= SEEKER PROFILE =================
@app.route("/seeker/profile", methods=["GET", "POST"])
def seeker_profile():
    if session.get("role") != "seeker":
        return redirect("/login")

    profile = JobSeeker.query.filter_by(user_id=session["user_id"]).first()
    form = ProfileForm()

    if form.validate_on_submit():
        if profile is None:
            profile = JobSeeker(user_id=session["user_id"])
            db.session.add(profile)
        profile.skills = parse_skills(form.skills.data)
        profile.years_of_experience = form.years_of_experience.data
        profile.about = form.about.data
        db.session.commit()

        flash("Profile saved", "success")
        return redirect("/seeker/dashboard")

    if request.method == "GET" and profile:
        form.skills.data = ", ".join(profile.skills or [])
        form.years_of_experience.data = profile.years_of_experience
        form.about.data = profile.about

    return render_template("profile.html", form=form)

# ================= JOBS =================
@app.route("/jobs")
def list_jobs():
    query = JobPost.query.filter_by(status="active")

    company = None
    company_id = request.args.get("company", type=int)
    if company_id is not None:
        company = db.session.get(Company, company_id)
        query = query.filter_by(company_id=company_id)

    jobs = query.order_by(JobPost.created_at.desc(), JobPost.id.desc()).all()
    return render_template("jobs.html", jobs=jobs, company=company)


@app.route("/job/<int:job_id>")
def job_detail(job_id):
    job = db.get_or_404(JobPost, job_id)

    applied = False
    if session.get("role") == "seeker":
        applied = JobApplication.query.filter_by(
            job_id=job.id,
            user_id=session["user_id"]
        ).first() is not None

    return render_template("job_detail.html", job=job, applied=applied, form=ApplyForm())

# ================= SEEKER DASHBOARD =================
@app.route("/seeker/dashboard")
def seeker_dashboard():
    if session.get("role") != "seeker":
        return redirect("/login")

    jobs = (
        JobPost.query
        .filter_by(status="active")
        .order_by(JobPost.created_at.desc(), JobPost.id.desc())
        .all()
    )
    applications = JobApplication.query.filter_by(
        user_id=session["user_id"]
    ).order_by(JobApplication.id.desc()).all()

    return render_template(
        "seeker_dashboard.html",
        jobs=jobs,
        applications=applications,
        username=session["username"]
    )

# ================= APPLY JOB =================
@app.route("/apply/<int:job_id>", methods=["POST"])
def apply_job(job_id):
    if session.get("role") != "seeker":
        return redirect("/login")

    job = db.session.get(JobPost, job_id)
    if job is None or job.status != "active":
        abort(404)

    if JobApplication.query.filter_by(
        job_id=job_id,
        user_id=session["user_id"]
    ).first():
        flash("Already applied", "error")
        return redirect("/seeker/dashboard")

    form = ApplyForm()
    if not form.validate_on_submit():
        flash("Invalid application", "error")
        return redirect(url_for("job_detail", job_id=job_id))

    application = JobApplication(
        job_id=job_id,
        user_id=session["user_id"],
        cover_letter=form.cover_letter.data or "",
        status="pending"
    )

    db.session.add(application)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        flash("Already applied", "error")
        return redirect("/seeker/dashboard")
    log_structured(logger, "info", "Application submitted", job_id=job_id, user_id=session["user_id"])

    flash("Application submitted", "success")
    return redirect("/seeker/dashboard")

# ================= RECRUITER DASHBOARD =================
@app.route("/recruiter/dashboard")
def recruiter_dashboard():
    if session.get("role") != "recruiter":
        return redirect("/login")

    company = Company.query.filter_by(user_id=session["user_id"]).first()
    jobs = []
    applications = []
    if company:
        jobs = (
            JobPost.query
            .filter_by(company_id=company.id)
            .order_by(JobPost.created_at.desc(), JobPost.id.desc())
            .all()
        )
        applications = (
            JobApplication.query
            .join(JobPost)
            .filter(JobPost.company_id == company.id)
            .order_by(JobApplication.id.desc())
            .all()
        )

    return render_template(
        "recruiter_dashboard.html",
        company=company,
        jobs=jobs,
        applications=applications,
        status_form=StatusForm(),
        username=session["username"]
    )

# ================= POST JOB =================
@app.route("/post-job", methods=["GET", "POST"])
def post_job():
    if session.get("role") != "recruiter":
        return redirect("/login")

    company = Company.query.filter_by(user_id=session["user_id"]).first()
    if company is None:
        flash("Create your company before posting jobs", "error")
        return redirect("/company/new")

    form = JobForm()
    if form.validate_on_submit():
        job = JobPost(
            title=form.title.data,
            description=form.description.data,
            location=form.location.data or None,
            employment_type=form.employment_type.data,
            salary_from=form.salary_from.data,
            salary_to=form.salary_to.data,
            company_id=company.id
        )
        db.session.add(job)
        db.session.commit()
        log_structured(logger, "info", "Job posted", job_id=job.id, company_id=company.id)

        flash("Job posted successfully", "success")
        return redirect("/recruiter/dashboard")

    return render_template("post_job.html", form=form)

# ================= APPLICATION STATUS =================
@app.route("/applications/<int:application_id>/status", methods=["POST"])
def update_application_status(application_id):
    if session.get("role") != "recruiter":
        return redirect("/login")

    application = db.get_or_404(JobApplication, application_id)
    if application.job.company.user_id != session["user_id"]:
        abort(403)

    form = StatusForm()
    if not form.validate_on_submit():
        flash("Invalid status", "error")
        return redirect("/recruiter/dashboard")

    application.status = form.status.data
    db.session.commit()
    log_structured(
        logger, "info", "Application status changed",
        application_id=application.id, status=application.status
    )

    flash(f"Application marked {application.status}", "success")
    return redirect("/recruiter/dashboard")

# ================= JOB INSIGHTS API =================
@app.route("/api/jobs/insights", defaults={"job_id": None})
@app.route("/api/jobs/<int:job_id>/insights")
def job_insights(job_id):
    try:
        user = current_user()
        if user is None:
            return jsonify(error="Unauthorized"), 401

        if job_id is None:
            return jsonify(error="Job ID missing from URL"), 400

        job = (
            JobPost.query
            .options(joinedload(JobPost.company))
            .filter_by(id=job_id)
            .first()
        )
        if job is None:
            return jsonify(error="Job not found"), 404

        if not can_view_insights(job, user.id):
            return jsonify(error="You must apply to this job to view insights"), 403

        return jsonify(get_job_insights(job, user.id))
    except Exception:
        db.session.rollback()
        logger.exception("Error fetching job insights for job %s", job_id)
        return jsonify(error="Failed to fetch job insights"), 500

# ================= RUN =================
if __name__ == "__main__":
    port = int(os.environ.get("PORT", 5000))
    app.run(host="0.0.0.0", port=port)
