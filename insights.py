"""
Job insights

Aggregate statistics about the applicant pool of a single job posting,
as seen by one caller (the company owner or an applicant).
"""
import math

from sqlalchemy import func

from models import db, APPLICATION_STATUSES, JobApplication, JobSeeker


def round_half_up(value):
    return int(math.floor(value + 0.5))


def can_view_insights(job, user_id):
    """Company owners and applicants to the job may view its insights."""
    if job.company.user_id == user_id:
        return True
    return JobApplication.query.filter_by(user_id=user_id, job_id=job.id).first() is not None


def count_applicants(job_id):
    return JobApplication.query.filter_by(job_id=job_id).count()


def get_user_skills(user_id):
    profile = JobSeeker.query.filter_by(user_id=user_id).first()
    if profile is None:
        return []
    return list(profile.skills or [])


def count_applicants_with_similar_skills(job_id, skills):
    """Applicants to the job who share at least one skill with `skills`."""
    wanted = set(skills)
    rows = (
        db.session.query(JobSeeker.skills)
        .select_from(JobApplication)
        .outerjoin(JobSeeker, JobSeeker.user_id == JobApplication.user_id)
        .filter(JobApplication.job_id == job_id)
        .all()
    )
    return sum(1 for (applicant_skills,) in rows if wanted.intersection(applicant_skills or []))


def skill_match_percentage(skills, description):
    """
    Share of `skills` that occur in `description`, as a whole percentage.

    Matching is a case-insensitive substring test, so "Go" matches
    "go developer" as well as "good communicator".
    """
    if not skills:
        return 0
    text = (description or "").lower()
    matched = [skill for skill in skills if skill.lower() in text]
    return round_half_up(len(matched) / len(skills) * 100)


def application_status_breakdown(job_id):
    counts = dict.fromkeys(APPLICATION_STATUSES, 0)
    rows = (
        db.session.query(JobApplication.status, func.count(JobApplication.id))
        .filter(JobApplication.job_id == job_id)
        .group_by(JobApplication.status)
        .all()
    )
    for status, total in rows:
        key = status.lower()
        if key in counts:
            counts[key] += total
    return counts


def average_experience(job_id):
    """Mean years of experience of applicants whose profile records it."""
    avg = (
        db.session.query(func.avg(JobSeeker.years_of_experience))
        .select_from(JobSeeker)
        .join(JobApplication, JobApplication.user_id == JobSeeker.user_id)
        .filter(
            JobApplication.job_id == job_id,
            JobSeeker.years_of_experience.isnot(None),
        )
        .scalar()
    )
    if avg is None:
        return 0
    return round_half_up(float(avg))


def get_job_insights(job, user_id):
    total_applicants = count_applicants(job.id)
    user_skills = get_user_skills(user_id)

    applicants_with_similar_skills = 0
    user_skill_match = 0
    if user_skills:
        applicants_with_similar_skills = count_applicants_with_similar_skills(job.id, user_skills)
        user_skill_match = skill_match_percentage(user_skills, job.description)

    return {
        "totalApplicants": total_applicants,
        "applicantsWithSimilarSkills": applicants_with_similar_skills,
        "userSkillMatch": user_skill_match,
        "averageExperience": average_experience(job.id),
        "applicationStatus": application_status_breakdown(job.id),
    }
