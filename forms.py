from flask_wtf import FlaskForm
from wtforms import (
    StringField, PasswordField, SubmitField, SelectField, TextAreaField, IntegerField
)
from wtforms.validators import DataRequired, Email, Length, NumberRange, Optional, URL

from models import APPLICATION_STATUSES


def parse_skills(raw):
    """Split a comma separated skill list, dropping blanks and repeats."""
    skills = []
    for part in (raw or "").split(","):
        skill = part.strip()
        if skill and skill not in skills:
            skills.append(skill)
    return skills


class SignupForm(FlaskForm):
    username = StringField('Username', validators=[DataRequired(), Length(min=3, max=100)])
    email = StringField('Email', validators=[DataRequired(), Email()])
    password = PasswordField('Password', validators=[DataRequired()])
    role = SelectField('Role', choices=[('seeker', 'Job Seeker'), ('recruiter', 'Recruiter')], validators=[DataRequired()])
    submit = SubmitField('Sign Up')

class LoginForm(FlaskForm):
    email = StringField('Email', validators=[DataRequired(), Email()])
    password = PasswordField('Password', validators=[DataRequired()])
    submit = SubmitField('Login')

class CompanyForm(FlaskForm):
    name = StringField('Company Name', validators=[DataRequired(), Length(max=200)])
    logo = StringField('Logo URL', validators=[Optional(), URL()])
    location = StringField('Location', validators=[Optional(), Length(max=100)])
    website = StringField('Website', validators=[Optional(), URL()])
    founded_year = IntegerField('Founded', validators=[Optional(), NumberRange(min=1800, max=2100)])
    size = StringField('Company Size', validators=[Optional(), Length(max=50)])
    industry = StringField('Industry', validators=[Optional(), Length(max=100)])
    x_account = StringField('X (Twitter) handle', validators=[Optional(), Length(max=100)])
    about = TextAreaField('About', validators=[DataRequired()])
    submit = SubmitField('Create Company')

class JobForm(FlaskForm):
    title = StringField('Job Title', validators=[DataRequired()])
    description = TextAreaField('Job Description', validators=[DataRequired()])
    location = StringField('Location', validators=[Optional(), Length(max=100)])
    employment_type = SelectField('Employment Type', choices=[
        ('full-time', 'Full-time'),
        ('part-time', 'Part-time'),
        ('contract', 'Contract'),
        ('internship', 'Internship'),
    ])
    salary_from = IntegerField('Salary From', validators=[Optional(), NumberRange(min=0)])
    salary_to = IntegerField('Salary To', validators=[Optional(), NumberRange(min=0)])
    submit = SubmitField('Post Job')

    def validate(self, extra_validators=None):
        if not super().validate(extra_validators):
            return False
        if self.salary_from.data is not None and self.salary_to.data is not None \
                and self.salary_from.data > self.salary_to.data:
            self.salary_to.errors.append('Must be at least the lower bound')
            return False
        return True

class ProfileForm(FlaskForm):
    skills = StringField('Skills (comma separated)')
    years_of_experience = IntegerField('Years of Experience', validators=[Optional(), NumberRange(min=0, max=80)])
    about = TextAreaField('About', validators=[Optional()])
    submit = SubmitField('Save Profile')

class ApplyForm(FlaskForm):
    cover_letter = TextAreaField('Cover Letter', validators=[Optional()])
    submit = SubmitField('Apply')

class StatusForm(FlaskForm):
    status = SelectField('Status', choices=[(s, s.title()) for s in APPLICATION_STATUSES])
    submit = SubmitField('Update')
