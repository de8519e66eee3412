from datetime import datetime, timezone

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()

ROLE_NAMES = ("admin", "employer", "user")
PUBLIC_JOB_FIELDS = ("id", "title", "description", "location", "company")


def _now():
    return datetime.now(timezone.utc)


def _iso(value):
    return value.isoformat() if value else None


user_roles = db.Table(
    "user_roles",
    db.Column("user_id", db.Integer, db.ForeignKey("user.id"), primary_key=True),
    db.Column("role_id", db.Integer, db.ForeignKey("role.id"), primary_key=True),
)


class Role(db.Model):
    __tablename__ = "role"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(20), unique=True, nullable=False)


class User(db.Model):
    __tablename__ = "user"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False)
    password = db.Column(db.String(255), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), default=_now)

    roles = db.relationship("Role", secondary=user_roles, lazy="selectin")
    # Relationship: an employer can post many jobs
    jobs_posted = db.relationship("Job", back_populates="owner", lazy=True)
    # Relationship: a user can have many applications
    applications = db.relationship("Application", back_populates="user", lazy=True)

    @property
    def role_names(self):
        return frozenset(role.name for role in self.roles)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "roles": sorted(self.role_names),
        }


class Job(db.Model):
    __tablename__ = "job"

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=False)
    location = db.Column(db.String(255), nullable=False)
    company = db.Column(db.String(255), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), default=_now)
    updated_at = db.Column(db.DateTime(timezone=True), default=_now, onupdate=_now)

    owner = db.relationship("User", back_populates="jobs_posted")
    # Relationship: a job can have many applications
    applications = db.relationship(
        "Application", back_populates="job", lazy=True, cascade="all, delete-orphan"
    )

    def to_dict(self, fields=None):
        data = {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "location": self.location,
            "company": self.company,
            "user_id": self.user_id,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }
        if fields is None:
            return data
        return {key: data[key] for key in fields}


class Application(db.Model):
    __tablename__ = "application"
    __table_args__ = (
        db.UniqueConstraint("user_id", "job_id", name="uq_application_user_job"),
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False)
    job_id = db.Column(db.Integer, db.ForeignKey("job.id"), nullable=False)
    cover_letter = db.Column(db.Text)
    created_at = db.Column(db.DateTime(timezone=True), default=_now)

    user = db.relationship("User", back_populates="applications")
    job = db.relationship("Job", back_populates="applications")

    def to_dict(self, with_job=False, with_user=False):
        data = {
            "id": self.id,
            "user_id": self.user_id,
            "job_id": self.job_id,
            "cover_letter": self.cover_letter,
            "created_at": _iso(self.created_at),
        }
        if with_job:
            data["job"] = self.job.to_dict()
        if with_user:
            data["user"] = self.user.to_dict()
        return data
