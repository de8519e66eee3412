import logging

from sqlalchemy.exc import IntegrityError

import policy
from errors import Conflict, NotFound
from models import Application, Job, db

logger = logging.getLogger(__name__)

JOB_FIELDS = ("title", "description", "location", "company")
SEARCH_FIELDS = ("title", "location", "company")


class JobStore:
    def create(self, data, principal):
        policy.authorize(principal, policy.CREATE_JOB)

        job = Job(user_id=principal.id, **{key: data[key] for key in JOB_FIELDS})
        db.session.add(job)
        db.session.commit()

        logger.info("Job %s created by user %s", job.id, principal.id)
        return job

    def get(self, job_id):
        job = db.session.get(Job, job_id)
        if job is None:
            raise NotFound("Job not found")
        return job

    def authorize_change(self, job_id, principal, action):
        """Load the job and check *principal* may apply an owner-only *action*."""
        job = self.get(job_id)
        policy.authorize(principal, action, owner_id=job.user_id)
        return job

    def update(self, job_id, patch, principal):
        job = self.authorize_change(job_id, principal, policy.UPDATE_JOB)

        for key in JOB_FIELDS:
            if key in patch:
                setattr(job, key, patch[key])
        db.session.commit()

        logger.info("Job %s updated by user %s", job.id, principal.id)
        return job

    def delete(self, job_id, principal):
        job = self.authorize_change(job_id, principal, policy.DELETE_JOB)

        db.session.delete(job)
        db.session.commit()
        logger.info("Job %s deleted by user %s", job_id, principal.id)

    def list(self, principal):
        """Jobs visible to *principal*, already serialized."""
        action = policy.job_list_action(principal)
        policy.authorize(principal, action)

        query = Job.query.order_by(Job.id)
        if action == policy.LIST_JOBS_OWN:
            query = query.filter(Job.user_id == principal.id)
            return [job.to_dict() for job in query.all()]

        fields = policy.visible_job_fields(principal)
        return [job.to_dict(fields) for job in query.all()]

    def search(self, title=None, location=None, company=None):
        filters = {"title": title, "location": location, "company": company}

        query = Job.query
        for key in SEARCH_FIELDS:
            value = filters[key]
            if value is None:
                continue
            query = query.filter(getattr(Job, key).icontains(value, autoescape=True))
        return query.order_by(Job.id).all()


class ApplicationStore:
    def _find_existing(self, user_id, job_id):
        return Application.query.filter_by(user_id=user_id, job_id=job_id).first()

    def _joined(self):
        return Application.query.options(
            db.joinedload(Application.job),
            db.joinedload(Application.user),
        )

    def create(self, principal, job_id, cover_letter=None):
        policy.authorize(principal, policy.APPLY_TO_JOB)

        if db.session.get(Job, job_id) is None:
            raise NotFound("Job not found")

        # Pre-check only; the unique constraint below is what guards races.
        if self._find_existing(principal.id, job_id) is not None:
            logger.info("User %s already applied to job %s", principal.id, job_id)
            raise Conflict("Already applied to this job")

        application = Application(
            user_id=principal.id,
            job_id=job_id,
            cover_letter=cover_letter,
        )
        db.session.add(application)
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            logger.info(
                "Duplicate application rejected by constraint: user %s job %s",
                principal.id, job_id,
            )
            raise Conflict("Already applied to this job")

        logger.info("Application %s created for job %s", application.id, job_id)
        return application

    def list_for_user(self, principal):
        policy.authorize(principal, policy.LIST_OWN_APPLICATIONS)
        return (
            self._joined()
            .filter(Application.user_id == principal.id)
            .order_by(Application.id)
            .all()
        )

    def list_for_employer(self, principal):
        policy.authorize(principal, policy.LIST_EMPLOYER_APPLICATIONS)
        return (
            self._joined()
            .join(Job, Application.job_id == Job.id)
            .filter(Job.user_id == principal.id)
            .order_by(Application.id)
            .all()
        )

    def list_all(self, principal):
        policy.authorize(principal, policy.LIST_ALL_APPLICATIONS)
        return self._joined().order_by(Application.id).all()
