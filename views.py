from flask import Blueprint, current_app, jsonify, request

import policy
from auth import current_principal, login_required
from forms import ApplyForm, JobForm, JobUpdateForm
from stores import ApplicationStore, JobStore

bp = Blueprint("api", __name__)


# ================= JOBS =================
@bp.route("/jobs")
@login_required
def list_jobs():
    return jsonify(JobStore().list(current_principal()))


@bp.route("/jobs", methods=["POST"])
@login_required
def create_job():
    principal = current_principal()
    policy.authorize(principal, policy.CREATE_JOB)

    form = JobForm().validate_or_raise()
    job = JobStore().create(form.cleaned_data(), principal)
    return jsonify({"message": "Job created successfully", "job": job.to_dict()}), 201


@bp.route("/jobs/search")
def search_jobs():
    current_principal(required=current_app.config["SEARCH_REQUIRES_AUTH"])

    jobs = JobStore().search(
        title=request.args.get("title"),
        location=request.args.get("location"),
        company=request.args.get("company"),
    )
    return jsonify([job.to_dict() for job in jobs])


@bp.route("/jobs/<int:job_id>")
@login_required
def show_job(job_id):
    return jsonify(JobStore().get(job_id).to_dict())


@bp.route("/jobs/<int:job_id>", methods=["PUT", "PATCH"])
@login_required
def update_job(job_id):
    principal = current_principal()
    store = JobStore()
    store.authorize_change(job_id, principal, policy.UPDATE_JOB)

    form = JobUpdateForm().validate_or_raise()
    job = store.update(job_id, form.cleaned_data(), principal)
    return jsonify({"message": "Job updated successfully", "job": job.to_dict()})


@bp.route("/jobs/<int:job_id>", methods=["DELETE"])
@login_required
def delete_job(job_id):
    JobStore().delete(job_id, current_principal())
    return jsonify({"message": "Job deleted successfully"})


# ================= APPLICATIONS =================
@bp.route("/jobs/<int:job_id>/apply", methods=["POST"])
@login_required
def apply_job(job_id):
    form = ApplyForm().validate_or_raise()
    application = ApplicationStore().create(
        current_principal(), job_id, form.cover_letter.data or None
    )
    return jsonify({
        "message": "Application submitted",
        "application": application.to_dict(),
    }), 201


@bp.route("/my-applications")
@login_required
def my_applications():
    applications = ApplicationStore().list_for_user(current_principal())
    return jsonify([a.to_dict(with_job=True) for a in applications])


@bp.route("/employer/applications")
@login_required
def employer_applications():
    applications = ApplicationStore().list_for_employer(current_principal())
    return jsonify([a.to_dict(with_job=True, with_user=True) for a in applications])


@bp.route("/applications")
@login_required
def all_applications():
    applications = ApplicationStore().list_all(current_principal())
    return jsonify([a.to_dict(with_job=True, with_user=True) for a in applications])
