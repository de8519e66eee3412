import pytest
from sqlalchemy import inspect

from conftest import JOB
from errors import Conflict, Forbidden, NotFound
from models import Application, Job, db
from stores import ApplicationStore, JobStore

pytestmark = pytest.mark.usefixtures("app_ctx")


@pytest.fixture
def people(make_user):
    return {
        "admin": make_user("Admin", "admin@board.com", "admin"),
        "employer": make_user("Acme HR", "hr@acme.com", "employer"),
        "rival": make_user("Globex HR", "hr@globex.com", "employer"),
        "user": make_user("Jane", "jane@mail.com", "user"),
    }


@pytest.fixture
def job(people):
    return JobStore().create(JOB, people["employer"])


def test_create_sets_owner(job, people):
    assert job.user_id == people["employer"].id
    assert job.title == "Python Developer"


def test_user_cannot_create(people):
    with pytest.raises(Forbidden):
        JobStore().create(JOB, people["user"])
    assert Job.query.count() == 0


def test_get_missing_job():
    with pytest.raises(NotFound):
        JobStore().get(404)


def test_partial_update_keeps_other_fields(job, people):
    updated = JobStore().update(job.id, {"location": "Rabat"}, people["employer"])
    assert updated.location == "Rabat"
    assert updated.title == JOB["title"]
    assert updated.company == JOB["company"]


def test_non_owner_update_leaves_job_unchanged(job, people):
    for intruder in (people["rival"], people["user"]):
        with pytest.raises(Forbidden):
            JobStore().update(job.id, {"title": "Hacked"}, intruder)
    assert JobStore().get(job.id).title == JOB["title"]


def test_admin_updates_any_job(job, people):
    updated = JobStore().update(job.id, {"title": "Senior Dev"}, people["admin"])
    assert updated.title == "Senior Dev"


def test_update_missing_job(people):
    with pytest.raises(NotFound):
        JobStore().update(7, {"title": "x"}, people["admin"])


def test_delete_by_non_owner_forbidden(job, people):
    with pytest.raises(Forbidden):
        JobStore().delete(job.id, people["rival"])
    assert Job.query.count() == 1


def test_delete_by_owner(job, people):
    JobStore().delete(job.id, people["employer"])
    with pytest.raises(NotFound):
        JobStore().get(job.id)


def test_list_scopes_by_role(job, people):
    JobStore().create(dict(JOB, title="Ops"), people["rival"])
    store = JobStore()

    assert len(store.list(people["admin"])) == 2
    own = store.list(people["employer"])
    assert [j["id"] for j in own] == [job.id]
    assert own[0]["user_id"] == people["employer"].id

    public = store.list(people["user"])
    assert len(public) == 2
    for row in public:
        assert set(row) == {"id", "title", "description", "location", "company"}


def test_search_is_case_insensitive_and_combined(people):
    store = JobStore()
    store.create(JOB, people["employer"])
    store.create(dict(JOB, title="Data Engineer", location="Rabat"), people["employer"])
    store.create(dict(JOB, title="DevOps", company="Globex"), people["rival"])

    assert [j.title for j in store.search(title="dev")] == ["Python Developer", "DevOps"]
    assert [j.title for j in store.search(title="dev", company="globex")] == ["DevOps"]
    assert [j.title for j in store.search(location="RABAT")] == ["Data Engineer"]
    assert len(store.search()) == 3


def test_search_treats_wildcards_literally(job):
    assert JobStore().search(title="%") == []


def test_apply_and_duplicate(job, people):
    store = ApplicationStore()
    application = store.create(people["user"], job.id, "Hi")
    assert application.cover_letter == "Hi"

    with pytest.raises(Conflict):
        store.create(people["user"], job.id, "Again")
    assert Application.query.count() == 1


def test_duplicate_caught_by_unique_constraint(job, people, monkeypatch):
    store = ApplicationStore()
    monkeypatch.setattr(store, "_find_existing", lambda user_id, job_id: None)

    store.create(people["user"], job.id)
    with pytest.raises(Conflict):
        store.create(people["user"], job.id)
    assert Application.query.count() == 1


def test_apply_to_missing_job(people):
    with pytest.raises(NotFound):
        ApplicationStore().create(people["user"], 999, "Hi")


def test_employer_sees_only_applications_to_own_jobs(job, people):
    store = ApplicationStore()
    other = JobStore().create(dict(JOB, title="Ops"), people["rival"])
    store.create(people["user"], job.id, "Hi")
    store.create(people["user"], other.id, "Hello")

    mine = store.list_for_employer(people["employer"])
    assert [a.job_id for a in mine] == [job.id]
    assert [a.job_id for a in store.list_for_employer(people["rival"])] == [other.id]


def test_list_for_employer_forbidden_for_user(people):
    with pytest.raises(Forbidden):
        ApplicationStore().list_for_employer(people["user"])


def test_list_all_admin_only(job, people):
    store = ApplicationStore()
    store.create(people["user"], job.id)

    assert len(store.list_all(people["admin"])) == 1
    with pytest.raises(Forbidden):
        store.list_all(people["employer"])


def test_list_for_user(job, people):
    store = ApplicationStore()
    store.create(people["user"], job.id)
    store.create(people["rival"], job.id)

    mine = store.list_for_user(people["user"])
    assert [a.user_id for a in mine] == [people["user"].id]
    assert mine[0].job.title == JOB["title"]


def test_application_lists_load_job_and_user(job, people):
    store = ApplicationStore()
    store.create(people["user"], job.id, "Hi")
    db.session.expunge_all()

    for application in store.list_all(people["admin"]):
        unloaded = inspect(application).unloaded
        assert "job" not in unloaded
        assert "user" not in unloaded
