"""Role-based access decisions for jobs and applications.

Roles are always checked by set membership so a principal holding several
roles gets the union of their permissions.
"""
from collections import namedtuple
import enum
import logging

from errors import Forbidden
from models import PUBLIC_JOB_FIELDS

logger = logging.getLogger(__name__)

Principal = namedtuple("Principal", ["id", "roles"])


class Decision(enum.Enum):
    ALLOW = "allow"
    DENY = "deny"


# ================= ACTIONS =================
LIST_JOBS_ADMIN_VIEW = "list-jobs-admin-view"
LIST_JOBS_OWN = "list-jobs-own"
LIST_JOBS_PUBLIC = "list-jobs-public"
CREATE_JOB = "create-job"
UPDATE_JOB = "update-job"
DELETE_JOB = "delete-job"
SEARCH_JOBS = "search-jobs"
APPLY_TO_JOB = "apply-to-job"
LIST_OWN_APPLICATIONS = "list-own-applications"
LIST_EMPLOYER_APPLICATIONS = "list-employer-applications"
LIST_ALL_APPLICATIONS = "list-all-applications"

ACTIONS = frozenset({
    LIST_JOBS_ADMIN_VIEW,
    LIST_JOBS_OWN,
    LIST_JOBS_PUBLIC,
    CREATE_JOB,
    UPDATE_JOB,
    DELETE_JOB,
    SEARCH_JOBS,
    APPLY_TO_JOB,
    LIST_OWN_APPLICATIONS,
    LIST_EMPLOYER_APPLICATIONS,
    LIST_ALL_APPLICATIONS,
})

# Open to anyone, signed in or not.
PUBLIC_ACTIONS = frozenset({SEARCH_JOBS})

# Open to any authenticated principal whatever its roles.
AUTHENTICATED_ACTIONS = frozenset({
    APPLY_TO_JOB,
    LIST_OWN_APPLICATIONS,
    LIST_JOBS_PUBLIC,
})

# Allowed only on resources the caller owns (admins excepted).
OWNER_ONLY_ACTIONS = frozenset({UPDATE_JOB, DELETE_JOB})

# Loaded once, read-only afterwards.
ROLE_PERMISSIONS = {
    "admin": ACTIONS,
    "employer": frozenset({
        CREATE_JOB,
        UPDATE_JOB,
        DELETE_JOB,
        LIST_JOBS_OWN,
        LIST_EMPLOYER_APPLICATIONS,
    }),
    "user": frozenset(),
}


def make_principal(user_id, roles):
    return Principal(user_id, frozenset(roles))


def permitted_actions(roles):
    granted = set(PUBLIC_ACTIONS | AUTHENTICATED_ACTIONS)
    for role in roles:
        granted |= ROLE_PERMISSIONS.get(role, frozenset())
    return frozenset(granted)


def decide(principal, action, owner_id=None):
    """Return ``Decision.ALLOW`` or ``Decision.DENY`` for *action*.

    ``principal`` is ``None`` for anonymous callers. ``owner_id`` is the
    owning user id of the target resource when the action targets one.
    """
    if action not in ACTIONS:
        return Decision.DENY

    if action in PUBLIC_ACTIONS:
        return Decision.ALLOW

    if principal is None:
        return Decision.DENY

    if "admin" in principal.roles:
        return Decision.ALLOW

    if action in AUTHENTICATED_ACTIONS:
        return Decision.ALLOW

    if action not in permitted_actions(principal.roles):
        return Decision.DENY

    if action in OWNER_ONLY_ACTIONS and owner_id != principal.id:
        return Decision.DENY

    return Decision.ALLOW


def is_allowed(principal, action, owner_id=None):
    return decide(principal, action, owner_id) is Decision.ALLOW


def authorize(principal, action, owner_id=None):
    """Raise ``Forbidden`` unless *principal* may perform *action*."""
    if not is_allowed(principal, action, owner_id):
        logger.debug(
            "Denied %s for user %s (owner %s)",
            action, principal.id if principal else None, owner_id,
        )
        raise Forbidden()


def job_list_action(principal):
    if "admin" in principal.roles:
        return LIST_JOBS_ADMIN_VIEW
    if "employer" in principal.roles:
        return LIST_JOBS_OWN
    return LIST_JOBS_PUBLIC


def visible_job_fields(principal):
    """Columns a principal may see when listing jobs; ``None`` means all."""
    if principal is not None and "admin" in principal.roles:
        return None
    return PUBLIC_JOB_FIELDS
