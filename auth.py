import logging
from functools import wraps

from flask import Blueprint, jsonify, session
from werkzeug.security import check_password_hash, generate_password_hash

from errors import Unauthenticated, ValidationError
from forms import LoginForm, RegisterForm
from models import ROLE_NAMES, Role, User, db
from policy import make_principal

logger = logging.getLogger(__name__)

bp = Blueprint("auth", __name__)


# ================= IDENTITY =================
def load_user():
    user_id = session.get("user_id")
    if user_id is None:
        return None
    return db.session.get(User, user_id)


def current_principal(required=True):
    """Principal for the signed-in user, or ``None`` when optional and anonymous."""
    user = load_user()
    if user is None:
        if required:
            raise Unauthenticated()
        return None
    return make_principal(user.id, user.role_names)


def login_required(view_func):
    @wraps(view_func)
    def _wrapped(*args, **kwargs):
        current_principal()
        return view_func(*args, **kwargs)
    return _wrapped


# ================= ROLES =================
def ensure_roles():
    existing = {role.name for role in Role.query.all()}
    missing = [name for name in ROLE_NAMES if name not in existing]
    for name in missing:
        db.session.add(Role(name=name))
    if missing:
        db.session.commit()
        logger.info("Seeded roles: %s", ", ".join(missing))


def get_role(name):
    return Role.query.filter_by(name=name).one()


def create_user(name, email, password, role_name):
    if User.query.filter_by(email=email).first():
        raise ValidationError(details={"email": ["The email has already been taken."]})

    user = User(
        name=name,
        email=email,
        password=generate_password_hash(password),
    )
    user.roles.append(get_role(role_name))
    db.session.add(user)
    db.session.commit()

    logger.info("Registered user %s with role %s", user.id, role_name)
    return user


def _login(user):
    session.clear()
    session["user_id"] = user.id


# ================= REGISTER =================
def _register(role_name, message):
    form = RegisterForm().validate_or_raise()
    user = create_user(form.name.data, form.email.data, form.password.data, role_name)
    _login(user)
    return jsonify({"message": message, "user": user.to_dict()}), 201


@bp.route("/register", methods=["POST"])
def register():
    return _register("user", "User created successfully")


@bp.route("/register/employer", methods=["POST"])
def register_employer():
    return _register("employer", "Employer created successfully")


# ================= LOGIN =================
@bp.route("/login", methods=["POST"])
def login():
    form = LoginForm()
    if not form.validate():
        raise Unauthenticated("Invalid credentials")

    user = User.query.filter_by(email=form.email.data).first()
    if not user or not check_password_hash(user.password, form.password.data):
        logger.info("Failed login for %s", form.email.data)
        raise Unauthenticated("Invalid credentials")

    _login(user)
    logger.info("User %s logged in", user.id)
    return jsonify({"user": user.to_dict(), "roles": sorted(user.role_names)})


# ================= LOGOUT =================
@bp.route("/logout", methods=["POST"])
@login_required
def logout():
    session.clear()
    return jsonify({"message": "Logged out successfully"})


# ================= CURRENT USER =================
@bp.route("/user")
@login_required
def user():
    return jsonify({"user": load_user().to_dict()})
