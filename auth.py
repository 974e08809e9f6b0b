"""
User Authentication — Flask-Login blueprint.

Register, login and logout for students and mentors. There are no passwords:
mentors prove themselves with the shared registration code, students with
their group's join code, and login is by username.
"""

from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request
from flask_login import LoginManager, UserMixin, current_user, login_required, login_user, logout_user

from audit import log_event
from extensions import get_store, limiter

auth_bp = Blueprint("auth", __name__)
login_manager = LoginManager()


class User(UserMixin):
    """Session identity for a student or mentor record."""

    def __init__(self, role: str, record_id: str, name: str):
        self.role = role
        self.record_id = record_id
        self.name = name

    def get_id(self) -> str:
        return f"{self.role}:{self.record_id}"

    @property
    def is_mentor(self):
        return self.role == "mentor"

    @staticmethod
    def for_student(student) -> User:
        return User("student", student.id, student.name)

    @staticmethod
    def for_mentor(mentor) -> User:
        return User("mentor", mentor.id, mentor.name)

    @staticmethod
    def get(user_id: str):
        role, _, record_id = user_id.partition(":")
        store = get_store()
        if role == "student":
            student = store.get_student(record_id)
            return User.for_student(student) if student else None
        if role == "mentor":
            mentor = store.get_mentor(record_id)
            return User.for_mentor(mentor) if mentor else None
        return None


@login_manager.user_loader
def load_user(user_id):
    return User.get(user_id)


@login_manager.unauthorized_handler
def unauthorized():
    return jsonify({"error": "Login required."}), 401


def _payload() -> dict:
    return request.get_json(silent=True) or request.form.to_dict()


@auth_bp.route("/register", methods=["POST"])
@limiter.limit("10 per hour")
def register():
    data = _payload()
    role = (data.get("role") or "student").lower()
    name = (data.get("name") or "").strip()
    username = (data.get("username") or "").strip()
    code = (data.get("code") or "").strip()

    store = get_store()
    if role == "mentor":
        result = store.register_mentor(
            name, username, code, current_app.config.get("MENTOR_REGISTRATION_CODE", ""),
        )
        if not result["success"]:
            log_event("register_failed", None, f"role=mentor username={username}")
            return jsonify(result), 400
        user = User.for_mentor(result["mentor"])
        body = {"success": True, "user": result["mentor"].to_dict(), "group": result["group"].to_dict()}
    elif role == "student":
        result = store.register_student(name, username, code)
        if not result["success"]:
            log_event("register_failed", None, f"role=student username={username}")
            return jsonify(result), 400
        user = User.for_student(result["student"])
        body = {"success": True, "user": result["student"].to_dict(), "group": result["group"].to_dict()}
    else:
        return jsonify({"success": False, "error": "Unknown role."}), 400

    login_user(user)
    log_event("register", user.get_id())
    return jsonify(body), 201


@auth_bp.route("/login", methods=["POST"])
@limiter.limit("20 per 15 minutes")
def login():
    data = _payload()
    role = (data.get("role") or "student").lower()
    username = (data.get("username") or "").strip()
    if not username:
        return jsonify({"success": False, "error": "Username is required."}), 400

    store = get_store()
    if role == "mentor":
        record = store.find_mentor_by_username(username)
        user = User.for_mentor(record) if record else None
    else:
        record = store.find_student_by_username(username)
        user = User.for_student(record) if record else None

    if user is None:
        log_event("login_failed", None, f"role={role} username={username}")
        return jsonify({"success": False, "error": "No account with that username."}), 401

    login_user(user)
    log_event("login", user.get_id())
    return jsonify({"success": True, "user": record.to_dict()})


@auth_bp.route("/logout", methods=["POST"])
@login_required
def logout():
    log_event("logout", current_user.get_id())
    logout_user()
    return jsonify({"success": True})


@auth_bp.route("/api/me")
@login_required
def me():
    store = get_store()
    if current_user.role == "student":
        record = store.get_student(current_user.record_id)
    else:
        record = store.get_mentor(current_user.record_id)
    if record is None:
        return jsonify({"error": "Account not found."}), 404
    return jsonify({"user": record.to_dict()})
