from flask import current_app, request
from flask_jwt_extended import create_access_token

from app.helpers import api_response
from app.models.user import User


def login():
    data = request.get_json() or {}
    username = (data.get("username") or "").strip()
    password = data.get("password")
    role = (data.get("role") or "").strip().lower()

    if not username or not password or not role:
        return api_response(False, "Username, password and role required", status_code=400)

    current_app.logger.info("Login attempt: %s (%s)", username, role)
    user = User.query.filter_by(username=username, role=role).first()
    if not user or not user.check_password(password):
        current_app.logger.info("Login rejected: %s (%s)", username, role)
        return api_response(False, "Invalid credentials", status_code=401)

    access_token = create_access_token(
        identity=str(user.id),
        additional_claims={"role": user.role, "linked_id": user.linked_id},
    )
    current_app.logger.info("Login success: %s (linked id %s)", username, user.linked_id)
    return api_response(True, "Login successful", {
        "role": user.role,
        "id": user.linked_id,
        "access_token": access_token,
    })
