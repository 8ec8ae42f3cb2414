# app/utils/auth.py
from functools import wraps

from flask_jwt_extended import verify_jwt_in_request, get_jwt

from app.helpers import api_response


def current_claims():
    claims = get_jwt()
    return claims.get("role"), claims.get("linked_id")


def role_required(*roles):
    """Static role check: the token's role claim must be one of `roles`."""
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            verify_jwt_in_request()
            role, _ = current_claims()
            if role not in roles:
                return api_response(False, "Access denied for this role", status_code=403)
            return fn(*args, **kwargs)
        return wrapper
    return decorator


def can_view(owner_role, owner_id):
    """Admins see everything; other roles only the record they are linked to."""
    role, linked_id = current_claims()
    if role == "admin":
        return True
    return role == owner_role and linked_id == owner_id
