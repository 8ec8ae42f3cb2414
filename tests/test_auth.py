from flask_jwt_extended import decode_token

from app.extensions import db
from app.models import User


def _user(username="nurse", password="s3cret!", role="caregiver", linked_id=4):
    user = User(username=username, role=role, linked_id=linked_id)
    user.set_password(password)
    db.session.add(user)
    db.session.commit()
    return user


def test_login_returns_role_scoped_token(client, app):
    _user()
    resp = client.post("/api/v1/auth/login", json={"username": "nurse", "password": "s3cret!", "role": "caregiver"})

    assert resp.status_code == 200
    data = resp.get_json()["data"]
    assert data["role"] == "caregiver"
    assert data["id"] == 4
    claims = decode_token(data["access_token"])
    assert claims["role"] == "caregiver"
    assert claims["linked_id"] == 4


def test_login_rejects_wrong_password_or_role(client):
    _user()
    wrong_pw = client.post("/api/v1/auth/login", json={"username": "nurse", "password": "nope", "role": "caregiver"})
    wrong_role = client.post("/api/v1/auth/login", json={"username": "nurse", "password": "s3cret!", "role": "admin"})
    assert wrong_pw.status_code == 401
    assert wrong_role.status_code == 401


def test_login_requires_all_fields(client):
    resp = client.post("/api/v1/auth/login", json={"username": "nurse"})
    assert resp.status_code == 400
    assert resp.get_json()["success"] is False


def test_token_works_against_scoped_endpoint(client, factory):
    patient = factory.patient()
    _user(username="ada", password="pw123456", role="patient", linked_id=patient.id)
    token = client.post("/api/v1/auth/login",
                        json={"username": "ada", "password": "pw123456", "role": "patient"}).get_json()["data"]["access_token"]

    resp = client.get(f"/api/v1/schedule/{patient.id}", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 200


def test_create_user_command(app):
    runner = app.test_cli_runner()
    result = runner.invoke(args=["create-user", "root", "hunter22", "admin"])
    assert result.exit_code == 0
    assert User.query.filter_by(username="root").one().role == "admin"

    again = runner.invoke(args=["create-user", "root", "x", "admin"])
    assert again.exit_code != 0
