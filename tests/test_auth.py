import pytest

from conftest import unique_email, unique_phone
from fitness_platform.core.cache import InMemoryCacheBackend
from fitness_platform.core.security import create_refresh_token
from fitness_platform.models import AuthAction, AuthLog, Customer, GymOwner, OTPRecord, TargetType, Trainer
from fitness_platform.services import AuthService
from fitness_platform.services.exceptions import OTPDeliveryFailed
from fitness_platform.services.notifiers import BaseOTPNotifier


def _register(client, *, user_type="customer", email=None, phone=None, password="str0ng-pass", **extra):
    payload = {
        "user_type": user_type,
        "email": email or unique_email(user_type),
        "phone": phone or unique_phone(),
        "password": password,
        "first_name": "Alex",
        "last_name": "Runner",
        **extra,
    }
    return client.post("/api/v1/auth/register", json=payload), payload


def test_register_verify_login_flow(client, db_session):
    response, payload = _register(client)
    assert response.status_code == 201
    data = response.json()
    assert data["account"]["email"] == payload["email"]
    assert data["account"]["is_active"] is False
    assert data["expires_in"] == 300
    code = data["otp"]
    assert code and len(code) == 6

    otp = db_session.query(OTPRecord).filter(OTPRecord.target == payload["email"]).one()
    assert otp.code == code

    verify_response = client.post(
        "/api/v1/otp/verify",
        json={"target": payload["email"], "target_type": "customer", "otp": code},
    )
    assert verify_response.status_code == 200
    verified = verify_response.json()
    assert verified["is_active"] is True
    assert verified["user_id"] == data["account"]["id"]
    assert verified["tokens"]["access_token"] and verified["tokens"]["refresh_token"]

    login_response = client.post(
        "/api/v1/auth/login",
        json={"username": payload["email"], "password": payload["password"], "user_type": "customer"},
    )
    assert login_response.status_code == 200
    access_token = login_response.json()["tokens"]["access_token"]

    me_response = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {access_token}"})
    assert me_response.status_code == 200
    profile = me_response.json()
    assert profile["type"] == "customer"
    assert profile["profile"]["email"] == payload["email"]
    assert profile["profile"]["is_active"] is True

    actions = {
        row.action
        for row in db_session.query(AuthLog).filter(AuthLog.target == payload["email"]).all()
    }
    assert {AuthAction.REGISTER, AuthAction.OTP_REQUEST, AuthAction.OTP_VERIFICATION, AuthAction.LOGIN} <= actions


def test_second_code_for_same_target_is_rate_limited(client):
    response, payload = _register(client)
    assert response.status_code == 201

    resend = client.post("/api/v1/otp/send", json={"target": payload["email"], "target_type": "customer"})
    assert resend.status_code == 429


def test_send_otp_returns_code_outside_production(client, db_session):
    customer = Customer(
        email=unique_email(),
        phone=unique_phone(),
        password_hash="x",
        first_name="Sam",
        last_name="Lifter",
    )
    db_session.add(customer)
    db_session.commit()

    response = client.post("/api/v1/otp/send", json={"target": customer.phone, "target_type": "customer"})
    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "OTP sent successfully"
    assert body["expires_in"] == 300

    verify = client.post(
        "/api/v1/otp/verify",
        json={"target": customer.phone, "target_type": "customer", "otp": body["otp"]},
    )
    assert verify.status_code == 200
    db_session.refresh(customer)
    assert customer.is_active is True


def test_invalid_code_is_rejected(client):
    response, payload = _register(client)
    code = response.json()["otp"]
    wrong = "0" * 6 if code != "0" * 6 else "1" * 6

    verify = client.post(
        "/api/v1/otp/verify",
        json={"target": payload["email"], "target_type": "customer", "otp": wrong},
    )
    assert verify.status_code == 400
    assert verify.json()["detail"] == "Invalid OTP"

    replay = client.post(
        "/api/v1/otp/verify",
        json={"target": payload["email"], "target_type": "customer", "otp": code},
    )
    assert replay.status_code == 200

    again = client.post(
        "/api/v1/otp/verify",
        json={"target": payload["email"], "target_type": "customer", "otp": code},
    )
    assert again.status_code == 400


def test_verify_for_unregistered_target_conflicts(client):
    email = unique_email("nobody")
    send = client.post("/api/v1/otp/send", json={"target": email, "target_type": "trainer"})
    assert send.status_code == 200

    verify = client.post(
        "/api/v1/otp/verify",
        json={"target": email, "target_type": "trainer", "otp": send.json()["otp"]},
    )
    assert verify.status_code == 409


def test_inactive_account_cannot_login(client):
    response, payload = _register(client)
    assert response.status_code == 201

    login = client.post(
        "/api/v1/auth/login",
        json={"username": payload["phone"], "password": payload["password"], "user_type": "customer"},
    )
    assert login.status_code == 403


def test_login_with_wrong_password_is_logged(client, db_session):
    response, payload = _register(client)
    assert response.status_code == 201

    login = client.post(
        "/api/v1/auth/login",
        json={"username": payload["email"], "password": "not-the-password", "user_type": "customer"},
    )
    assert login.status_code == 401
    assert login.json()["detail"] == "Invalid credentials"
    failed = (
        db_session.query(AuthLog)
        .filter(AuthLog.target == payload["email"], AuthLog.action == AuthAction.FAILED_LOGIN)
        .count()
    )
    assert failed == 1


def test_duplicate_registration_conflicts(client):
    response, payload = _register(client)
    assert response.status_code == 201

    duplicate, _ = _register(client, email=payload["email"])
    assert duplicate.status_code == 409


def test_trainer_registers_under_gym_owner(client, db_session):
    owner_response, _ = _register(client, user_type="gym_owner", gym_name="Iron Temple")
    assert owner_response.status_code == 201
    owner_id = owner_response.json()["account"]["id"]
    assert db_session.get(GymOwner, owner_id).gym_name == "Iron Temple"

    trainer_response, trainer_payload = _register(
        client,
        user_type="trainer",
        gym_owner_id=owner_id,
        specialization="Mobility",
    )
    assert trainer_response.status_code == 201
    assert trainer_response.json()["account"]["gym_owner_id"] == owner_id
    trainer = db_session.query(Trainer).filter(Trainer.email == trainer_payload["email"]).one()
    assert trainer.specialization == "Mobility"

    missing_owner, _ = _register(client, user_type="customer", gym_owner_id="does-not-exist")
    assert missing_owner.status_code == 404


def test_register_rejects_fields_of_other_roles(client):
    response, _ = _register(client, user_type="customer", specialization="Yoga")
    assert response.status_code == 422


def test_refresh_issues_new_tokens(client):
    response, payload = _register(client)
    client.post(
        "/api/v1/otp/verify",
        json={"target": payload["email"], "target_type": "customer", "otp": response.json()["otp"]},
    )
    refresh_token = create_refresh_token(subject=response.json()["account"]["id"], account_type="customer")

    refreshed = client.post("/api/v1/auth/refresh", json={"refresh_token": refresh_token})
    assert refreshed.status_code == 200
    assert refreshed.json()["token_type"] == "bearer"

    rejected = client.post("/api/v1/auth/refresh", json={"refresh_token": "garbage"})
    assert rejected.status_code == 401

    empty = client.post("/api/v1/auth/refresh", json={"refresh_token": ""})
    assert empty.status_code == 400


def test_me_requires_token(client):
    assert client.get("/api/v1/auth/me").status_code == 401
    invalid = client.get("/api/v1/auth/me", headers={"Authorization": "Bearer nope"})
    assert invalid.status_code == 401


def test_health_reports_ok(client):
    response = client.get("/api/v1/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "database": "ok", "cache": "ok"}


def test_request_id_is_echoed(client):
    response = client.get("/api/v1/health", headers={"X-Request-ID": "req-abc123"})
    assert response.headers["X-Request-ID"] == "req-abc123"


def test_request_id_is_generated_when_missing(client):
    response = client.get("/api/v1/health")
    assert response.headers["X-Request-ID"].startswith("req-")


class _UnreachableNotifier(BaseOTPNotifier):
    name = "unreachable"

    def send_code(self, *, target, code, message):
        raise OTPDeliveryFailed("Could not deliver the verification email")


def test_failed_first_delivery_leaves_no_account_behind(db_session, cache):
    email = unique_email()
    registration = {
        "account_type": TargetType.CUSTOMER,
        "email": email,
        "phone": unique_phone(),
        "password": "str0ng-pass",
        "first_name": "Alex",
        "last_name": "Runner",
    }

    with pytest.raises(OTPDeliveryFailed):
        AuthService(db_session, cache=cache, notifier=_UnreachableNotifier()).register(**registration)

    db_session.expire_all()
    assert db_session.query(Customer).filter(Customer.email == email).count() == 0

    account, code = AuthService(db_session, cache=InMemoryCacheBackend()).register(**registration)
    assert account.email == email
    assert code
