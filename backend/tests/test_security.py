from datetime import datetime, timedelta, timezone

from jose import jwt

from ayasync.core.config import settings
from ayasync.core.security import (
    create_access_token,
    decode_access_token,
    get_password_hash,
    verify_password,
)


def test_password_hash_is_salted_and_verifiable():
    first = get_password_hash("pw123456")
    second = get_password_hash("pw123456")

    assert first != second
    assert verify_password("pw123456", first)
    assert not verify_password("wrong", first)


def test_token_round_trip_keeps_claims():
    token = create_access_token({"sub": "user_1", "email": "a@example.com", "role": "user"})
    payload = decode_access_token(token)

    assert payload["sub"] == "user_1"
    assert payload["email"] == "a@example.com"
    assert payload["role"] == "user"


def test_token_expires_after_seven_days_by_default():
    payload = decode_access_token(create_access_token({"sub": "user_1"}))

    assert payload["exp"] - payload["iat"] == 7 * 24 * 60 * 60


def test_expired_token_is_rejected():
    token = create_access_token({"sub": "user_1"}, expires_delta=timedelta(days=-1))

    assert decode_access_token(token) is None


def test_token_issued_eight_days_ago_is_rejected():
    issued = datetime.now(timezone.utc) - timedelta(days=8)
    token = jwt.encode(
        {"sub": "user_1", "iat": issued, "exp": issued + timedelta(days=7)},
        settings.SECRET_KEY,
        algorithm=settings.ALGORITHM,
    )

    assert decode_access_token(token) is None


def test_token_signed_with_other_key_is_rejected():
    token = jwt.encode({"sub": "user_1"}, "another-secret", algorithm=settings.ALGORITHM)

    assert decode_access_token(token) is None


def test_garbage_token_is_rejected():
    assert decode_access_token("not-a-token") is None
