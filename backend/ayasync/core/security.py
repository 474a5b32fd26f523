from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import JWTError, jwt
from passlib.context import CryptContext
from ayasync.core.config import settings

# CryptContext handles password hashing using bcrypt
# bcrypt generates a salt per hash and stores it inside the hash string,
# so two users with the same password end up with different hashes
# The cost factor comes from settings; tests lower it to keep the suite fast
# 'deprecated="auto"' lets passlib flag hashes made with an outdated scheme
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.PASSWORD_HASH_ROUNDS,
)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against a hash using constant-time comparison"""
    # The salt and cost are read back out of hashed_password, so hashes made
    # with a different PASSWORD_HASH_ROUNDS still verify
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Hash a password using bcrypt"""
    # Only the hash is ever stored; the plaintext never reaches the database
    return pwd_context.hash(password)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a JWT access token with issue time and expiration"""
    # Copy data to avoid mutating the original dict
    to_encode = data.copy()

    # Tokens always expire; the default lifetime is ACCESS_TOKEN_EXPIRE_MINUTES (7 days)
    # timezone-aware now() keeps 'iat' and 'exp' in UTC
    now = datetime.now(timezone.utc)
    if expires_delta is not None:
        expire = now + expires_delta
    else:
        expire = now + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    # Standard 'iat' and 'exp' claims; jose serializes datetimes to epoch seconds
    to_encode.update({"iat": now, "exp": expire})

    # Anyone holding SECRET_KEY can mint tokens for any user
    # Rotating SECRET_KEY or ALGORITHM invalidates every issued token
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> Optional[dict]:
    """Decode and verify a JWT token"""
    try:
        # Verifies signature and expiration
        # Only the configured algorithm is accepted, so 'alg: none' tokens are rejected
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        # Expired, tampered, malformed or signed with another key
        # Callers turn None into 401 (REST) or close code 1008 (WebSocket)
        return None
