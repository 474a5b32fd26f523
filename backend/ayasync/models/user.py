from functools import partial
from sqlalchemy import Column, String, DateTime, Boolean
from ayasync.core.database import Base
from ayasync.utils.model_utils import generate_id, utcnow

ROLE_USER = "user"
ROLE_ADMIN = "admin"
USER_ROLES = (ROLE_USER, ROLE_ADMIN)


class User(Base):
    """
    User model representing application users.

    Stores authentication credentials and user profile information.
    Passwords are stored as hashes (never plaintext).
    """
    __tablename__ = "users"

    id = Column(String, primary_key=True, default=partial(generate_id, "user"))
    # Email is unique and stored lowercase so lookups are case-insensitive
    email = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    name = Column(String, nullable=True)  # Optional display name
    # Data URI or URL produced by the avatar editor
    avatar_url = Column(String, nullable=True)
    role = Column(String, nullable=False, default=ROLE_USER)
    is_active = Column(Boolean, nullable=False, default=True)
    last_login = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
