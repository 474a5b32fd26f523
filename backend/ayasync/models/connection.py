from sqlalchemy import Column, String, DateTime
from ayasync.core.database import Base
from ayasync.utils.model_utils import generate_id, utcnow

CONNECTION_PENDING = "pending"
CONNECTION_ACCEPTED = "accepted"
CONNECTION_DECLINED = "declined"


def make_pair_key(user_a: str, user_b: str) -> str:
    """Order-independent key for a pair of user ids"""
    first, second = sorted((user_a, user_b))
    return f"{first}:{second}"


class Connection(Base):
    """Social link request from requester to target."""
    __tablename__ = "connections"

    id = Column(String, primary_key=True, default=generate_id)
    requester_id = Column(String, nullable=False, index=True)
    target_id = Column(String, nullable=False, index=True)
    # At most one record per unordered pair of users
    pair_key = Column(String, nullable=False, unique=True)
    status = Column(String, nullable=False, default=CONNECTION_PENDING)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
