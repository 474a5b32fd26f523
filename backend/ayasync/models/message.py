from sqlalchemy import Column, String, DateTime, Text, ForeignKey
from ayasync.core.database import Base
from ayasync.utils.model_utils import generate_id, utcnow


class Message(Base):
    """
    Direct message from one user to another.

    A conversation between two users is every message whose
    (sender, recipient) pair matches them in either direction.
    """
    __tablename__ = "messages"

    id = Column(String, primary_key=True, default=generate_id)
    sender_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    recipient_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    body = Column(Text, nullable=False)
    # Unset until the recipient marks the conversation read
    read_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
