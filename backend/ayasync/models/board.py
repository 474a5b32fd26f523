from sqlalchemy import Column, String, DateTime, JSON
from ayasync.core.database import Base
from ayasync.utils.model_utils import generate_id, utcnow


class Board(Base):
    __tablename__ = "boards"

    id = Column(String, primary_key=True, default=generate_id)
    title = Column(String, nullable=False)
    owner_id = Column(String, nullable=False, index=True)
    # User ids the owner shared the board with
    members = Column(JSON, nullable=False, default=list)
    # Free-form board state (columns, cards) owned by the client
    data = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    def can_access(self, user_id: str) -> bool:
        return self.owner_id == user_id or user_id in (self.members or [])
