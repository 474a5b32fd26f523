from typing import Dict, List
from sqlalchemy import and_, func, or_
from sqlalchemy.orm import Session
from ayasync.models.message import Message
from ayasync.utils.model_utils import utcnow


class MessageService:
    @staticmethod
    def get_conversation(db: Session, user_id: str, other_id: str) -> List[Message]:
        """Messages between two users in both directions, oldest first"""
        return (
            db.query(Message)
            .filter(or_(
                and_(Message.sender_id == user_id, Message.recipient_id == other_id),
                and_(Message.sender_id == other_id, Message.recipient_id == user_id),
            ))
            .order_by(Message.created_at.asc())
            .all()
        )

    @staticmethod
    def send_message(db: Session, sender_id: str, recipient_id: str, body: str) -> Message:
        message = Message(sender_id=sender_id, recipient_id=recipient_id, body=body)
        db.add(message)
        db.commit()
        db.refresh(message)
        return message

    @staticmethod
    def mark_conversation_read(db: Session, reader_id: str, other_id: str) -> int:
        """Stamp read_at on unread messages other_id sent to reader_id; returns how many"""
        updated = (
            db.query(Message)
            .filter(
                Message.sender_id == other_id,
                Message.recipient_id == reader_id,
                Message.read_at.is_(None),
            )
            .update({Message.read_at: utcnow()}, synchronize_session=False)
        )
        db.commit()
        return updated

    @staticmethod
    def unread_counts(db: Session, user_id: str) -> Dict[str, int]:
        """Unread message count per sender for messages addressed to user_id"""
        rows = (
            db.query(Message.sender_id, func.count(Message.id))
            .filter(Message.recipient_id == user_id, Message.read_at.is_(None))
            .group_by(Message.sender_id)
            .all()
        )
        return {sender_id: count for sender_id, count in rows}


message_service = MessageService()
