from typing import List
from fastapi import HTTPException
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from ayasync.models.connection import (
    Connection,
    CONNECTION_PENDING,
    CONNECTION_ACCEPTED,
    CONNECTION_DECLINED,
    make_pair_key,
)
from ayasync.models.user import User

# pending -> accepted | declined; both are terminal
CONNECTION_RESOLUTIONS = (CONNECTION_ACCEPTED, CONNECTION_DECLINED)


class ConnectionService:
    @staticmethod
    def list_for_user(db: Session, user_id: str) -> List[Connection]:
        """Connections where the user is on either side"""
        return (
            db.query(Connection)
            .filter(or_(Connection.requester_id == user_id, Connection.target_id == user_id))
            .order_by(Connection.created_at.asc())
            .all()
        )

    @staticmethod
    def request_connection(db: Session, requester_id: str, target_id: str) -> Connection:
        if not target_id:
            raise HTTPException(status_code=400, detail="userId is required")
        if target_id == requester_id:
            raise HTTPException(status_code=400, detail="Cannot connect to yourself")

        if not db.query(User).filter(User.id == target_id).first():
            raise HTTPException(status_code=404, detail="User not found")

        pair_key = make_pair_key(requester_id, target_id)
        if db.query(Connection).filter(Connection.pair_key == pair_key).first():
            raise HTTPException(status_code=409, detail="Connection already exists")

        connection = Connection(
            requester_id=requester_id,
            target_id=target_id,
            pair_key=pair_key,
            status=CONNECTION_PENDING,
        )
        db.add(connection)
        try:
            db.commit()
        except IntegrityError:
            # Two requests for the same pair raced past the check above
            db.rollback()
            raise HTTPException(status_code=409, detail="Connection already exists")
        db.refresh(connection)
        return connection

    @staticmethod
    def get_connection(db: Session, connection_id: str) -> Connection:
        connection = db.query(Connection).filter(Connection.id == connection_id).first()
        if not connection:
            raise HTTPException(status_code=404, detail="Connection not found")
        return connection

    @staticmethod
    def resolve_connection(db: Session, connection_id: str, user_id: str, new_status: str) -> Connection:
        """Accept or decline a pending request; only its target may do so"""
        connection = ConnectionService.get_connection(db, connection_id)

        if connection.target_id != user_id:
            raise HTTPException(status_code=403, detail="Not authorized to modify this connection")
        if new_status not in CONNECTION_RESOLUTIONS:
            raise HTTPException(
                status_code=400,
                detail=f"Invalid status. Allowed: {list(CONNECTION_RESOLUTIONS)}",
            )
        if connection.status != CONNECTION_PENDING:
            raise HTTPException(status_code=409, detail=f"Connection already {connection.status}")

        connection.status = new_status
        db.commit()
        db.refresh(connection)
        return connection

    @staticmethod
    def delete_connection(db: Session, connection_id: str, user_id: str) -> None:
        connection = ConnectionService.get_connection(db, connection_id)
        if user_id not in (connection.requester_id, connection.target_id):
            raise HTTPException(status_code=403, detail="Not authorized to delete this connection")
        db.delete(connection)
        db.commit()


connection_service = ConnectionService()
