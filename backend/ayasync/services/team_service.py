import logging
from typing import Any, Dict, List, Optional, Tuple
from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from ayasync.models.team import Team, TeamMember, TEAM_ROLE_OWNER, TEAM_ROLE_MEMBER
from ayasync.utils.model_utils import utcnow

logger = logging.getLogger(__name__)

DEFAULT_TEAM_SETTINGS: Dict[str, Any] = {
    "allowMemberInvites": True,
    "allowTaskCreation": True,
    "allowTaskAssignment": True,
    "maxMembers": 10,
    "visibility": "public",
}


class TeamService:
    """Team registry: creation, listing and membership"""

    @staticmethod
    def create_team(
        db: Session,
        name: str,
        description: Optional[str],
        settings: Optional[Dict[str, Any]],
        user_id: str,
        email: str,
    ) -> Team:
        """Create a team whose only member is the creator, as owner"""
        now = utcnow()
        team = Team(
            name=name,
            description=description,
            settings={**DEFAULT_TEAM_SETTINGS, **(settings or {})},
            created_at=now,
            updated_at=now,
        )
        # The owner role is only ever assigned here
        team.members.append(TeamMember(
            user_id=user_id,
            email=email,
            role=TEAM_ROLE_OWNER,
            is_active=True,
            position=0,
            joined_at=now,
        ))
        db.add(team)
        db.commit()
        db.refresh(team)
        logger.info(f"Team {team.id} created by {user_id}")
        return team

    @staticmethod
    def list_teams(db: Session) -> List[Team]:
        return db.query(Team).order_by(Team.created_at.asc()).all()

    @staticmethod
    def list_user_teams(db: Session, user_id: str) -> List[Team]:
        """Teams where the user is an active member"""
        return (
            db.query(Team)
            .join(TeamMember, TeamMember.team_id == Team.id)
            .filter(TeamMember.user_id == user_id, TeamMember.is_active.is_(True))
            .order_by(Team.created_at.asc())
            .all()
        )

    @staticmethod
    def get_team(db: Session, team_id: str) -> Team:
        team = db.query(Team).filter(Team.id == team_id).first()
        if not team:
            raise HTTPException(status_code=404, detail="Team not found")
        return team

    @staticmethod
    def is_active_member(db: Session, team_id: str, user_id: str) -> bool:
        member = db.query(TeamMember).filter(
            TeamMember.team_id == team_id,
            TeamMember.user_id == user_id,
            TeamMember.is_active.is_(True),
        ).first()
        return member is not None

    @staticmethod
    def join_team(db: Session, team_id: str, user_id: str, email: str) -> Tuple[Team, bool]:
        """
        Add the user to the team as a plain member.

        Returns (team, changed). Joining again as an active member changes
        nothing; an inactive member record is reactivated rather than duplicated.
        maxMembers and visibility are not enforced here.
        """
        team = TeamService.get_team(db, team_id)

        existing = next((m for m in team.members if m.user_id == user_id), None)
        if existing is not None and existing.is_active:
            return team, False

        now = utcnow()
        if existing is not None:
            existing.is_active = True
        else:
            team.members.append(TeamMember(
                user_id=user_id,
                email=email,
                role=TEAM_ROLE_MEMBER,
                is_active=True,
                position=len(team.members),
                joined_at=now,
            ))
        team.updated_at = now
        try:
            db.commit()
        except IntegrityError:
            # A concurrent join for the same user committed first
            db.rollback()
            logger.info(f"User {user_id} already joined team {team_id}")
            return TeamService.get_team(db, team_id), False
        db.refresh(team)
        logger.info(f"User {user_id} joined team {team.id}")
        return team, True


team_service = TeamService()
