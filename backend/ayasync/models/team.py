from functools import partial
from sqlalchemy import Column, String, DateTime, Boolean, ForeignKey, JSON, UniqueConstraint, Integer
from sqlalchemy.orm import relationship
from ayasync.core.database import Base
from ayasync.utils.model_utils import generate_id, utcnow

TEAM_ROLE_OWNER = "owner"
TEAM_ROLE_ADMIN = "admin"
TEAM_ROLE_MEMBER = "member"


class Team(Base):
    """
    Team model: a named group of users sharing a task board.

    Settings are kept as a JSON object (invites, task creation/assignment,
    maxMembers, visibility). Members are kept in join order.
    """
    __tablename__ = "teams"

    id = Column(String, primary_key=True, default=partial(generate_id, "team"))
    name = Column(String, nullable=False)
    description = Column(String, nullable=True)
    settings = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    members = relationship(
        "TeamMember",
        back_populates="team",
        order_by="TeamMember.position",
        cascade="all, delete-orphan",
    )

    @property
    def owner_id(self):
        for member in self.members:
            if member.role == TEAM_ROLE_OWNER:
                return member.user_id
        return None


class TeamMember(Base):
    __tablename__ = "team_members"
    # A user appears at most once in a team's member list
    __table_args__ = (UniqueConstraint("team_id", "user_id", name="uq_team_member"),)

    id = Column(Integer, primary_key=True, index=True)
    team_id = Column(String, ForeignKey("teams.id"), nullable=False, index=True)
    user_id = Column(String, nullable=False, index=True)
    # Snapshot of the member's email at join time
    email = Column(String, nullable=True)
    role = Column(String, nullable=False, default=TEAM_ROLE_MEMBER)
    is_active = Column(Boolean, nullable=False, default=True)
    position = Column(Integer, nullable=False, default=0)
    joined_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    team = relationship("Team", back_populates="members")
