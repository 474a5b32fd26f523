import logging
from typing import Literal, Optional
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from pydantic import BaseModel, EmailStr, Field
from ayasync.core.database import get_db
from ayasync.core.security import verify_password, get_password_hash, create_access_token
from ayasync.models.user import User, ROLE_USER
from ayasync.utils.model_utils import utcnow

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)
    name: Optional[str] = None
    role: Literal["user", "admin"] = ROLE_USER


class UserLogin(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)
    # Which login section the user picked in the UI ("user" or "admin")
    userType: Optional[str] = None


class RegisteredUser(BaseModel):
    id: str
    email: str
    name: Optional[str]


class RegisterResponse(BaseModel):
    ok: bool
    user: RegisteredUser


class LoggedInUser(RegisteredUser):
    role: str


class LoginResponse(BaseModel):
    ok: bool
    token: str
    user: LoggedInUser


def normalize_email(email: str) -> str:
    return email.strip().lower()


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
def register(user_data: UserCreate, db: Session = Depends(get_db)):
    """Register a new user"""
    email = normalize_email(user_data.email)
    try:
        if db.query(User).filter(User.email == email).first():
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Email already registered"
            )

        db_user = User(
            email=email,
            password_hash=get_password_hash(user_data.password),
            name=user_data.name,
            role=user_data.role,
            is_active=True,
        )
        db.add(db_user)
        db.commit()
        db.refresh(db_user)
    except IntegrityError:
        # Two registrations for the same email raced past the check above
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email already registered"
        )
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Database error during registration")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Database error occurred"
        )

    logger.info(f"Registered user {db_user.id}")
    return {"ok": True, "user": {"id": db_user.id, "email": db_user.email, "name": db_user.name}}


@router.post("/login", response_model=LoginResponse)
def login(credentials: UserLogin, db: Session = Depends(get_db)):
    """Login and get access token"""
    email = normalize_email(credentials.email)
    user = db.query(User).filter(User.email == email).first()

    # Same response for unknown email and wrong password
    if not user or not verify_password(credentials.password, user.password_hash):
        logger.info(f"Failed login for {email}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if credentials.userType and user.role != credentials.userType:
        logger.info(f"Role mismatch on login for {user.id}: picked {credentials.userType}, is {user.role}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"This account is registered as {user.role}. Please use the {user.role} login section."
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is inactive"
        )

    user.last_login = utcnow()
    db.commit()

    token = create_access_token(data={"sub": user.id, "email": user.email, "role": user.role})

    return {
        "ok": True,
        "token": token,
        "user": {"id": user.id, "email": user.email, "name": user.name, "role": user.role},
    }
