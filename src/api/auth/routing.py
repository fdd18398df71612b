import logging
from fastapi import APIRouter, HTTPException, Depends
from sqlmodel import Session, select
from api.db.session import get_session
from api.db.models import User
from api.errors import ConflictError
from api.responses import api_response
from .models import UserCreate, UserLogin
from .utils import (
    hash_password,
    verify_password,
    TOKEN_TYPE,
    issue_access_token,
    get_current_user,
)

logger = logging.getLogger("auth")

router = APIRouter(tags=["auth"])


@router.post("/signup")
def signup(user: UserCreate, db: Session = Depends(get_session)):
    existing = db.exec(
        select(User).where((User.username == user.username) | (User.email == user.email))
    ).first()
    if existing:
        raise ConflictError("Username or email already registered")

    db_user = User(
        username=user.username,
        email=user.email,
        full_name=user.full_name,
        avatar=user.avatar,
        hashed_password=hash_password(user.password),
    )
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    logger.info(f"Registered user {db_user.id}")

    token = issue_access_token(db_user.id)
    return api_response(
        201,
        {"user": db_user.document(), "access_token": token, "token_type": TOKEN_TYPE},
        "User registered successfully",
    )


@router.post("/login")
def login(user: UserLogin, db: Session = Depends(get_session)):
    db_user = db.exec(select(User).where(User.username == user.username)).first()
    if not db_user or not verify_password(user.password, db_user.hashed_password):
        raise HTTPException(status_code=401, detail="Invalid credentials")
    token = issue_access_token(db_user.id)
    return api_response(
        200,
        {"access_token": token, "token_type": TOKEN_TYPE},
        "Logged in successfully",
    )


@router.get("/me")
def get_me(current_user: User = Depends(get_current_user)):
    return api_response(200, current_user.document(), "Current user fetched successfully")
