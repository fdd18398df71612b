import uuid
from datetime import datetime, timedelta, timezone

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlmodel import Session

from api.config import settings
from api.db.models import User
from api.db.session import get_session

TOKEN_TYPE = "bearer"

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/auth/login")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def _signing_key() -> str:
    if not settings.SECRET_KEY:
        raise RuntimeError("SECRET_KEY must be set to sign and verify access tokens")
    return settings.SECRET_KEY


def issue_access_token(user_id: uuid.UUID, lifetime: timedelta | None = None) -> str:
    """Signed JWT whose subject is the user's id."""
    issued_at = datetime.now(timezone.utc)
    claims = {
        "sub": str(user_id),
        "iat": issued_at,
        "exp": issued_at + (lifetime or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)),
    }
    if settings.JWT_ISSUER:
        claims["iss"] = settings.JWT_ISSUER
    if settings.JWT_AUDIENCE:
        claims["aud"] = settings.JWT_AUDIENCE
    return jwt.encode(claims, _signing_key(), algorithm=settings.JWT_ALGORITHM)


def token_subject(token: str) -> uuid.UUID:
    """User id carried by ``token``. Raises JWTError or ValueError when it is unusable."""
    claims = jwt.decode(
        token,
        _signing_key(),
        algorithms=[settings.JWT_ALGORITHM],
        audience=settings.JWT_AUDIENCE,
        issuer=settings.JWT_ISSUER,
        options={"verify_aud": bool(settings.JWT_AUDIENCE)},
    )
    subject = claims.get("sub")
    if not subject:
        raise ValueError("token has no subject")
    return uuid.UUID(subject)


def get_current_user(
    token: str = Depends(oauth2_scheme), db: Session = Depends(get_session)
) -> User:
    try:
        user = db.get(User, token_subject(token))
    except (JWTError, ValueError):
        user = None
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user
