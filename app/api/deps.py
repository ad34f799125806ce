from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.security import InvalidIdentityToken, decode_access_token, identity_from_claims
from app.db.database import get_db
from app.models.user import User
from app.services.users import sync_user

# Tokens are issued by the external identity provider; tokenUrl is informational only.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token", auto_error=False)


def get_current_user(
    request: Request,
    token: str | None = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid authentication credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    raw_token = (token or "").strip() or (request.cookies.get("access_token") or "").strip()
    if not raw_token:
        raise credentials_exception

    try:
        identity = identity_from_claims(decode_access_token(raw_token))
    except InvalidIdentityToken as exc:
        raise credentials_exception from exc

    try:
        return sync_user(db, identity)
    except IntegrityError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Shop is already linked to another account",
        ) from exc
