from dataclasses import dataclass

from jose import JWTError, jwt

from app.core.config import settings


class InvalidIdentityToken(Exception):
    pass


@dataclass(frozen=True)
class ExternalIdentity:
    subject: str
    email: str
    first_name: str | None = None
    last_name: str | None = None
    shop: str | None = None


def decode_access_token(token: str) -> dict:
    try:
        return jwt.decode(
            token,
            settings.auth_jwt_secret,
            algorithms=[settings.auth_jwt_algorithm],
            audience=settings.auth_jwt_audience,
        )
    except JWTError as exc:
        raise InvalidIdentityToken(str(exc)) from exc


def identity_from_claims(claims: dict) -> ExternalIdentity:
    subject = claims.get("sub")
    email = claims.get("email")
    if not subject or not email:
        raise InvalidIdentityToken("Token is missing subject or email")

    metadata = claims.get("user_metadata") or {}
    shop = metadata.get("shop")
    return ExternalIdentity(
        subject=str(subject),
        email=str(email),
        first_name=metadata.get("first_name"),
        last_name=metadata.get("last_name"),
        shop=shop.strip() if isinstance(shop, str) and shop.strip() else None,
    )
