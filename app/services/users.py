from datetime import datetime

from sqlalchemy.orm import Session

from app.core.security import ExternalIdentity
from app.models.user import User


def sync_user(db: Session, identity: ExternalIdentity) -> User:
    user = db.get(User, identity.subject)
    if not user:
        user = User(
            id=identity.subject,
            email=identity.email,
            first_name=identity.first_name,
            last_name=identity.last_name,
            shop=identity.shop,
        )
        db.add(user)
    else:
        user.email = identity.email
        # Claims missing from this login leave the stored values alone.
        if identity.first_name is not None:
            user.first_name = identity.first_name
        if identity.last_name is not None:
            user.last_name = identity.last_name
        if identity.shop:
            user.shop = identity.shop
        user.updated_at = datetime.utcnow()

    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(user)
    return user
