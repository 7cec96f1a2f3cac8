from fastapi import Depends, HTTPException, Header, Query
from sqlalchemy.orm import Session as DBSession

from deployhooks.database import get_db
from deployhooks.logging_config import get_logger
from deployhooks.models.user import DEPLOY_CAPABILITY, Session, User
from deployhooks.utils.nonce import verify_nonce

logger = get_logger(__name__)


async def get_current_session(
    authorization: str = Header(None),
    db: DBSession = Depends(get_db),
) -> Session:
    if not authorization:
        raise HTTPException(status_code=401, detail="Unauthorized")
    token = authorization.removeprefix("Bearer ").strip()
    session = db.query(Session).filter(Session.session_token == token).first()
    if not session:
        logger.warning("[Auth] Invalid or expired session")
        raise HTTPException(status_code=401, detail="Invalid or expired session")
    return session


async def get_current_user(session: Session = Depends(get_current_session)) -> User:
    return session.user


def require_capability(capability: str):
    async def dependency(user: User = Depends(get_current_user)) -> User:
        if not user.can(capability):
            logger.warning("[Auth] Missing capability", user_id=user.id, capability=capability)
            raise HTTPException(status_code=401, detail="Unauthorized")
        return user

    return dependency


def require_nonce(action: str):
    """Deploy-capable user carrying a valid `_nonce` for `action`."""

    async def dependency(
        nonce: str = Query(None, alias="_nonce"),
        session: Session = Depends(get_current_session),
        user: User = Depends(require_capability(DEPLOY_CAPABILITY)),
    ) -> User:
        if not verify_nonce(nonce, action, user.id, session.session_token):
            logger.warning("[Auth] Invalid nonce", user_id=user.id, action=action)
            raise HTTPException(status_code=403, detail="Invalid nonce")
        return user

    return dependency
