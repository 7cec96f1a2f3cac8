from fastapi import APIRouter, Depends

from deployhooks.models.user import DEPLOY_CAPABILITY, Session
from deployhooks.utils.auth import get_current_session, require_capability
from deployhooks.utils.nonce import NONCE_ACTIONS, create_nonce

router = APIRouter()


@router.get("/nonces", dependencies=[Depends(require_capability(DEPLOY_CAPABILITY))])
async def issue_nonces(session: Session = Depends(get_current_session)):
    return {
        action: create_nonce(action, session.user_id, session.session_token)
        for action in NONCE_ACTIONS
    }
