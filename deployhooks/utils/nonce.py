"""Action-scoped anti-replay tokens.

A nonce is bound to one action, one user and their session, and to a time tick
of half the configured lifetime. It stays valid for the current and the previous
tick, so a token lives between half and the whole lifetime.
"""

import hashlib
import hmac
import math
import time

from deployhooks.config import settings

CHECK_STATUS_ACTION = "get_deployment_status"
UPDATE_STATUS_ACTION = "update_deployment_status"
TRIGGER_BUILD_ACTION = "trigger_deployment"

NONCE_ACTIONS = (CHECK_STATUS_ACTION, UPDATE_STATUS_ACTION, TRIGGER_BUILD_ACTION)


def _tick(now: float | None = None) -> int:
    now = time.time() if now is None else now
    return math.ceil(now / (settings.nonce_lifetime / 2))


def _digest(action: str, user_id: int, session_token: str, tick: int) -> str:
    message = f"{tick}|{action}|{user_id}|{session_token}"
    return hmac.new(
        settings.session_secret.encode(),
        message.encode(),
        hashlib.sha256,
    ).hexdigest()[-16:]


def create_nonce(action: str, user_id: int, session_token: str, now: float | None = None) -> str:
    return _digest(action, user_id, session_token, _tick(now))


def verify_nonce(nonce: str | None, action: str, user_id: int, session_token: str, now: float | None = None) -> bool:
    if not nonce:
        return False
    tick = _tick(now)
    for candidate in (tick, tick - 1):
        if hmac.compare_digest(nonce, _digest(action, user_id, session_token, candidate)):
            return True
    return False
