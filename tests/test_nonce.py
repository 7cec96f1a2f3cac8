from deployhooks.config import settings
from deployhooks.utils.nonce import CHECK_STATUS_ACTION, UPDATE_STATUS_ACTION, create_nonce, verify_nonce

NOW = 1_700_000_000.0


def test_nonce_is_bound_to_action_user_and_session():
    nonce = create_nonce(CHECK_STATUS_ACTION, 1, "session-a", now=NOW)

    assert verify_nonce(nonce, CHECK_STATUS_ACTION, 1, "session-a", now=NOW)
    assert not verify_nonce(nonce, UPDATE_STATUS_ACTION, 1, "session-a", now=NOW)
    assert not verify_nonce(nonce, CHECK_STATUS_ACTION, 2, "session-a", now=NOW)
    assert not verify_nonce(nonce, CHECK_STATUS_ACTION, 1, "session-b", now=NOW)
    assert not verify_nonce(None, CHECK_STATUS_ACTION, 1, "session-a", now=NOW)


def test_nonce_expires_after_two_ticks():
    half_life = settings.nonce_lifetime / 2
    nonce = create_nonce(CHECK_STATUS_ACTION, 1, "session-a", now=NOW)

    assert verify_nonce(nonce, CHECK_STATUS_ACTION, 1, "session-a", now=NOW + half_life)
    assert not verify_nonce(nonce, CHECK_STATUS_ACTION, 1, "session-a", now=NOW + 2 * half_life)
