"""Per-action integrity tokens for mutating admin requests.

Tokens are signed with the application secret, scoped to an action name and
bound to the user they were issued for.  They expire after ``max_age``
seconds.
"""

from __future__ import annotations

from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

SAVE_OPTIONS_ACTION = "save-options"
RESET_OPTIONS_ACTION = "reset-options"

DEFAULT_MAX_AGE = 24 * 60 * 60


class IntegrityTokenInvalid(Exception):
    """Raised when an integrity token is missing, forged, expired or misused."""

    code = "integrity_token_invalid"

    def __init__(self, action: str, reason: str) -> None:
        super().__init__(f"Integrity token rejected for '{action}': {reason}")
        self.action = action
        self.reason = reason


def _serializer(secret_key: str | bytes, action: str) -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(secret_key, salt=f"infocard:{action}")


def create_token(secret_key: str | bytes, action: str, user: str | None) -> str:
    return _serializer(secret_key, action).dumps({"user": user or ""})


def verify_token(
    secret_key: str | bytes,
    token: str | None,
    action: str,
    user: str | None,
    *,
    max_age: int = DEFAULT_MAX_AGE,
) -> None:
    """Check ``token`` for ``action`` and ``user``.

    Raises:
        IntegrityTokenInvalid: the token does not verify.
    """
    if not token or not isinstance(token, str):
        raise IntegrityTokenInvalid(action, "missing token")

    try:
        payload = _serializer(secret_key, action).loads(token, max_age=max_age)
    except SignatureExpired:
        raise IntegrityTokenInvalid(action, "token expired") from None
    except BadSignature:
        raise IntegrityTokenInvalid(action, "bad signature") from None

    if not isinstance(payload, dict) or payload.get("user") != (user or ""):
        raise IntegrityTokenInvalid(action, "token issued for another user")


__all__ = [
    "DEFAULT_MAX_AGE",
    "IntegrityTokenInvalid",
    "RESET_OPTIONS_ACTION",
    "SAVE_OPTIONS_ACTION",
    "create_token",
    "verify_token",
]
