from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.errors import (
    AuthenticationRequired,
    Forbidden,
    ServiceError,
    SessionExpired,
    UserNotFound,
)
from ..models import Account
from .auth_service import AuthService

ROLE_NONE = "none"
ROLE_USER = "user"
ROLE_ADMIN = "admin"
ROLES = (ROLE_NONE, ROLE_USER, ROLE_ADMIN)

OUTCOME_AUTHORIZED = "authorized"
OUTCOME_DENIED = "denied"
OUTCOME_UNAUTHORIZED = "unauthorized"
OUTCOME_FORBIDDEN = "forbidden"


@dataclass
class AccessDecision:
    outcome: str
    account: Optional[Account] = None
    error: Optional[ServiceError] = None

    @property
    def allowed(self) -> bool:
        return self.outcome == OUTCOME_AUTHORIZED


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme != "Bearer":
        return None
    token = token.strip()
    return token or None


def evaluate_access(
    auth_service: AuthService,
    authorization: Optional[str],
    required_role: str = ROLE_USER,
) -> AccessDecision:
    if required_role not in ROLES:
        raise ValueError(f"Unknown role: {required_role}")

    token = extract_bearer_token(authorization)
    if token is None:
        if required_role == ROLE_NONE:
            return AccessDecision(OUTCOME_AUTHORIZED)
        return AccessDecision(OUTCOME_DENIED, error=AuthenticationRequired())

    try:
        account = auth_service.validate_session(token)
    except (SessionExpired, UserNotFound) as exc:
        if required_role == ROLE_NONE:
            return AccessDecision(OUTCOME_AUTHORIZED)
        return AccessDecision(OUTCOME_UNAUTHORIZED, error=exc)

    if required_role == ROLE_ADMIN and not account.is_admin:
        return AccessDecision(OUTCOME_FORBIDDEN, account=account, error=Forbidden())
    return AccessDecision(OUTCOME_AUTHORIZED, account=account)
