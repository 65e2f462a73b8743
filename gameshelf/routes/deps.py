from typing import Callable, Optional

from fastapi import Depends, Header, Request

from ..models import Account
from ..services.access import ROLE_ADMIN, ROLE_USER, evaluate_access, extract_bearer_token
from ..services.auth_service import AuthService
from ..services.catalog import CatalogStore
from ..services.igdb_client import IgdbClient
from ..services.library import LibraryStore


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def get_catalog(request: Request) -> CatalogStore:
    return request.app.state.catalog


def get_library(request: Request) -> LibraryStore:
    return request.app.state.library


def get_provider(request: Request) -> IgdbClient:
    return request.app.state.provider


def require_role(role: str) -> Callable[..., Account]:
    def checkpoint(
        request: Request,
        authorization: Optional[str] = Header(default=None),
        auth_service: AuthService = Depends(get_auth_service),
    ) -> Account:
        decision = evaluate_access(auth_service, authorization, role)
        if not decision.allowed:
            raise decision.error
        request.state.account = decision.account
        return decision.account

    return checkpoint


get_current_user = require_role(ROLE_USER)
require_admin_access = require_role(ROLE_ADMIN)


def get_bearer_token(authorization: Optional[str] = Header(default=None)) -> Optional[str]:
    return extract_bearer_token(authorization)
