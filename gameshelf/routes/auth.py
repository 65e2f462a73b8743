from fastapi import APIRouter, Depends

from ..models import Account
from ..schemas import AccountOut, ApiResponse, LoginOut, LoginRequest, ok
from ..services.auth_service import AuthService
from .deps import get_auth_service, get_bearer_token, get_current_user

router = APIRouter()


@router.post("/login", response_model=ApiResponse[LoginOut])
def login(
    payload: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
):
    account, session = auth_service.login(payload.username, payload.password)
    return ok(
        LoginOut(
            user=AccountOut.model_validate(account),
            token=session.token,
            expires_at=session.expires_at,
        )
    )


@router.post("/logout", response_model=ApiResponse[None])
def logout(
    _current_user: Account = Depends(get_current_user),
    token: str = Depends(get_bearer_token),
    auth_service: AuthService = Depends(get_auth_service),
):
    auth_service.logout(token)
    return ok(None)


@router.get("/me", response_model=ApiResponse[AccountOut])
def me(current_user: Account = Depends(get_current_user)):
    return ok(AccountOut.model_validate(current_user))
