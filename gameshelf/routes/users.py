from fastapi import APIRouter, Depends

from ..schemas import AccountCreate, AccountOut, ApiResponse, SweepOut, ok
from ..services.auth_service import AuthService
from .deps import get_auth_service, require_admin_access

router = APIRouter(dependencies=[Depends(require_admin_access)])


@router.post("/users", response_model=ApiResponse[AccountOut], status_code=201)
def create_user(
    payload: AccountCreate,
    auth_service: AuthService = Depends(get_auth_service),
):
    account = auth_service.create_account(
        payload.username,
        payload.password,
        email=payload.email,
        is_admin=payload.is_admin,
    )
    return ok(AccountOut.model_validate(account))


@router.get("/users", response_model=ApiResponse[list[AccountOut]])
def list_users(auth_service: AuthService = Depends(get_auth_service)):
    return ok([AccountOut.model_validate(account) for account in auth_service.list_accounts()])


@router.delete("/users/{user_id}", response_model=ApiResponse[None])
def delete_user(
    user_id: str,
    auth_service: AuthService = Depends(get_auth_service),
):
    auth_service.delete_account(user_id)
    return ok(None)


@router.post("/sessions/sweep", response_model=ApiResponse[SweepOut])
def sweep_sessions(auth_service: AuthService = Depends(get_auth_service)):
    return ok(SweepOut(deleted=auth_service.sweep_expired_sessions()))
