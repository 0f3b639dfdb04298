from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from fellowship.database.supabase_client import get_service_supabase
from fellowship.modules.account.schemas import DeleteAccountRequest, DeleteAccountResponse
from fellowship.modules.account.service import AccountDeletionService, validate_user_id
from fellowship.modules.auth.service import AuthService
from fellowship.core.dependencies import get_auth_service, get_current_user_id
from supabase import Client
from typing import Any, Dict

router = APIRouter(prefix="/account", tags=["account"])


def get_account_deletion_service(
    supabase: Client = Depends(get_service_supabase),
    auth: AuthService = Depends(get_auth_service),
) -> AccountDeletionService:
    return AccountDeletionService(supabase, auth)


async def _requested_user_id(request: Request) -> Any:
    """user_id from the JSON body; malformed bodies count as missing so they get a 400, not a 422"""
    try:
        body = await request.json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None
    return DeleteAccountRequest.model_validate(body).user_id


@router.post(
    "/delete",
    response_model=DeleteAccountResponse,
    openapi_extra={"requestBody": {"content": {"application/json": {
        "schema": DeleteAccountRequest.model_json_schema()
    }}}},
)
async def delete_account(
    request: Request,
    user_data: Dict = Depends(get_current_user_id),
    service: AccountDeletionService = Depends(get_account_deletion_service)
):
    """Permanently delete the caller's account and all of their data"""
    user_id = validate_user_id(await _requested_user_id(request))
    denied = service.authorize(user_id, user_data["id"])
    if denied is not None:
        return JSONResponse(status_code=400, content=denied.model_dump())
    return service.delete_account(user_id, user_data["id"])
