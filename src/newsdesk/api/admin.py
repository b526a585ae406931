"""Admin area. Everything here is AdminOnly."""

from fastapi import APIRouter, Depends, Request

from newsdesk.auth.dependencies import CurrentIdentity, require_admin

router = APIRouter(prefix="/admin")


@router.get("")
async def admin_home(
    request: Request,
    identity: CurrentIdentity = Depends(require_admin),
):
    return {
        "message": f"Welcome to the admin area, {identity.username or identity.user_id}",
        "connections": len(request.app.state.registry),
    }
