import logging
from fastapi import APIRouter, Depends, HTTPException, Request, status

from app.api.dependencies import get_access_token, get_registry
from app.schemas.auth import AuthUser
from app.schemas.catalog import AccessTokenRequest
from app.services.registry import CatalogRegistry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])


@router.post("/session", response_model=AuthUser)
async def start_session(
    data: AccessTokenRequest,
    request: Request,
    registry: CatalogRegistry = Depends(get_registry),
):
    user = await registry.auth_client.get_user(data.access_token)
    if user is None:
        logger.warning("Rejected access token on session start")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    request.session["access_token"] = data.access_token
    request.session["user_id"] = user.id
    logger.info(f"Session started for {user.id}")
    return user


@router.get("/me", response_model=AuthUser)
async def current_user(
    token: str = Depends(get_access_token),
    registry: CatalogRegistry = Depends(get_registry),
):
    user = await registry.auth_client.get_user(token)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    return user


@router.delete("/session", status_code=status.HTTP_200_OK)
async def end_session(request: Request, registry: CatalogRegistry = Depends(get_registry)):
    user_id = request.session.get("user_id")
    if user_id:
        registry.discard(user_id)
    request.session.clear()
    return {"message": "Logged out successfully"}
