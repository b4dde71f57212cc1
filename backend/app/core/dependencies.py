import logging

from fastapi import Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from supabase_auth.errors import AuthError

from app.core.async_context import get_async_context
from app.core.security import oauth2_scheme
from app.database import get_db
from app.models.user import User
from app.schemas.user import UserCreate
from app.services.user_service import get_user_by_supabase_id, create_user

logger = logging.getLogger(__name__)


async def get_current_user_with_provisioning(
    db: AsyncSession = Depends(get_db),
    token: str = Depends(oauth2_scheme)
) -> User:
    """
    A dependency that gets the current user.
    If the user is authenticated with Supabase but doesn't exist in our
    local DB, it creates (provisions) a local user for them.
    The returned user's id is the owner id threaded through every idea call.
    """
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated"
        )

    try:
        supabase_client = await get_async_context().supabase_client()
        auth_response = await supabase_client.auth.get_user(token)
    except AuthError as e:
        logger.info("Rejected token: %s", e)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    auth_user = auth_response.user if auth_response else None
    if not auth_user or not auth_user.email:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    local_user = await get_user_by_supabase_id(db, supabase_id=auth_user.id)

    if not local_user:
        logger.info("Provisioning new user for email: %s", auth_user.email)
        user_create_schema = UserCreate(
            supabase_auth_id=auth_user.id,
            email=auth_user.email,
            full_name=(auth_user.user_metadata or {}).get("full_name")
        )
        local_user = await create_user(db, user_in=user_create_schema)

    return local_user
