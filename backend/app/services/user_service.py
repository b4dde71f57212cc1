import logging
import uuid
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.database import commit_or_raise, execute_or_raise
from app.models.user import User
from app.schemas.user import UserCreate

logger = logging.getLogger(__name__)

async def get_user_by_supabase_id(db: AsyncSession, supabase_id: uuid.UUID) -> User | None:
    """
    Fetches a user from our database using their Supabase Auth ID.
    """
    result = await execute_or_raise(db, select(User).filter(User.supabase_auth_id == supabase_id))
    return result.scalars().first()

async def create_user(db: AsyncSession, user_in: UserCreate) -> User:
    """
    Provisions a local user row for a Supabase identity.
    """
    new_user = User(**user_in.model_dump())
    db.add(new_user)
    await commit_or_raise(db)
    await db.refresh(new_user)
    logger.info("Provisioned user %s", new_user.id)
    return new_user
