# tools/seed_demo_ideas.py

import asyncio
import sys
from pathlib import Path
from dotenv import load_dotenv

# --- CONFIGURATION ---
# Usage: python tools/seed_demo_ideas.py <user-email>
# Ideas are created through the idea service, so each one is analyzed by the
# configured provider exactly like a real submission.
dotenv_path = Path(__file__).parent.parent / 'backend' / '.env'
load_dotenv(dotenv_path=dotenv_path)

from sqlalchemy.future import select

from app.core.async_context import get_async_context, close_async_context
from app.core.exceptions import AnalysisError
from app.models.user import User
from app.schemas.idea import IdeaCreate
from app.services import idea_service

DEMO_IDEAS = [
    IdeaCreate(
        title="Developer Analytics Dashboard",
        description="Real-time analytics for developers to track their productivity, code quality, and project status.",
        tags=["analytics", "developer", "productivity"],
    ),
    IdeaCreate(
        title="AI-Powered Content Calendar",
        description="Calendar application that uses AI to suggest optimal posting times and content ideas for social media managers.",
        tags=["ai", "content", "social-media"],
    ),
]

async def main(email: str):
    session_factory = get_async_context().session_factory
    try:
        async with session_factory() as db:
            user = (await db.execute(select(User).filter(User.email == email))).scalars().first()
            if not user:
                print(f"No user with email {email}. Sign in once through the app first."); return

            for idea_in in DEMO_IDEAS:
                try:
                    idea = await idea_service.create_idea(db, user.id, idea_in)
                    if idea is None:
                        print(f"  '{idea_in.title}' was deleted before its analysis finished"); continue
                    print(f"  Created '{idea.title}' (market demand {idea.market_demand}/10)")
                except AnalysisError as e:
                    print(f"  Stored '{idea_in.title}' unvalidated: {e.kind} ({e.message})")
    finally:
        await close_async_context()

if __name__ == "__main__":
    if len(sys.argv) != 2:
        print("Usage: python tools/seed_demo_ideas.py <user-email>"); sys.exit(1)
    asyncio.run(main(sys.argv[1]))
