# backend/app/core/async_context.py
import asyncio
import weakref

import httpx
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from openai import AsyncOpenAI
from supabase import acreate_client, AsyncClient
from supabase.lib.client_options import AsyncClientOptions

from app.core.config import settings

# One context per running event loop. Celery tasks spin up a fresh loop per
# run, and pooled connections must never cross loops.
_contexts: "weakref.WeakKeyDictionary[asyncio.AbstractEventLoop, AsyncContext]" = weakref.WeakKeyDictionary()

class AsyncContext:
    """A container for lazily initialized async resources."""
    def __init__(self):
        self._engine = None
        self._session_factory = None
        self._openai_client = None
        self._openrouter_client = None
        self._http_client = None
        self._supabase_client = None

    @property
    def engine(self):
        if self._engine is None:
            self._engine = create_async_engine(settings.DATABASE_URL, pool_pre_ping=True)
        return self._engine

    @property
    def session_factory(self):
        if self._session_factory is None:
            self._session_factory = async_sessionmaker(self.engine, expire_on_commit=False, class_=AsyncSession)
        return self._session_factory

    @property
    def openai_client(self) -> AsyncOpenAI:
        if self._openai_client is None:
            self._openai_client = AsyncOpenAI(api_key=settings.OPENAI_API_KEY, max_retries=0)
        return self._openai_client

    @property
    def openrouter_client(self) -> AsyncOpenAI:
        if self._openrouter_client is None:
            self._openrouter_client = AsyncOpenAI(
                base_url="https://openrouter.ai/api/v1",
                api_key=settings.OPENROUTER_API_KEY,
                max_retries=0,
            )
        return self._openrouter_client

    @property
    def http_client(self) -> httpx.AsyncClient:
        """Plain HTTP client for providers without an SDK (Gemini)."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient()
        return self._http_client

    async def supabase_client(self) -> AsyncClient:
        # acreate_client is a coroutine, so this can't be a property
        if self._supabase_client is None:
            self._supabase_client = await acreate_client(
                settings.SUPABASE_URL,
                settings.SUPABASE_ANON_KEY,
                options=AsyncClientOptions(auto_refresh_token=False, persist_session=False),
            )
        return self._supabase_client

    async def close(self):
        """Gracefully close all open connections."""
        if self._openai_client:
            await self._openai_client.close()
        if self._openrouter_client:
            await self._openrouter_client.close()
        if self._http_client:
            await self._http_client.aclose()
        if self._engine:
            await self._engine.dispose()
        # Reset all
        self._engine = None; self._session_factory = None
        self._openai_client = None; self._openrouter_client = None
        self._http_client = None; self._supabase_client = None

def get_async_context() -> AsyncContext:
    loop = asyncio.get_running_loop()
    if (ctx := _contexts.get(loop)) is None:
        ctx = AsyncContext()
        _contexts[loop] = ctx
    return ctx

async def close_async_context():
    loop = asyncio.get_running_loop()
    if (ctx := _contexts.pop(loop, None)) is not None:
        await ctx.close()
