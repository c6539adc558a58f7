import os

# Settings are read at import time; point everything at local test doubles first.
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["AUTO_CREATE_TABLES"] = "false"
os.environ["LANGFLOW_URL"] = "http://langflow.test"
os.environ["SECRET_KEY"] = "test-secret"
os.environ["ANTHROPIC_API_KEY"] = "test-anthropic-key"
os.environ["OPENAI_API_KEY"] = "test-openai-key"
os.environ.pop("REDIS_URL", None)
os.environ.pop("LANGFLOW_API_KEY", None)

import random
from typing import AsyncGenerator

import httpx
import pytest
import pytest_asyncio
import respx
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from flowsmith.api.deps import get_generation_service, get_langflow_client, get_sync_service
from flowsmith.core.security import create_access_token
from flowsmith.database import Base, get_db
from flowsmith.graph.builder import PlanBuilder
from flowsmith.integrations.langflow_client import LangflowClient
from flowsmith.main import app
from flowsmith.models import profile, workflow  # noqa: F401
from flowsmith.services.generation_guard import InMemoryGenerationGuard
from flowsmith.services.generation_service import GenerationService
from flowsmith.services.sequencer import RequestSequencer
from flowsmith.services.sync_service import SyncService

BUILDER_URL = "http://langflow.test"

WEB_SEARCH_PLAN = {
    "name": "Web Search Assistant",
    "description": "Answers questions using live web results",
    "components": [
        {"type": "ChatInput", "id_suffix": "inp01"},
        {"type": "WebSearchComponent", "id_suffix": "web02"},
        {"type": "LanguageModelComponent", "id_suffix": "llm03"},
        {"type": "Agent", "id_suffix": "agt04"},
        {"type": "ChatOutput", "id_suffix": "out05"},
    ],
    "connections": [
        {"from": "ChatInput-inp01", "from_output": "message", "to": "Agent-agt04", "to_input": "input_value"},
        {"from": "WebSearchComponent-web02", "from_output": "component_as_tool", "to": "Agent-agt04", "to_input": "tools"},
        {"from": "LanguageModelComponent-llm03", "from_output": "model_output", "to": "Agent-agt04", "to_input": "agent_llm"},
        {"from": "Agent-agt04", "from_output": "response", "to": "ChatOutput-out05", "to_input": "input_value"},
    ],
}

@pytest.fixture
def web_search_plan():
    return WEB_SEARCH_PLAN

@pytest.fixture
def sample_graph():
    return PlanBuilder(rng=random.Random(7)).build(WEB_SEARCH_PLAN)

@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()

@pytest_asyncio.fixture
async def db_session(engine) -> AsyncGenerator[AsyncSession, None]:
    session_factory = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session

@pytest_asyncio.fixture
async def http_client():
    async with httpx.AsyncClient() as client:
        yield client

@pytest.fixture
def builder_api():
    with respx.mock(base_url=BUILDER_URL, assert_all_called=False) as mock:
        yield mock

@pytest.fixture
def langflow_client(http_client):
    return LangflowClient(base_url=BUILDER_URL, api_key="", timeout=5.0, client=http_client)

@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {create_access_token('user-1', username='alice')}"}

@pytest.fixture
def other_auth_headers():
    return {"Authorization": f"Bearer {create_access_token('user-2', username='bob')}"}

@pytest_asyncio.fixture
async def api_client(engine, langflow_client) -> AsyncGenerator[AsyncClient, None]:
    session_factory = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_langflow_client] = lambda: langflow_client
    app.dependency_overrides[get_sync_service] = lambda: SyncService(langflow_client, RequestSequencer())
    app.dependency_overrides[get_generation_service] = lambda: GenerationService(guard=InMemoryGenerationGuard())

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
