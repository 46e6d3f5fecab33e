from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import NullPool

from app.core.config import settings

# Override settings for tests
settings.app_env = "development"
settings.openai_api_key = "sk-test-fake-key"

from app.collectors.llm_base import BaseLlmCollector, LlmResponse  # noqa: E402
from app.collectors.registry import ProviderRegistry  # noqa: E402
from app.core.dependencies import get_recorder, get_registry  # noqa: E402
from app.db.base import Base  # noqa: E402
from app.db.sql_recorder import SqlRunRecorder  # noqa: E402
from app.main import app  # noqa: E402

CRM_RESPONSE = (
    "Salesforce is a leading CRM. HubSpot also offers CRM tools. Visit https://salesforce.com for details."
)


class FakeCollector(BaseLlmCollector):
    """Collector that answers every prompt with a canned text, without any HTTP."""

    provider = "openai"
    default_model = "fake-model"

    def __init__(self, text: str = CRM_RESPONSE, provider: str = "openai", error: Exception | None = None):
        super().__init__(api_key="fake-key")
        self.provider = provider
        self.text = text
        self.error = error
        self.prompts: list[str] = []

    async def query_llm(self, prompt: str) -> LlmResponse:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return LlmResponse(text=self.text, model=self.model, tokens=42)


@pytest.fixture
async def engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """Fresh SQLite database per test. NullPool so every session opens its own connection."""
    test_engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", poolclass=NullPool)
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
async def recorder(engine) -> SqlRunRecorder:
    return SqlRunRecorder(engine)


@pytest.fixture
def make_collector():
    """Factory for collectors with a custom response text or error."""
    return FakeCollector


@pytest.fixture
def fake_collector() -> FakeCollector:
    return FakeCollector()


@pytest.fixture
def registry(fake_collector) -> ProviderRegistry:
    return ProviderRegistry({"openai": fake_collector})


@pytest.fixture
async def client(registry, recorder) -> AsyncGenerator[AsyncClient, None]:
    app.dependency_overrides[get_registry] = lambda: registry
    app.dependency_overrides[get_recorder] = lambda: recorder
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()
