import os
import tempfile

# Must be set before db.database creates its engine
_TEST_DB_DIR = tempfile.mkdtemp(prefix="arxiv-assistant-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_DB_DIR}/app.db"

from types import SimpleNamespace  # noqa: E402
from unittest.mock import AsyncMock, MagicMock  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from langchain_core.embeddings import DeterministicFakeEmbedding  # noqa: E402
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import NullPool  # noqa: E402

from arxiv_assistant.utils.config_loader import load_config  # noqa: E402
from db.models import Base  # noqa: E402


@pytest.fixture
def config():
    return load_config()


@pytest.fixture
def fake_model_loader(config):
    """ModelLoader stand-in: real config, LLMs supplied per test via `llms`."""
    llms = {}
    loader = SimpleNamespace(
        config=config,
        api_key_mgr=SimpleNamespace(get_optional=lambda key: None),
        llms=llms,
        load_llm=lambda role: llms[role],
        load_embeddings=lambda: DeterministicFakeEmbedding(size=32),
    )
    return loader


@pytest.fixture
def embeddings():
    return DeterministicFakeEmbedding(size=32)


@pytest.fixture
def session_factory(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", poolclass=NullPool)
    return engine, async_sessionmaker(engine, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    engine, factory = session_factory
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    async with factory() as session:
        yield session
    await engine.dispose()


@pytest.fixture
def mock_ingestor():
    ingestor = MagicMock()
    ingestor.process_paper = AsyncMock()
    return ingestor


@pytest.fixture
def mock_paper_qa():
    paper_qa = MagicMock()
    paper_qa.qa_over_paper = AsyncMock()
    return paper_qa
