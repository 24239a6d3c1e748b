from unittest.mock import AsyncMock, Mock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from social_bot.database import Base, get_db
from social_bot.main import app
from social_bot.services.context_store import ConversationContextStore
from social_bot.services.live_service import LiveBroadcaster
from social_bot.services.llm import LLMResponse
from social_bot.services.pipeline import ReplyPipeline, get_pipeline
from social_bot.services.platform_client import PlatformClient
from social_bot.services.product_catalog import Product, ProductCatalog
from social_bot.services.reply_policy import ReplyPolicy
from tests.payloads import PAGE_ID, PAGE_TOKEN


@pytest.fixture
def db_session():
    """In-memory SQLite session with the schema created."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def catalog():
    return ProductCatalog(
        [
            Product(type="sofa", size="large", price=1200),
            Product(type="Pillow", size="Small", price=250),
        ]
    )


@pytest.fixture
def context_store():
    return ConversationContextStore()


@pytest.fixture
def llm():
    provider = Mock()
    provider.generate.return_value = LLMResponse(content="AI reply", model="test-model")
    return provider


@pytest.fixture
def reply_policy(catalog, context_store, llm):
    return ReplyPolicy(catalog, context_store, lambda: llm)


@pytest.fixture
def broadcaster():
    live = LiveBroadcaster()
    live.broadcast = AsyncMock(return_value=1)
    return live


@pytest.fixture
def platform_client():
    client = Mock(spec=PlatformClient)
    client.send_text = AsyncMock(return_value={"message_id": "m1"})
    client.send_attachment = AsyncMock(return_value={"message_id": "m2"})
    client.fetch_user_name = AsyncMock(return_value="Rahim")
    return client


@pytest.fixture
def client_factory(platform_client):
    return Mock(return_value=platform_client)


@pytest.fixture
def pipeline(reply_policy, broadcaster, client_factory, tmp_path):
    return ReplyPipeline(
        page_tokens={PAGE_ID: PAGE_TOKEN},
        reply_policy=reply_policy,
        broadcaster=broadcaster,
        client_factory=client_factory,
        upload_dir=str(tmp_path / "uploads"),
        public_base_url="https://bot.example.com",
    )


@pytest.fixture
def api_client(db_session, pipeline):
    app.dependency_overrides[get_db] = lambda: db_session
    app.dependency_overrides[get_pipeline] = lambda: pipeline
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
