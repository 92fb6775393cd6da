"""Shared fixtures for quill tests."""

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.orm import sessionmaker

TEST_CLERK_ID = "user_test_author"
OTHER_CLERK_ID = "user_test_reader"


@pytest.fixture(autouse=True)
def _reset_global_state():
    """Reset all module-level singletons and caches between tests."""
    yield

    # 1. Settings LRU cache
    from quill.config import get_settings

    get_settings.cache_clear()

    # 2. Engine and session factory singletons
    import quill.db as db_mod

    if db_mod._engine is not None:
        db_mod._engine.dispose()
    db_mod._engine = None
    db_mod._session_factory = None

    # 3. JWKS client singleton
    import quill.auth as auth_mod

    auth_mod._jwk_client = None

    # 4. Event bus
    import quill.services.events as events_mod

    events_mod._bus = None

    # 5. Health cache and dependency overrides
    import quill.main as main_mod

    main_mod._health_cache = None
    main_mod.app.dependency_overrides.clear()


@pytest.fixture
def mock_settings(monkeypatch):
    """Provide a Settings object with safe test defaults."""
    from quill.config import Settings, get_settings

    test_settings = Settings(
        _env_file=None,
        database_url="sqlite://",
        llm_provider="anthropic",
        anthropic_api_key="test-key",
        anthropic_model="claude-test",
        clerk_jwt_key="",
        clerk_jwks_url="https://clerk.test/.well-known/jwks.json",
        design_timeout_seconds=5.0,
        design_max_retries=1,
        design_retry_backoff=0.0,
    )

    get_settings.cache_clear()
    monkeypatch.setattr("quill.config.get_settings", lambda: test_settings)

    # Patch get_settings in all modules that import it directly
    # (from quill.config import get_settings creates a local binding that
    # the quill.config monkeypatch above does not affect)
    for mod_path in [
        "quill.db",
        "quill.auth",
        "quill.main",
        "quill.services.llm",
        "quill.services.ai_designer",
        "quill.routers.website",
    ]:
        monkeypatch.setattr(f"{mod_path}.get_settings", lambda: test_settings)

    return test_settings


@pytest.fixture
def engine(mock_settings):
    """In-memory SQLite engine installed as the application's engine."""
    import quill.db as db_mod

    test_engine = db_mod.create_db_engine("sqlite://")
    db_mod.init_db(test_engine)
    db_mod._engine = test_engine
    db_mod._session_factory = sessionmaker(
        bind=test_engine, autoflush=False, expire_on_commit=False
    )
    return test_engine


@pytest.fixture
def db(engine):
    """A session on the test database; shares its connection with requests."""
    from quill.db import get_session_factory

    session = get_session_factory()()
    yield session
    session.close()


@pytest.fixture
def author(db):
    from quill.services.users import upsert_user

    return upsert_user(
        db,
        TEST_CLERK_ID,
        email="ada@example.com",
        username="ada",
        first_name="Ada",
        last_name="Lovelace",
    )


@pytest.fixture
def reader(db):
    from quill.services.users import upsert_user

    return upsert_user(db, OTHER_CLERK_ID, email="grace@example.com", username="grace")


@pytest.fixture
def make_post(db, author):
    """Factory creating posts through the service layer."""
    from quill.models.post import PostCreate
    from quill.services.posts import create_post

    def _make(user=None, **fields):
        fields.setdefault("title", "A Post About Things")
        fields.setdefault("content", "<p>Some words in a post.</p>")
        return create_post(db, user or author, PostCreate(**fields))

    return _make


@pytest.fixture
def login():
    """Authenticate requests as the given Clerk user id (None to log out)."""
    from quill.auth import get_clerk_user_id, get_optional_clerk_user_id
    from quill.main import app

    def _login(clerk_user_id: str | None = TEST_CLERK_ID):
        if clerk_user_id is None:
            app.dependency_overrides.pop(get_clerk_user_id, None)
            app.dependency_overrides[get_optional_clerk_user_id] = lambda: None
            return
        app.dependency_overrides[get_clerk_user_id] = lambda: clerk_user_id
        app.dependency_overrides[get_optional_clerk_user_id] = lambda: clerk_user_id

    return _login


@pytest.fixture
async def client(engine):
    from quill.main import app

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
