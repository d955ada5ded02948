import inspect
import os
from collections.abc import Callable
from unittest.mock import MagicMock

# Configure before the application modules read settings at import time.
os.environ.setdefault("ENV_NAME", "test")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SESSION_SECRET_KEY", "test-secret-key")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import anyio  # noqa: E402
import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlmodel import Session, SQLModel, create_engine  # noqa: E402
from sqlmodel.pool import StaticPool  # noqa: E402

import shopcore.models  # noqa: E402, F401
from shopcore.auth.passwords import hash_password  # noqa: E402
from shopcore.auth.rate_limit import limiter  # noqa: E402
from shopcore.core.email import Mailer, get_mailer  # noqa: E402
from shopcore.core.settings import Settings, get_settings  # noqa: E402
from shopcore.db.engine import get_session  # noqa: E402
from shopcore.main import app  # noqa: E402
from shopcore.user.models import User, UserRole, UserStatus  # noqa: E402

TEST_PASSWORD = "Secret123"


def pytest_configure(config: pytest.Config) -> None:
    # Tests use @pytest.mark.asyncio, but we intentionally rely on anyio.
    config.addinivalue_line(
        "markers",
        "asyncio: run async tests using anyio (project-local hook)",
    )


@pytest.hookimpl(tryfirst=True)
def pytest_pyfunc_call(pyfuncitem: pytest.Function) -> bool | None:
    """Run @pytest.mark.asyncio tests with anyio.

    This avoids adding an external pytest-asyncio dependency.
    """
    if pyfuncitem.get_closest_marker("asyncio") is None:
        return None

    test_func = pyfuncitem.obj
    if not inspect.iscoroutinefunction(test_func):
        return None

    funcargs = {
        name: pyfuncitem.funcargs[name] for name in pyfuncitem._fixtureinfo.argnames
    }

    async def _run_async_test() -> None:
        await test_func(**funcargs)

    anyio.run(_run_async_test)
    return True


@pytest.fixture(autouse=True)
def reset_rate_limits():
    """Rate-limit counters are process-wide; start every test from zero."""
    limiter.reset()
    yield
    limiter.reset()


@pytest.fixture(name="engine")
def engine_fixture():
    """Create an in-memory SQLite database for testing."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture(name="session")
def session_fixture(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture(name="test_settings")
def test_settings_fixture():
    """Settings used by every overridden dependency."""
    return Settings(
        env_name="test",
        database_url="sqlite://",
        session_secret_key="test-secret-key",
        bcrypt_rounds=4,
        resend_api_key="re_test_key",
        email_from="ShopCore CMS <noreply@example.com>",
        client_url="http://localhost:3000",
    )


@pytest.fixture(name="mock_mailer")
def mock_mailer_fixture():
    """Mailer double; its async send methods are AsyncMocks."""
    mailer = MagicMock(spec=Mailer)
    mailer.send_password_reset.return_value = "email-id"
    mailer.send_email_verification.return_value = "email-id"
    return mailer


@pytest.fixture(name="make_user")
def make_user_fixture(session: Session) -> Callable[..., User]:
    """Factory persisting a user whose password is TEST_PASSWORD by default."""

    def _make_user(
        email: str = "user@example.com",
        name: str = "Test User",
        password: str = TEST_PASSWORD,
        role: UserRole = UserRole.customer,
        status: UserStatus = UserStatus.active,
        **fields,
    ) -> User:
        user = User(
            email=email,
            name=name,
            password_hash=hash_password(password, rounds=4),
            role=role,
            status=status,
            **fields,
        )
        session.add(user)
        session.commit()
        session.refresh(user)
        return user

    return _make_user


@pytest.fixture(name="test_user")
def test_user_fixture(make_user) -> User:
    return make_user(email="test@example.com", name="Test User")


@pytest.fixture(name="inactive_user")
def inactive_user_fixture(make_user) -> User:
    return make_user(
        email="inactive@example.com", name="Inactive User", status=UserStatus.inactive
    )


@pytest.fixture(name="staff_user")
def staff_user_fixture(make_user) -> User:
    return make_user(email="staff@example.com", name="Staff User", role=UserRole.staff)


@pytest.fixture(name="admin_user")
def admin_user_fixture(make_user) -> User:
    return make_user(email="admin@example.com", name="Admin User", role=UserRole.admin)


@pytest.fixture(name="client")
def client_fixture(session: Session, test_settings: Settings, mock_mailer: MagicMock):
    """Create a test client with overridden dependencies."""
    app.dependency_overrides[get_session] = lambda: session
    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[get_mailer] = lambda: mock_mailer

    client = TestClient(app)
    yield client

    app.dependency_overrides.clear()


@pytest.fixture(name="csrf_headers")
def csrf_headers_fixture() -> Callable[[TestClient], dict[str, str]]:
    """Fetch a CSRF token (setting the secret cookie) and build the header."""

    def _csrf_headers(client: TestClient) -> dict[str, str]:
        response = client.get("/auth/csrf-token")
        assert response.status_code == 200
        return {"X-CSRF-Token": response.json()["data"]["csrf_token"]}

    return _csrf_headers


@pytest.fixture(name="login")
def login_fixture() -> Callable[..., dict]:
    """Log a client in and return the response body."""

    def _login(client: TestClient, email: str, password: str = TEST_PASSWORD) -> dict:
        response = client.post(
            "/auth/login", json={"email": email, "password": password}
        )
        assert response.status_code == 200, response.text
        return response.json()

    return _login
