import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel, create_engine
from sqlmodel.pool import StaticPool

from herdbook.auth import hash_password
from herdbook.database import get_session
from herdbook.main import app
from herdbook.models.user import User

ADMIN_EMAIL = "admin@herdbook.local"
ADMIN_PASSWORD = "admin-pass-123"
USER_EMAIL = "hand@herdbook.local"
USER_PASSWORD = "user-pass-123"


@pytest.fixture(autouse=True)
def _fast_hashing(monkeypatch):
    """Lowest bcrypt cost so the suite stays quick."""
    monkeypatch.setattr("herdbook.config.settings.bcrypt_rounds", 4)


@pytest.fixture(name="session")
def session_fixture():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        # Seed admin user
        admin = User(
            email=ADMIN_EMAIL,
            password_hash=hash_password(ADMIN_PASSWORD),
            full_name="Farm Admin",
            role="admin",
        )
        session.add(admin)
        session.commit()
        yield session


@pytest.fixture(name="client")
def client_fixture(session: Session):
    def get_session_override():
        yield session

    app.dependency_overrides[get_session] = get_session_override
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


@pytest.fixture
def admin_token(client: TestClient) -> str:
    response = client.post(
        "/auth/login",
        json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD},
    )
    return response.json()["token"]


@pytest.fixture
def regular_user(session: Session) -> User:
    user = User(
        email=USER_EMAIL,
        password_hash=hash_password(USER_PASSWORD),
        full_name="Farm Hand",
        role="user",
    )
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


@pytest.fixture
def user_token(client: TestClient, regular_user: User) -> str:
    response = client.post(
        "/auth/login",
        json={"email": USER_EMAIL, "password": USER_PASSWORD},
    )
    return response.json()["token"]

