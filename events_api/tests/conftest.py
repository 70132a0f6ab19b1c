import fakeredis
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import Engine, StaticPool, create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.orm.session import Session

from events_api.database.db import Base, init_db, make_engine, make_session_factory
from events_api.main import create_app
from events_api.services.registrations import RegistrationService
from events_api.tests.factories import TEST_SETTINGS

# Use an in-memory SQLite database for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"
engine: Engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="session", autouse=True)
def setup_database():
    """Set up and tear down the database for the test session."""
    init_db(engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def clean_tables():
    yield
    with engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())


@pytest.fixture
def db_session():
    db: Session = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def fake_redis():
    return fakeredis.FakeRedis(server=fakeredis.FakeServer(), decode_responses=True)


@pytest.fixture
def redis_client(fake_redis):
    return fake_redis


@pytest.fixture
def service(redis_client) -> RegistrationService:
    return RegistrationService(TestingSessionLocal, redis_client)


@pytest.fixture
def client(service, redis_client):
    app = create_app(TEST_SETTINGS, service=service, redis_client=redis_client)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def file_service(tmp_path, redis_client) -> RegistrationService:
    """Service over a file database, so that threads get their own connections."""
    file_engine = make_engine(f"sqlite:///{tmp_path / 'race.db'}")
    init_db(file_engine)
    yield RegistrationService(make_session_factory(file_engine), redis_client)
    file_engine.dispose()
