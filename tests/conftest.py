"""Pytest fixtures for testing"""

import pytest
from typing import Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from fintrack.api.main import create_app
from fintrack.api.dependencies import get_file_storage
from fintrack.domain.scoring import RiskEstimator
from fintrack.infrastructure.database.models import Base
from fintrack.infrastructure.database.session import get_db
from fintrack.infrastructure.storage.files import FileStorage, LocalFileStorage
from fintrack.worker.loop import WorkerLoop


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def session_factory(db: Session):
    """Factory for independent sessions against the test database (as the worker opens them)"""
    return TestingSessionLocal


@pytest.fixture
def storage(tmp_path) -> FileStorage:
    """Upload storage rooted in a per-test temp directory"""
    return FileStorage(local=LocalFileStorage(str(tmp_path / "uploads")))


@pytest.fixture
def estimator() -> RiskEstimator:
    """Estimator with default weights, allowed countries and blacklist"""
    return RiskEstimator()


@pytest.fixture
def worker(session_factory, storage: FileStorage, estimator: RiskEstimator) -> WorkerLoop:
    """Worker loop wired to the test database and storage"""
    return WorkerLoop(session_factory, storage, estimator, batch_size=10, poll_interval=0.01)


@pytest.fixture
def client(db: Session, storage: FileStorage) -> TestClient:
    """Create FastAPI test client with test database"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_file_storage] = lambda: storage
    return TestClient(app)


@pytest.fixture
def bank_export_csv() -> bytes:
    """Bank export with decorated headers and currency-formatted amounts"""
    return (
        "\ufeffTransaction Date,AMOUNT (EUR),Merchant Name,Country\n"
        "2024-01-03 14:00,\"€1,250.50\",Cafe Central,Ireland\n"
        "2024-01-15 09:30,12.00,Corner Shop,Ireland\n"
        "2024-02-01T02:30:00Z,N/A,ScamShop Ltd,Narnia\n"
    ).encode("utf-8")
