"""
Fixtures compartidas para los tests de los módulos.

Se usa SQLite en memoria con un único pool de conexión; las variables de
entorno se fijan antes de importar la aplicación.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DEBUG", "false")

from uuid import uuid4

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.database.database import Base, get_db
from app.main import app as fastapi_app
from app.modules.categories.service import CategoryService


@pytest.fixture
def engine():
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture
def db_session(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def tenant_id():
    return uuid4()


@pytest.fixture
def category_service(db_session, tenant_id):
    return CategoryService.for_tenant(db_session, tenant_id)


@pytest.fixture
def client(db_session, tenant_id):
    def override_get_db():
        yield db_session

    fastapi_app.dependency_overrides[get_db] = override_get_db
    with TestClient(fastapi_app, headers={"X-Company-ID": str(tenant_id)}) as test_client:
        yield test_client
    fastapi_app.dependency_overrides.clear()
