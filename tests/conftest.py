import pytest
import os
from datetime import date
from decimal import Decimal
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Set env before importing app components
os.environ["APP_ENV"] = "testing"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["SEED_DEFAULT_DATA"] = "false"

from perfeval.database import Base, get_db
from perfeval.main import app
from fastapi.testclient import TestClient

# SQLite in-memory database configuration
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session():
    """
    Fresh schema per test.

    Services commit and roll back on their own, so each test gets its own
    tables instead of an outer transaction that a service rollback would undo.
    """
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()

    yield session

    session.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def second_session(db_session):
    """An independent session on the same database, for concurrent writers."""
    session = TestingSessionLocal()
    yield session
    session.close()


@pytest.fixture(scope="function")
def department(db_session):
    from perfeval.models.department import Department
    department = Department(name="Engineering")
    db_session.add(department)
    db_session.commit()
    return department


@pytest.fixture(scope="function")
def job_role(db_session):
    from perfeval.models.job_role import JobRole
    role = JobRole(name="Developer")
    db_session.add(role)
    db_session.commit()
    return role


@pytest.fixture(scope="function")
def evaluator(db_session, department):
    from perfeval.models.user import User, SystemRole
    user = User(
        email="lead@example.com",
        first_name="Dana",
        last_name="Lead",
        system_role=SystemRole.EVALUATOR,
        department_id=department.id,
    )
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope="function")
def employee(db_session, department, job_role):
    from perfeval.models.user import User, SystemRole
    user = User(
        email="dev@example.com",
        first_name="Sam",
        last_name="Dev",
        system_role=SystemRole.EMPLOYEE,
        department_id=department.id,
        job_role_id=job_role.id,
    )
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope="function")
def categories(db_session):
    """
    Two active categories totalling 100%:
    Technical (60%) with two criteria, Communication (40%) with one.
    """
    from perfeval.models.criteria import Criteria
    from perfeval.models.criteria_category import CriteriaCategory

    technical = CriteriaCategory(name="Technical", weight=Decimal("60.00"), is_active=True)
    technical.criteria = [
        Criteria(name="Code quality", is_active=True),
        Criteria(name="Problem solving", is_active=True),
    ]
    communication = CriteriaCategory(name="Communication", weight=Decimal("40.00"), is_active=True)
    communication.criteria = [Criteria(name="Collaboration", is_active=True)]

    db_session.add_all([technical, communication])
    db_session.commit()
    return {"technical": technical, "communication": communication}


@pytest.fixture(scope="function")
def criteria_ids(categories):
    """[code quality, problem solving, collaboration]"""
    technical = categories["technical"]
    communication = categories["communication"]
    return [technical.criteria[0].id, technical.criteria[1].id, communication.criteria[0].id]


@pytest.fixture(scope="function")
def evaluation(db_session, evaluator, employee, categories):
    from perfeval.schemas.evaluation import EvaluationCreate
    from perfeval.services import evaluation_service
    return evaluation_service.create_evaluation(
        db_session,
        EvaluationCreate(
            evaluator_id=evaluator.id,
            employee_id=employee.id,
            period="2025-H1",
            start_date=date(2025, 1, 1),
            end_date=date(2025, 6, 30),
        ),
    )


@pytest.fixture(scope="function")
def client(db_session):
    """Get a TestClient that uses the test database session via dependency override."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
