"""
Pytest configuration and fixtures.
"""

import copy
import os
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.db.database import Base

# Import models to register with Base.metadata
from app.models import user  # noqa: F401


# Use test database URL from env, or default to SQLite in-memory
TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")


@pytest.fixture(scope="function")
def test_engine():
    """Create a test database engine."""
    if TEST_DATABASE_URL.startswith("sqlite"):
        engine = create_engine(
            TEST_DATABASE_URL,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            echo=False,
        )
    else:
        engine = create_engine(TEST_DATABASE_URL, echo=False)

    Base.metadata.create_all(bind=engine)

    yield engine

    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def test_db(test_engine):
    """Create a test database session."""
    TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)
    session = TestSessionLocal()

    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def valid_payload():
    """A registration payload that passes every rule."""
    return {
        "firstName": "  Ada ",
        "lastName": "Lovelace",
        "email": " Ada.Lovelace@Example.com ",
        "password": "Secur3Key",
        "confirmPassword": "Secur3Key",
        "dob": "1990-12-10",
        "gender": "female",
        "phoneNumber": "1234567890",
        "address": "12 St James's Square, London",
        "profilePicture": "https://cdn.example.com/ada.png",
        "paymentInformation": {
            "cardNumber": "4111111111111111",
            "cardHolderName": "Ada Lovelace",
            "expirationDate": "2030-01-31",
            "cvv": "123",
        },
        "securityQuestions": {
            "question1": "First pet?",
            "answer1": "Rex",
            "question2": "Home town?",
            "answer2": "London",
        },
        "termsAndConditions": True,
        "privacyPolicy": True,
        "interests": ["mathematics", "poetry"],
        "userIdentification": "P1234567",
        "additionalInfo": "Prefers email contact",
        "tokens": [{"token": "tok-1"}],
    }


@pytest.fixture
def other_payload(valid_payload):
    """A second valid payload with its own unique keys."""
    payload = copy.deepcopy(valid_payload)
    payload["email"] = "charles.babbage@example.com"
    payload["userIdentification"] = "P7654321"
    payload["firstName"] = "Charles"
    payload["lastName"] = "Babbage"
    return payload
