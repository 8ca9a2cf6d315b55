from uuid import uuid4

import pytest
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient

import main


@pytest.fixture
def database():
    return AsyncMongoMockClient()[f"expense_tracker_{uuid4().hex}"]


@pytest.fixture
def expenses_collection(database):
    return database["expenses"]


@pytest.fixture
def budget_collection(database):
    return database["budgets"]


@pytest.fixture
def connected_app(expenses_collection, budget_collection):
    # Skip the lifespan and hand the in-memory collections to the app directly
    main.app_state["expenses_collection"] = expenses_collection
    main.app_state["budget_collection"] = budget_collection
    yield main.app
    main.app_state.clear()


@pytest.fixture
def api(connected_app):
    return TestClient(connected_app)
