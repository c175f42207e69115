import pytest

from fastapi.testclient import TestClient

from webvh.dependencies import get_storage
from webvh.plugins import LogStorage
from webvh.server import app
from tests.mock_agents import ControllerAgent, WitnessAgent


@pytest.fixture()
def controller():
    """Create a controller agent."""
    return ControllerAgent()


@pytest.fixture()
def witness():
    """Create a witness agent."""
    return WitnessAgent()


@pytest.fixture()
def storage(tmp_path):
    """Create a log storage in a temporary directory."""
    return LogStorage(str(tmp_path))


@pytest.fixture(scope="function")
def test_client(storage):
    """Create a test client."""
    app.dependency_overrides[get_storage] = lambda: storage
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
