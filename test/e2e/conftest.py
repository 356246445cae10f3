"""
Module providing test fixtures for the e2e tests.
"""

from test.conftest import VALID_ACCESS_TOKEN
from test.mock_data import EQUIPMENT_POOL_POST_DATA_GLOCK
from typing import Optional

import pymongo
import pytest
from fastapi.testclient import TestClient
from httpx import Response
from pymongo.errors import PyMongoError

from police_equipment_pool_api.core.database import get_database
from police_equipment_pool_api.main import app


@pytest.fixture(name="database_available", scope="session")
def fixture_database_available() -> None:
    """
    Fixture that skips the e2e tests when the test database cannot be reached.
    """
    try:
        with pymongo.timeout(5):
            get_database().client.admin.command("ping")
    except PyMongoError as exc:
        pytest.skip(f"MongoDB is not reachable: {exc}")


@pytest.fixture(name="test_client")
def fixture_test_client() -> TestClient:
    """
    Fixture for creating a test client for the application.

    :return: The test client.
    """
    return TestClient(app, headers={"Authorization": f"Bearer {VALID_ACCESS_TOKEN}"})


@pytest.fixture(name="cleanup_database_collections", autouse=True)
def fixture_cleanup_database_collections(database_available):  # pylint: disable=unused-argument
    """
    Fixture to clean up the collections in the test database after each test.
    """
    database = get_database()
    yield
    database.equipment_pools.delete_many({})
    database.requests.delete_many({})


class E2ETestHelpers:
    """
    A utility class containing common helper methods for e2e tests

    This class provides a set of static methods that encapsulate common functionality frequently used in the e2e tests
    """

    @staticmethod
    def post_equipment_pool(test_client: TestClient, equipment_pool_post_data: Optional[dict] = None) -> str:
        """
        Posts an equipment pool and returns its ID.

        :param test_client: The test client.
        :param equipment_pool_post_data: Dictionary containing the equipment pool data as would be required for an
            `EquipmentPoolPostSchema` (defaults to the Glock pool).
        :return: ID of the created equipment pool.
        """
        response = test_client.post("/v1/pools", json=equipment_pool_post_data or EQUIPMENT_POOL_POST_DATA_GLOCK)
        assert response.status_code == 201
        return response.json()["id"]

    @staticmethod
    def check_failed_with_detail(response: Response, status_code: int, detail: str) -> None:
        """
        Checks that a response failed with the expected code and detail.

        :param response: The response.
        :param status_code: Expected status code to be returned.
        :param detail: Expected detail to be returned.
        """
        assert response.status_code == status_code
        assert response.json()["detail"] == detail
