"""
Module for providing common test configuration and test fixtures.
"""

from datetime import datetime, timezone
from test.mock_data import EQUIPMENT_POOL_IN_DATA_GLOCK
from typing import List, Optional, Union
from unittest.mock import MagicMock, Mock, patch

import pytest
from bson import ObjectId

from police_equipment_pool_api.models.equipment_pool import EquipmentPoolIn, EquipmentPoolOut, ItemRecord
from police_equipment_pool_api.models.request import RequestOut
from police_equipment_pool_api.repositories.equipment_pool import EquipmentPoolRepo
from police_equipment_pool_api.repositories.request import RequestRepo
from police_equipment_pool_api.services.equipment_pool import EquipmentPoolService
from police_equipment_pool_api.services.report import ReportService
from police_equipment_pool_api.services.request import RequestService


@pytest.fixture(name="equipment_pool_repository_mock")
def fixture_equipment_pool_repository_mock() -> Mock:
    """
    Fixture to create a mock of the `EquipmentPoolRepo` dependency.

    :return: Mocked EquipmentPoolRepo instance.
    """
    return Mock(EquipmentPoolRepo)


@pytest.fixture(name="request_repository_mock")
def fixture_request_repository_mock() -> Mock:
    """
    Fixture to create a mock of the `RequestRepo` dependency.

    :return: Mocked RequestRepo instance.
    """
    return Mock(RequestRepo)


@pytest.fixture(name="equipment_pool_service")
def fixture_equipment_pool_service(equipment_pool_repository_mock: Mock) -> EquipmentPoolService:
    """
    Fixture to create an `EquipmentPoolService` instance with a mocked `EquipmentPoolRepo` dependency.

    :param equipment_pool_repository_mock: Mocked `EquipmentPoolRepo` instance.
    :return: `EquipmentPoolService` instance with the mocked dependency.
    """
    return EquipmentPoolService(equipment_pool_repository_mock)


@pytest.fixture(name="equipment_pool_service_mock")
def fixture_equipment_pool_service_mock() -> Mock:
    """
    Fixture to create a mock of the `EquipmentPoolService` dependency.

    :return: Mocked EquipmentPoolService instance.
    """
    return Mock(EquipmentPoolService)


@pytest.fixture(name="request_service")
def fixture_request_service(
    request_repository_mock: Mock, equipment_pool_repository_mock: Mock, equipment_pool_service_mock: Mock
) -> RequestService:
    """
    Fixture to create a `RequestService` instance with mocked `RequestRepo` and `EquipmentPoolRepo` dependencies and a
    mocked `EquipmentPoolService`.

    :param request_repository_mock: Mocked `RequestRepo` instance.
    :param equipment_pool_repository_mock: Mocked `EquipmentPoolRepo` instance.
    :param equipment_pool_service_mock: Mocked `EquipmentPoolService` instance.
    :return: `RequestService` instance with the mocked dependencies.
    """
    return RequestService(request_repository_mock, equipment_pool_repository_mock, equipment_pool_service_mock)


@pytest.fixture(name="report_service")
def fixture_report_service(equipment_pool_repository_mock: Mock, request_repository_mock: Mock) -> ReportService:
    """
    Fixture to create a `ReportService` instance with mocked `EquipmentPoolRepo` and `RequestRepo` dependencies.

    :param equipment_pool_repository_mock: Mocked `EquipmentPoolRepo` instance.
    :param request_repository_mock: Mocked `RequestRepo` instance.
    :return: `ReportService` instance with the mocked dependencies.
    """
    return ReportService(equipment_pool_repository_mock, request_repository_mock)


class ServiceTestHelpers:
    """
    A utility class containing common helper methods for the service tests.

    This class provides a set of static methods that encapsulate common functionality frequently used in the service
    tests.
    """

    @staticmethod
    def mock_create(repository_mock: Mock, repo_obj: Union[EquipmentPoolOut, RequestOut]) -> None:
        """
        Mock the `create` method of the repository mock to return a repository object.

        :param repository_mock: Mocked repository instance.
        :param repo_obj: The repository object to be returned by the `create` method.
        """
        repository_mock.create.return_value = repo_obj

    @staticmethod
    def mock_get(repository_mock: Mock, repo_obj: Union[EquipmentPoolOut, RequestOut, MagicMock, None]) -> None:
        """
        Mock the `get` method of the repository mock to return a specific repository object. Each call adds to the
        objects returned by successive calls.

        :param repository_mock: Mocked repository instance.
        :param repo_obj: The repository object to be returned by the `get` method.
        """
        if repository_mock.get.side_effect is None:
            repository_mock.get.side_effect = [repo_obj]
        else:
            repo_objs = list(repository_mock.get.side_effect)
            repo_objs.append(repo_obj)
            repository_mock.get.side_effect = repo_objs

    @staticmethod
    def mock_list(repository_mock: Mock, repo_objs: Union[List[EquipmentPoolOut], List[RequestOut], MagicMock]) -> None:
        """
        Mock the `list` method of the repository mock to return a specific list of repository objects.

        :param repository_mock: Mocked repository instance.
        :param repo_objs: The list of repository objects to be returned by the `list` method.
        """
        repository_mock.list.return_value = repo_objs


def build_equipment_pool_out(
    items: List[ItemRecord], pool_in_data: Optional[dict] = None, version: int = 0
) -> EquipmentPoolOut:
    """
    Build an equipment pool as it would be read from the database.

    :param items: The items of the pool.
    :param pool_in_data: Dictionary containing the pool data as would be required for an `EquipmentPoolIn` database
        model, without its items (defaults to the Glock pool).
    :param version: The version the pool was read at.
    :return: The equipment pool.
    """
    pool_in = EquipmentPoolIn(
        **(pool_in_data or EQUIPMENT_POOL_IN_DATA_GLOCK), items=items, total_quantity=len(items), version=version
    )
    return EquipmentPoolOut(**pool_in.model_dump(), id=ObjectId())


LIFECYCLE_FIXED_DATETIME_NOW = datetime(2025, 3, 1, 8, 0, 0, 0, tzinfo=timezone.utc)


@pytest.fixture(name="lifecycle_datetime_now_mock")
def fixture_lifecycle_datetime_now_mock():
    """
    Fixture that mocks the `datetime.now` method in the `police_equipment_pool_api.services.pool_lifecycle` module.
    """
    with patch("police_equipment_pool_api.services.pool_lifecycle.datetime") as mock_datetime:
        mock_datetime.now.return_value = LIFECYCLE_FIXED_DATETIME_NOW
        yield mock_datetime


MODEL_MIXINS_FIXED_DATETIME_NOW = datetime(2025, 2, 16, 14, 0, 0, 0, tzinfo=timezone.utc)


@pytest.fixture(name="model_mixins_datetime_now_mock")
def fixture_model_mixins_datetime_now_mock():
    """
    Fixture that mocks the `datetime.now` method in the `police_equipment_pool_api.models.mixins` module.
    """
    with patch("police_equipment_pool_api.models.mixins.datetime") as mock_datetime:
        mock_datetime.now.return_value = MODEL_MIXINS_FIXED_DATETIME_NOW
        yield mock_datetime
