"""
Module for providing an API router which defines routes for reporting on the items across all equipment pools and on
the requests made for them using the `ReportService` service.
"""

import logging
from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status
from pydantic import AwareDatetime

from police_equipment_pool_api.core.exceptions import InvalidActionError
from police_equipment_pool_api.schemas.report import (
    DashboardSchema,
    IssuedItemSchema,
    MaintenanceItemSchema,
    OfficerUsageSchema,
    RequestSummarySchema,
    StatusSummarySchema,
)
from police_equipment_pool_api.services.report import ReportService

logger = logging.getLogger()

router = APIRouter(prefix="/v1/reports", tags=["reports"])

ReportServiceDep = Annotated[ReportService, Depends(ReportService)]


@router.get(
    path="/issued-items",
    summary="Get all items currently issued to officers",
    response_description="List of issued items",
)
def get_issued_items(report_service: ReportServiceDep) -> List[IssuedItemSchema]:
    # pylint: disable=missing-function-docstring
    logger.info("Getting all issued items")
    return report_service.issued_items()


@router.get(
    path="/maintenance-items",
    summary="Get all items in maintenance or pending a loss investigation",
    response_description="List of items needing attention",
)
def get_maintenance_items(report_service: ReportServiceDep) -> List[MaintenanceItemSchema]:
    # pylint: disable=missing-function-docstring
    logger.info("Getting all items in maintenance")
    return report_service.maintenance_items()


@router.get(
    path="/officers/{officer_id}/history",
    summary="Get the equipment usage history of an officer",
    response_description="List of custody periods of the officer",
)
def get_officer_history(
    officer_id: Annotated[str, Path(description="The service number of the officer")],
    report_service: ReportServiceDep,
) -> List[OfficerUsageSchema]:
    # pylint: disable=missing-function-docstring
    logger.info("Getting usage history of officer %s", officer_id)
    return report_service.officer_history(officer_id)


@router.get(
    path="/status-summary",
    summary="Get the number of items in each status",
    response_description="Item counts by status across all equipment pools",
)
def get_status_summary(report_service: ReportServiceDep) -> StatusSummarySchema:
    # pylint: disable=missing-function-docstring
    logger.info("Getting item status summary")
    return report_service.status_summary()


@router.get(
    path="/dashboard",
    summary="Get an overview of the equipment pools and pending requests",
    response_description="Equipment and request totals",
)
def get_dashboard(report_service: ReportServiceDep) -> DashboardSchema:
    # pylint: disable=missing-function-docstring
    logger.info("Getting the dashboard")
    return report_service.dashboard()


@router.get(
    path="/request-summary",
    summary="Get the number of requests in each status made within a period",
    response_description="Request counts by status",
)
def get_request_summary(
    report_service: ReportServiceDep,
    start_date: Annotated[
        Optional[AwareDatetime], Query(description="The start of the period (defaults to 30 days before its end)")
    ] = None,
    end_date: Annotated[Optional[AwareDatetime], Query(description="The end of the period (defaults to now)")] = None,
) -> RequestSummarySchema:
    # pylint: disable=missing-function-docstring
    logger.info("Getting request summary")
    logger.debug("Period: %s to %s", start_date, end_date)
    try:
        return report_service.request_summary(start_date, end_date)
    except InvalidActionError as exc:
        message = "The start date must not be after the end date"
        logger.exception(message)
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_CONTENT, detail=message) from exc
