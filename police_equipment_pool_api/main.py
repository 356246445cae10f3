"""
Main module contains the API entrypoint.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request, status
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from police_equipment_pool_api.core.config import config
from police_equipment_pool_api.core.database import ensure_indexes, get_database
from police_equipment_pool_api.core.logger_setup import setup_logger
from police_equipment_pool_api.routers.v1 import equipment_pool, report, request

setup_logger()
logger = logging.getLogger()
logger.info("Logging now setup")


@asynccontextmanager
async def lifespan(_: FastAPI):
    """
    Prepares the database before the API starts serving requests.

    :param _: Unused
    """
    if config.database.create_indexes_on_startup:
        ensure_indexes(get_database())
    yield


app = FastAPI(
    title=config.api.title, description=config.api.description, root_path=config.api.root_path, lifespan=lifespan
)


@app.exception_handler(Exception)
async def custom_general_exception_handler(_: Request, exc: Exception) -> JSONResponse:
    """
    Custom exception handler for FastAPI to handle uncaught exceptions. It logs the error and returns an appropriate
    response.

    :param _: Unused
    :param exc: The exception object that triggered this handler.
    :return: A JSON response indicating that something went wrong.
    """
    logger.exception(exc)
    return JSONResponse(content={"detail": "Something went wrong"}, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)


@app.exception_handler(RequestValidationError)
async def custom_validation_exception_handler(request_: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Custom exception handler for FastAPI to handle `RequestValidationError`.

    Logs the validation error, e.g. a Lost request without its FIR details, and then defers to
    `request_validation_exception_handler` to return the usual 422 response.

    :param request_: The incoming HTTP request that caused the validation error.
    :param exc: The exception object representing the validation error.
    :return: A JSON response with validation error details.
    """
    logger.exception(exc)
    return await request_validation_exception_handler(request_, exc)


def get_router_dependencies() -> list:
    """
    Get the list of dependencies for the API routers.
    :return: List of dependencies
    """
    dependencies = []
    # Include the `JWTBearer` as a dependency if authentication is enabled
    if config.authentication.enabled is True:
        # pylint:disable=import-outside-toplevel
        from police_equipment_pool_api.auth.jwt_bearer import JWTBearer

        dependencies.append(Depends(JWTBearer()))
    return dependencies


app.add_middleware(
    CORSMiddleware,
    allow_origins=config.api.allowed_cors_origins,
    allow_credentials=True,
    allow_methods=config.api.allowed_cors_methods,
    allow_headers=config.api.allowed_cors_headers,
)

router_dependencies = get_router_dependencies()

app.include_router(equipment_pool.router, dependencies=router_dependencies)
app.include_router(request.router, dependencies=router_dependencies)
app.include_router(report.router, dependencies=router_dependencies)


@app.get("/")
def read_root():
    """
    Root endpoint for the API.
    """
    return {"Title": "Police Equipment Pool API"}
