"""
Module for the overall configuration for the application.
"""

from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator
from pydantic_core.core_schema import ValidationInfo
from pydantic_settings import BaseSettings, SettingsConfigDict


class APIConfig(BaseModel):
    """
    Configuration model for the API.
    """

    title: str = "Police Equipment Pool API"
    description: str = "This is the API for tracking police equipment pools, custody and maintenance"
    root_path: str = ""  # (If using a proxy) The path prefix handled by a proxy that is not seen by the app.
    allowed_cors_headers: List[str] = ["*"]
    allowed_cors_origins: List[str] = ["*"]
    allowed_cors_methods: List[str] = ["*"]


class AuthenticationConfig(BaseModel):
    """
    Configuration model for the JWT access token authentication/authorization.
    """

    enabled: bool = False
    public_key_path: Optional[str] = Field(default=None, validate_default=True)
    jwt_algorithm: Optional[str] = Field(default=None, validate_default=True)

    @field_validator("public_key_path", "jwt_algorithm")
    @classmethod
    def validate_optional_fields(cls, field_value: str, info: ValidationInfo) -> Optional[str]:
        """
        Validator for the `public_key_path` and `jwt_algorithm` fields to make them mandatory if the value of the
        `enabled` is `True`

        :param field_value: The value of the field.
        :param info: Validation info from pydantic.
        :raises ValueError: If no value is provided for the field when `enabled` is set to `True`.
        :return: The value of the field.
        """
        if ("enabled" in info.data and info.data["enabled"] is True) and field_value is None:
            raise ValueError("Field required")
        return field_value


class DatabaseConfig(BaseModel):
    """
    Configuration model for the database.

    The defaults match the single node replica set started by `scripts/dev_cli.py db-init`.
    """

    protocol: SecretStr = SecretStr("mongodb")
    username: SecretStr = SecretStr("root")
    password: SecretStr = SecretStr("example")
    host_and_options: SecretStr = SecretStr("localhost:27017/?authMechanism=SCRAM-SHA-256&replicaSet=rs0")
    name: SecretStr = SecretStr("police_equipment")
    create_indexes_on_startup: bool = True

    model_config = ConfigDict(hide_input_in_errors=True)


class LifecycleConfig(BaseModel):
    """
    Configuration model for the pool lifecycle operations.
    """

    # Number of times an operation is re-applied to a freshly loaded pool when another writer got there first
    max_write_attempts: int = Field(default=3, ge=1)
    default_issue_purpose: str = "Regular Duty"


class Config(BaseSettings):
    """
    Overall configuration model for the application.

    It includes attributes for the API, authentication, database and lifecycle configurations. The class inherits from
    `BaseSettings` and automatically reads environment variables. If values are not passed in form of system environment
    variables at runtime, it will attempt to read them from the .env file.
    """

    api: APIConfig = APIConfig()
    authentication: AuthenticationConfig = AuthenticationConfig()
    database: DatabaseConfig = DatabaseConfig()
    lifecycle: LifecycleConfig = LifecycleConfig()
    model_config = SettingsConfigDict(
        env_file=Path(__file__).parent.parent / ".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        hide_input_in_errors=True,
    )


config = Config()
