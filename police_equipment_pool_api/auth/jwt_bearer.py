"""
Module for providing an implementation of the `JWTBearer` class.
"""

import logging
from typing import Optional

import jwt
from fastapi import HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from police_equipment_pool_api.core.config import config
from police_equipment_pool_api.core.consts import PUBLIC_KEY

logger = logging.getLogger()


class JWTBearer(HTTPBearer):
    """
    Extends the FastAPI `HTTPBearer` class to guard the pool, request and report routes with JSON Web Token (JWT)
    access tokens.

    The username carried by an accepted token is recorded on the request state as `username`.
    """

    async def __call__(self, request: Request) -> str:
        """
        Callable method for JWT access token authentication.

        :param request: The FastAPI `Request` object.
        :return: The JWT access token if authentication is successful.
        :raises HTTPException: If the supplied JWT access token is invalid, has expired or carries no username.
        """
        credentials: HTTPAuthorizationCredentials = await super().__call__(request)

        username = self._get_username(credentials.credentials)
        if username is None:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid token or expired token")

        logger.debug("Authenticated request from user %s", username)
        request.state.username = username
        return credentials.credentials

    def _get_username(self, access_token: str) -> Optional[str]:
        """
        Get the username from a JWT access token that was signed by the corresponding private key and has not expired.

        :param access_token: The JWT access token to check.
        :return: The username in the payload of the token, or `None` if the token can't be trusted or has none.
        """
        try:
            payload = jwt.decode(access_token, PUBLIC_KEY, algorithms=[config.authentication.jwt_algorithm])
        except jwt.InvalidTokenError:
            logger.exception("Error decoding JWT access token")
            return None

        return payload.get("username")
