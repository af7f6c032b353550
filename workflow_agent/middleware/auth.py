"""Caller credential handling for the assistant endpoints."""
from typing import Optional

from fastapi import HTTPException, Security, status
from fastapi.security import APIKeyHeader

AUTHORIZATION_HEADER = APIKeyHeader(name="Authorization", auto_error=False)

BASIC_PREFIX = "basic "


class AuthenticationError(Exception):
    """Raised when the workflow backend rejects the caller's credential."""


def credential_from_header(header_value: Optional[str]) -> Optional[str]:
    """
    Extract the workflow credential from an ``Authorization: Basic <credential>`` header.

    Other schemes are ignored so that they never reach the backend.
    """
    if not header_value:
        return None
    value = header_value.strip()
    if value.lower().startswith(BASIC_PREFIX):
        value = value[len(BASIC_PREFIX):].strip()
        return value or None
    return None


def resolve_credential(body_credential: Optional[str], header_value: Optional[str]) -> Optional[str]:
    """Body credential first, then the Authorization header."""
    if body_credential and body_credential.strip():
        return body_credential.strip()
    return credential_from_header(header_value)


async def get_authorization_header(
    authorization: Optional[str] = Security(AUTHORIZATION_HEADER),
) -> Optional[str]:
    """Raw Authorization header, left for resolve_credential to parse."""
    return authorization


def require_credential(credential: Optional[str]) -> str:
    """
    Reject the request before any backend or model call when no credential is present.

    Raises:
        HTTPException: 401 if the credential is missing
    """
    if not credential:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="A workflow credential is required. Send it as 'credential' in the body or as a Basic Authorization header.",
            headers={"WWW-Authenticate": "Basic"},
        )
    return credential
