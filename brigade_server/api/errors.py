# Copyright (C) 2024 Brigade Server Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Translate service errors into HTTP responses."""

import logging

from fastapi import Request, status
from fastapi.responses import JSONResponse

from brigade_server.errors import (
    AuditWriteError,
    BrigadeError,
    EmailInUseError,
    IdentityProviderError,
    InputValidationError,
    InvalidInviteError,
    InviteCodeConflictError,
    MigrationConflictError,
    NotFoundError,
    PartialSignupError,
    PermissionDeniedError,
    ProviderError,
    RoleAssignmentError,
)
from brigade_server.identity import describe_provider_error
from brigade_server.identity.base import CREDENTIAL_ERRORS, NETWORK_FAILURE

logger = logging.getLogger(__name__)


def error_status_and_body(exc: BrigadeError) -> tuple[int, dict]:
    if isinstance(exc, InputValidationError):
        return status.HTTP_422_UNPROCESSABLE_ENTITY, {
            "detail": "Please correct the highlighted fields.",
            "errors": exc.field_errors,
        }
    if isinstance(exc, InvalidInviteError):
        return status.HTTP_400_BAD_REQUEST, {
            "detail": InvalidInviteError.public_message,
            "errors": {"invite_code": InvalidInviteError.public_message},
        }
    if isinstance(exc, ProviderError):
        if isinstance(exc, EmailInUseError):
            return status.HTTP_409_CONFLICT, {"detail": str(exc), "errors": {"email": str(exc)}}
        if exc.code == NETWORK_FAILURE:
            return status.HTTP_502_BAD_GATEWAY, {"detail": describe_provider_error(exc.code)}
        return status.HTTP_400_BAD_REQUEST, {"detail": str(exc)}
    if isinstance(exc, IdentityProviderError):
        if exc.code in CREDENTIAL_ERRORS:
            return status.HTTP_401_UNAUTHORIZED, {"detail": describe_provider_error(exc.code)}
        if exc.code == NETWORK_FAILURE:
            return status.HTTP_502_BAD_GATEWAY, {"detail": describe_provider_error(exc.code)}
        return status.HTTP_400_BAD_REQUEST, {"detail": describe_provider_error(exc.code)}
    if isinstance(exc, (MigrationConflictError, InviteCodeConflictError, RoleAssignmentError)):
        return status.HTTP_409_CONFLICT, {"detail": str(exc)}
    if isinstance(exc, PermissionDeniedError):
        return status.HTTP_403_FORBIDDEN, {"detail": str(exc)}
    if isinstance(exc, NotFoundError):
        return status.HTTP_404_NOT_FOUND, {"detail": str(exc)}
    if isinstance(exc, PartialSignupError):
        return status.HTTP_500_INTERNAL_SERVER_ERROR, {
            "detail": "Your account was created but signup did not complete. Please contact an administrator.",
            "account_id": exc.account_id,
        }
    if isinstance(exc, AuditWriteError):
        return status.HTTP_500_INTERNAL_SERVER_ERROR, {"detail": "The change was saved but could not be logged."}
    return status.HTTP_400_BAD_REQUEST, {"detail": str(exc)}


async def brigade_error_handler(request: Request, exc: BrigadeError) -> JSONResponse:
    status_code, body = error_status_and_body(exc)
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=status_code, content=body)
