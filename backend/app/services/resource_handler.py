"""Shared request handling for resource operations.

Every asset operation runs through `ResourceHandler.run`, which owns the
outcome-to-envelope mapping. What differs per operation lives in its
`OperationPolicy`.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from starlette.responses import Response

from app.core.errors import (
    Conflict,
    ConnectionFailure,
    ConstraintViolation,
    NotFound,
    PersistenceError,
    ValidationFailure,
)
from app.core.responses import empty_response, error_response, success_response, validation_error_response


log = logging.getLogger(__name__)

DATABASE_ERROR_MESSAGE = "Database error occurred"


@dataclass(frozen=True)
class OperationPolicy:
    name: str
    success_status: int = 200
    # Idempotent operations answer with an empty body.
    idempotent: bool = False
    failure_message: str = "Request failed"


CREATE = OperationPolicy(name="create", success_status=201, failure_message="Failed to create asset")
GET = OperationPolicy(name="get", failure_message="Failed to get asset")
LIST = OperationPolicy(name="list", failure_message="Failed to list assets")
UPDATE = OperationPolicy(name="update", failure_message="Failed to update asset")
DELETE = OperationPolicy(name="delete", success_status=204, idempotent=True, failure_message="Failed to delete asset")


def require_path_id(value: str | None) -> str:
    asset_id = (value or "").strip()
    if not asset_id:
        raise ValidationFailure("Asset ID is required", "id")
    return asset_id


class ResourceHandler:
    def __init__(self, resource: str = "asset") -> None:
        self.resource = resource

    def run(self, policy: OperationPolicy, operation: Callable[[], Any]) -> Response:
        try:
            payload = operation()
        except ValidationFailure as e:
            log.info("%s %s rejected field=%s message=%s", self.resource, policy.name, e.field, e.message)
            return validation_error_response(e.message, e.field)
        except NotFound as e:
            return error_response(str(e) or f"{self.resource.capitalize()} not found", 404)
        except Conflict as e:
            return error_response(str(e) or "Conflict", 409)
        except ConstraintViolation as e:
            log.warning("%s %s constraint violation: %r", self.resource, policy.name, e.cause)
            return validation_error_response("Validation failed")
        except ConnectionFailure as e:
            log.error("%s %s connection failure: %r", self.resource, policy.name, e.cause)
            return error_response(DATABASE_ERROR_MESSAGE, 500)
        except PersistenceError as e:
            log.error("%s %s storage failure: %r", self.resource, policy.name, e.cause)
            return error_response(DATABASE_ERROR_MESSAGE, 500)
        except Exception:
            log.exception("%s %s failed", self.resource, policy.name)
            return error_response(policy.failure_message, 500)

        if policy.idempotent:
            return empty_response(policy.success_status)
        return success_response(payload, policy.success_status)
