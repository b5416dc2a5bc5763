from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Iterable

from app.core.errors import ForbiddenFieldMutation, ValidationFailure
from app.models.asset import ASSET_CATEGORIES


NAME_MAX = 255
OWNER_ID_MAX = 255
DESCRIPTION_MAX = 5000
IMAGE_KEY_MAX = 500

UPDATABLE_FIELDS = ("name", "description", "category", "imageKey")


def require_string(value: Any, field: str) -> str:
    if not value or not isinstance(value, str) or value.strip() == "":
        raise ValidationFailure(f"{field} is required", field)
    return value.strip()


def optional_string(value: Any, field: str | None = None) -> str | None:
    if not value:
        return None
    if not isinstance(value, str):
        raise ValidationFailure("Invalid string value", field)
    return value.strip() or None


def require_enum(value: Any, field: str, allowed: Iterable[str]) -> str:
    choices = [str(a) for a in allowed]
    if not value or not isinstance(value, str):
        raise ValidationFailure(f"{field[:1].upper()}{field[1:]} is required", field)

    wanted = value.strip().lower()
    for choice in choices:
        if choice.lower() == wanted:
            return choice
    raise ValidationFailure(f"Invalid {field}. Must be one of: {', '.join(choices)}", field)


def require_length(value: str, field: str, min_len: int, max_len: int) -> None:
    if len(value) < min_len:
        raise ValidationFailure(f"{field} must be at least {min_len} characters", field)
    if len(value) > max_len:
        raise ValidationFailure(f"{field} must not exceed {max_len} characters", field)


@dataclass(frozen=True)
class AssetCreate:
    owner_id: str
    name: str
    category: str
    description: str | None = None
    image_key: str | None = None


@dataclass(frozen=True)
class AssetPatch:
    """Partial update. Only keys present in `fields` are written."""

    fields: dict[str, Any] = field(default_factory=dict)

    def is_empty(self) -> bool:
        return not self.fields


def decode_body(raw: bytes | str | None) -> dict[str, Any]:
    if raw is None or (isinstance(raw, (bytes, str)) and len(raw) == 0):
        raise ValidationFailure("Request body is required")
    try:
        body = json.loads(raw)
    except (ValueError, TypeError) as e:
        raise ValidationFailure("Invalid JSON in request body") from e
    if not isinstance(body, dict):
        raise ValidationFailure("Request body must be a JSON object")
    return body


def parse_create(body: dict[str, Any]) -> AssetCreate:
    owner_id = require_string(body.get("ownerId"), "ownerId")
    name = require_string(body.get("name"), "name")
    category = require_enum(body.get("category"), "category", ASSET_CATEGORIES)
    description = optional_string(body.get("description"), "description")
    image_key = optional_string(body.get("imageKey"), "imageKey")

    require_length(owner_id, "ownerId", 1, OWNER_ID_MAX)
    require_length(name, "name", 1, NAME_MAX)
    if description:
        require_length(description, "description", 0, DESCRIPTION_MAX)
    if image_key:
        require_length(image_key, "imageKey", 0, IMAGE_KEY_MAX)

    return AssetCreate(
        owner_id=owner_id,
        name=name,
        category=category,
        description=description,
        image_key=image_key,
    )


def parse_update(body: dict[str, Any]) -> AssetPatch:
    if len(body) == 0:
        raise ValidationFailure("At least one field must be provided for update")
    if "ownerId" in body:
        raise ForbiddenFieldMutation("ownerId", "Owner ID cannot be changed")

    fields: dict[str, Any] = {}

    if "name" in body:
        name = optional_string(body["name"], "name")
        # A blank name keeps the current one.
        if name:
            require_length(name, "name", 1, NAME_MAX)
            fields["name"] = name

    if "description" in body:
        description = optional_string(body["description"], "description")
        if description:
            require_length(description, "description", 0, DESCRIPTION_MAX)
        fields["description"] = description

    if "category" in body:
        fields["category"] = require_enum(body["category"], "category", ASSET_CATEGORIES)

    if "imageKey" in body:
        image_key = optional_string(body["imageKey"], "imageKey")
        if image_key:
            require_length(image_key, "imageKey", 0, IMAGE_KEY_MAX)
        fields["image_key"] = image_key

    return AssetPatch(fields=fields)
