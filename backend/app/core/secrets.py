from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from functools import lru_cache

import boto3
from botocore.client import Config

from app.core.config import settings


log = logging.getLogger(__name__)


@dataclass(frozen=True)
class DatabaseCredentials:
    host: str
    port: int | None
    database: str | None
    username: str
    password: str


def get_secrets_client():
    return boto3.client(
        "secretsmanager",
        region_name=str(getattr(settings, "aws_region", "") or "").strip() or "us-east-1",
        config=Config(retries={"max_attempts": 3, "mode": "standard"}),
    )


@lru_cache(maxsize=8)
def get_secret(secret_name: str) -> dict:
    """Fetch and decode a JSON secret. Cached for the life of the process."""

    client = get_secrets_client()
    log.info("fetching secret name=%s", secret_name)
    resp = client.get_secret_value(SecretId=secret_name)

    raw = resp.get("SecretString")
    if raw is None:
        blob = resp.get("SecretBinary")
        if blob is None:
            raise ValueError("secret has no string or binary value")
        raw = bytes(blob).decode("utf-8")

    data = json.loads(raw)
    if not isinstance(data, dict):
        raise ValueError("secret is not a JSON object")
    return data


def get_database_credentials(secret_name: str) -> DatabaseCredentials:
    secret = get_secret(secret_name)
    port = secret.get("port")
    return DatabaseCredentials(
        host=str(secret.get("host") or ""),
        port=int(port) if port else None,
        database=secret.get("dbname") or secret.get("database"),
        username=str(secret.get("username") or ""),
        password=str(secret.get("password") or ""),
    )
