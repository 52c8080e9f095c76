import json
import logging

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from rds_health_report.config import REGION
from rds_health_report.errors import CredentialNotFound, SecretUnavailable

logger = logging.getLogger(__name__)

secrets = boto3.client("secretsmanager", region_name=REGION)

# Tried in order; the first non-null value wins.
PASSWORD_KEYS = ("password", "Password", "PASSWORD", "DB_PASSWORD", "db_password", "DBPassword")


def extract_password(raw: str) -> str:
    """
    Accepts either a JSON object secret ({"username": ..., "password": ...})
    or a plaintext secret. Anything that is not a JSON object is plaintext.
    """
    try:
        secret = json.loads(raw)
    except ValueError:
        return raw

    if not isinstance(secret, dict):
        return raw

    for k in PASSWORD_KEYS:
        if secret.get(k) is not None:
            return str(secret[k])
    raise CredentialNotFound("DB password not found in secret")


def resolve_password(secret_id: str) -> str:
    logger.info("Fetching DB password from Secrets Manager: %s", secret_id)
    try:
        resp = secrets.get_secret_value(SecretId=secret_id)
    except (ClientError, BotoCoreError) as e:
        raise SecretUnavailable(f"Could not read secret {secret_id}: {e}") from e

    raw = resp.get("SecretString")
    if raw is None and resp.get("SecretBinary") is not None:
        raw = resp["SecretBinary"].decode("utf-8", errors="replace")
    if not raw:
        raise SecretUnavailable("Empty secret value")

    return extract_password(raw)
