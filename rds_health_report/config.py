import logging
import os
from dataclasses import dataclass
from typing import Mapping

from rds_health_report.errors import ConfigurationError

logger = logging.getLogger(__name__)

# Region is read once at import because the boto3 clients are module-level.
REGION = os.environ.get("AWS_REGION", "ap-south-1")

DEFAULT_DB_USER = "admin"
DEFAULT_DB_PORT = 3306
DEFAULT_CONNECT_TIMEOUT = 8
DEFAULT_REPORT_PREFIX = "rds-report"
DEFAULT_URL_EXPIRES = 3600


def _int_setting(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r, using %s", name, raw, default)
        return default


@dataclass(frozen=True)
class Settings:
    """Lambda environment for one invocation."""

    db_host: str | None
    db_name: str | None
    db_user: str
    db_port: int
    connect_timeout: int
    secret_name: str | None
    bucket: str | None
    report_prefix: str
    url_expires_in: int

    def require(self) -> None:
        if not self.db_host or not self.db_name:
            raise ConfigurationError("DB_HOST and DB_NAME must be set in Lambda environment")
        if not self.bucket:
            raise ConfigurationError("S3_BUCKET not configured")
        if not self.secret_name:
            raise ConfigurationError("SECRET_NAME not configured")


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    env = os.environ if environ is None else environ
    return Settings(
        db_host=env.get("DB_HOST") or None,
        db_name=env.get("DB_NAME") or None,
        db_user=env.get("DB_USER") or DEFAULT_DB_USER,
        db_port=_int_setting(env, "DB_PORT", DEFAULT_DB_PORT),
        connect_timeout=_int_setting(env, "DB_CONNECT_TIMEOUT", DEFAULT_CONNECT_TIMEOUT),
        secret_name=env.get("SECRET_NAME") or None,
        bucket=env.get("S3_BUCKET") or None,
        report_prefix=env.get("REPORT_PREFIX") or DEFAULT_REPORT_PREFIX,
        url_expires_in=_int_setting(env, "URL_EXPIRES_SECONDS", DEFAULT_URL_EXPIRES),
    )
