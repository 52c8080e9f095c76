import logging
from dataclasses import dataclass, field
from typing import Any, Callable

import pymysql
import pymysql.cursors

from rds_health_report.errors import CheckFailed, ConnectionFailed

logger = logging.getLogger(__name__)

# Upper bound on connect wait regardless of configuration.
MAX_CONNECT_TIMEOUT = 9


# --------------------------
# Data structures
# --------------------------

@dataclass(frozen=True)
class ConnectionParams:
    host: str
    user: str
    password: str
    database: str
    port: int = 3306
    connect_timeout: int = 8


@dataclass(frozen=True)
class Check:
    name: str
    label: str
    sql: str
    extract: Callable[[dict | None], Any]


@dataclass(frozen=True)
class CheckOutcome:
    name: str
    value: Any = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class ProbeResult:
    connected: bool = False
    version: str | None = None
    threads_connected: str | None = None
    commits_count: int | None = None
    pulls_count: int | None = None
    errors: list[str] = field(default_factory=list)

    def apply(self, outcome: CheckOutcome) -> None:
        if outcome.ok:
            setattr(self, outcome.name, outcome.value)
        else:
            self.errors.append(outcome.error)


# --------------------------
# Checks
# --------------------------

def _column(name: str, default: Any = None) -> Callable[[dict | None], Any]:
    def extract(row: dict | None) -> Any:
        if not row:
            return default
        value = row.get(name)
        return default if value is None else value
    return extract


CHECKS = (
    Check("version", "Version check failed", "SELECT VERSION() AS version", _column("version")),
    Check("threads_connected", "Threads check failed", "SHOW STATUS LIKE 'Threads_connected'", _column("Value")),
    Check("commits_count", "Commits count failed", "SELECT COUNT(*) AS cnt FROM Commits", _column("cnt", 0)),
    Check("pulls_count", "Pulls count failed", "SELECT COUNT(*) AS cnt FROM Pulls", _column("cnt", 0)),
)


def run_check(conn, check: Check) -> CheckOutcome:
    try:
        with conn.cursor() as cur:
            cur.execute(check.sql)
            row = cur.fetchone()
        value = check.extract(row)
    except Exception as e:
        failure = CheckFailed(check.label, str(e))
        logger.warning("%s", failure)
        return CheckOutcome(check.name, error=str(failure))

    logger.info("%s: %s", check.name, value)
    return CheckOutcome(check.name, value=value)


def run_checks(conn, checks=CHECKS) -> ProbeResult:
    """Runs every check in order; a failed check never stops the ones after it."""
    result = ProbeResult(connected=True)
    for check in checks:
        result.apply(run_check(conn, check))
    return result


# --------------------------
# Connection lifetime
# --------------------------

def connect(params: ConnectionParams):
    timeout = max(1, min(params.connect_timeout, MAX_CONNECT_TIMEOUT))
    logger.info("Connecting to RDS MySQL: %s", params.host)
    try:
        return pymysql.connect(
            host=params.host,
            user=params.user,
            password=params.password,
            database=params.database,
            port=params.port,
            connect_timeout=timeout,
            cursorclass=pymysql.cursors.DictCursor,
        )
    except Exception as e:
        raise ConnectionFailed(f"Could not connect to {params.host}: {e}") from e


def close_quietly(conn) -> None:
    try:
        conn.close()
    except Exception as e:
        logger.warning("Closing MySQL connection failed: %s", e)


def probe_database(params: ConnectionParams) -> ProbeResult:
    conn = connect(params)
    logger.info("MySQL connected successfully")
    try:
        return run_checks(conn)
    finally:
        close_quietly(conn)
