import time
from dataclasses import asdict, dataclass, field
from enum import Enum

from rds_health_report.probe import ProbeResult


class ReportStatus(str, Enum):
    UNKNOWN = "unknown"
    CONNECTED = "connected"
    ERROR = "error"


@dataclass(frozen=True)
class ReportIdentity:
    db_host: str | None
    db_name: str | None


@dataclass
class Report:
    db_host: str | None
    db_name: str | None
    status: ReportStatus = ReportStatus.UNKNOWN
    version: str | None = None
    threads_connected: str | None = None
    commits_count: int | None = None
    pulls_count: int | None = None
    duration_ms: int | None = None
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["status"] = self.status.value
        return data


def assemble_report(
    identity: ReportIdentity,
    probe_result: ProbeResult,
    started_at: float,
    extra_error: str | None = None,
    now: float | None = None,
) -> Report:
    """
    Builds the report handed to the renderer. started_at/now are
    time.monotonic() readings; inputs are never mutated.
    """
    now = time.monotonic() if now is None else now

    errors = list(probe_result.errors)
    if extra_error is not None:
        errors.append(extra_error)

    if extra_error is not None:
        status = ReportStatus.ERROR
    elif probe_result.connected:
        status = ReportStatus.CONNECTED
    else:
        status = ReportStatus.UNKNOWN

    return Report(
        db_host=identity.db_host,
        db_name=identity.db_name,
        status=status,
        version=probe_result.version,
        threads_connected=probe_result.threads_connected,
        commits_count=probe_result.commits_count,
        pulls_count=probe_result.pulls_count,
        duration_ms=round((now - started_at) * 1000),
        errors=errors,
    )
