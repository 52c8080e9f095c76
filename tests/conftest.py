"""Test configuration and fixtures."""
import os

# boto3 clients are created at import time and need a region and credentials.
os.environ.setdefault("AWS_REGION", "ap-south-1")
os.environ.setdefault("AWS_DEFAULT_REGION", "ap-south-1")
os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")

import pytest
from botocore.stub import Stubber

from rds_health_report import credentials, storage
from rds_health_report.config import load_settings

# ---------------------------------------------------------------------------
# Constants (shared with tests)
# ---------------------------------------------------------------------------
DB_HOST = "db.example.internal"
DB_NAME = "codeai"
SECRET_NAME = "repo-service/DB_SECRET"
BUCKET = "rds-reports-test"

ENV = {
    "DB_HOST": DB_HOST,
    "DB_NAME": DB_NAME,
    "SECRET_NAME": SECRET_NAME,
    "S3_BUCKET": BUCKET,
}


# ---------------------------------------------------------------------------
# Fake PyMySQL connection
# ---------------------------------------------------------------------------


class FakeCursor:
    def __init__(self, conn):
        self.conn = conn
        self._row = None

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def execute(self, sql):
        self.conn.executed.append(sql)
        outcome = self.conn.responses.get(sql)
        if isinstance(outcome, Exception):
            raise outcome
        self._row = outcome

    def fetchone(self):
        return self._row


class FakeConnection:
    def __init__(self, responses=None, close_error=None):
        self.responses = responses or {}
        self.close_error = close_error
        self.executed = []
        self.close_calls = 0

    def cursor(self):
        return FakeCursor(self)

    def close(self):
        self.close_calls += 1
        if self.close_error:
            raise self.close_error


HEALTHY_RESPONSES = {
    "SELECT VERSION() AS version": {"version": "8.0.33"},
    "SHOW STATUS LIKE 'Threads_connected'": {"Variable_name": "Threads_connected", "Value": "5"},
    "SELECT COUNT(*) AS cnt FROM Commits": {"cnt": 120},
    "SELECT COUNT(*) AS cnt FROM Pulls": {"cnt": 8},
}


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def settings():
    return load_settings(ENV)


@pytest.fixture
def env(monkeypatch):
    for name in ("DB_HOST", "DB_NAME", "SECRET_NAME", "S3_BUCKET", "REPORT_PREFIX", "DB_USER"):
        monkeypatch.delenv(name, raising=False)
    for name, value in ENV.items():
        monkeypatch.setenv(name, value)
    return monkeypatch


@pytest.fixture
def secrets_stub():
    with Stubber(credentials.secrets) as stub:
        yield stub
        stub.assert_no_pending_responses()


@pytest.fixture
def s3_stub():
    with Stubber(storage.s3) as stub:
        yield stub
        stub.assert_no_pending_responses()


@pytest.fixture
def fake_connect(monkeypatch):
    """Patches pymysql.connect; returns the list of connections handed out."""
    handed_out = []

    def install(responses=None, error=None, close_error=None):
        def connect(**kwargs):
            if error is not None:
                raise error
            conn = FakeConnection(responses, close_error=close_error)
            conn.kwargs = kwargs
            handed_out.append(conn)
            return conn

        monkeypatch.setattr("rds_health_report.probe.pymysql.connect", connect)
        return handed_out

    return install
