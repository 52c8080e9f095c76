import json
import logging
import time
from datetime import datetime, timezone

from rds_health_report.config import Settings, load_settings
from rds_health_report.credentials import resolve_password
from rds_health_report.probe import ConnectionParams, ProbeResult, probe_database
from rds_health_report.renderer import render_pdf
from rds_health_report.report import Report, ReportIdentity, assemble_report
from rds_health_report.storage import build_report_key, presigned_url, store_report

logger = logging.getLogger()
logger.setLevel(logging.INFO)

FATAL_MESSAGE = "Failed to upload even error report"


def _message(err: Exception) -> str:
    return str(err) or type(err).__name__


# ----------------------------
# Render + upload (shared by both lanes)
# ----------------------------
def finalize(report: Report, settings: Settings, error: bool = False, now: datetime | None = None) -> dict:
    now = now or datetime.now(timezone.utc)
    body = render_pdf(report, generated_at=now)
    key = build_report_key(settings.report_prefix, now, error=error)
    store_report(body, settings.bucket, key)
    return {
        "bucket": settings.bucket,
        "key": key,
        "file_url": presigned_url(settings.bucket, key, settings.url_expires_in),
    }


# ----------------------------
# Pipeline
# ----------------------------
def run_pipeline(settings: Settings, started_at: float) -> dict:
    identity = ReportIdentity(settings.db_host, settings.db_name)
    probe_result = ProbeResult()

    try:
        settings.require()

        password = resolve_password(settings.secret_name)
        logger.info("Got DB password from Secrets Manager")

        # probe_database closes the connection before returning or raising
        probe_result = probe_database(
            ConnectionParams(
                host=settings.db_host,
                user=settings.db_user,
                password=password,
                database=settings.db_name,
                port=settings.db_port,
                connect_timeout=settings.connect_timeout,
            )
        )

        report = assemble_report(identity, probe_result, started_at)
        artifact = finalize(report, settings)
        logger.info("Report completed successfully: s3://%s/%s", artifact["bucket"], artifact["key"])
        return {"status": "success", **artifact, "report": report.to_dict()}

    except Exception as err:
        logger.error("Error: %s", _message(err))
        return _error_lane(identity, probe_result, settings, started_at, err)


def _error_lane(identity: ReportIdentity, probe_result: ProbeResult, settings: Settings, started_at: float, err: Exception) -> dict:
    report = assemble_report(identity, probe_result, started_at, extra_error=_message(err))

    try:
        logger.info("Creating error report PDF...")
        artifact = finalize(report, settings, error=True)
    except Exception as e:
        logger.error("Fatal error while uploading error report: %s", _message(e))
        return {
            "status": "fatal-error",
            "message": FATAL_MESSAGE,
            "original_error": _message(err),
            "render_error": _message(e),
        }

    logger.info("Error report uploaded to S3: %s", artifact["key"])
    return {"status": "error", "error": _message(err), **artifact, "report": report.to_dict()}


# ----------------------------
# Lambda handlers
# ----------------------------
def lambda_handler(event, context):
    started_at = time.monotonic()
    logger.info("Event received: %s", json.dumps(event, default=str)[:2000])
    return run_pipeline(load_settings(), started_at)


def api_handler(event, context):
    """
    API Gateway proxy wrapper: the report button reads fileUrl or error from the body.

    lambda_handler results use snake_case keys throughout: file_url, and on a
    fatal outcome original_error / render_error. This wrapper folds those into
    the camelCase fileUrl and a single error string.
    """
    result = lambda_handler(event, context)
    status = result["status"]

    if status == "success":
        code = 200
        body = {"status": status, "fileUrl": result["file_url"], "bucket": result["bucket"], "key": result["key"]}
    elif status == "error":
        code = 500
        body = {"status": status, "error": result["error"], "fileUrl": result["file_url"], "key": result["key"]}
    else:
        code = 500
        body = {
            "status": status,
            "error": f"{result['message']}: {result['original_error']} ({result['render_error']})",
        }

    return {
        "statusCode": code,
        "headers": {"Content-Type": "application/json", "Access-Control-Allow-Origin": "*"},
        "body": json.dumps(body),
    }
