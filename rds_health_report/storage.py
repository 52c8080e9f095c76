import logging
from datetime import datetime, timezone

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from rds_health_report.config import REGION
from rds_health_report.errors import UploadFailed

logger = logging.getLogger(__name__)

s3 = boto3.client("s3", region_name=REGION)

PDF_CONTENT_TYPE = "application/pdf"


# --------------------------
# Keys
# --------------------------

def key_timestamp(now: datetime) -> str:
    # 2024-05-01T10:20:30.123Z -> 2024-05-01T10-20-30-123Z
    iso = now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
    return iso.replace(":", "-").replace(".", "-")


def build_report_key(prefix: str, now: datetime | None = None, error: bool = False, ext: str = "pdf") -> str:
    now = now or datetime.now(timezone.utc)
    marker = "error-" if error else ""
    return f"{prefix}-{marker}{key_timestamp(now)}.{ext}"


# --------------------------
# S3 helpers
# --------------------------

def store_report(body: bytes, bucket: str | None, key: str) -> str:
    if not bucket:
        raise UploadFailed("S3_BUCKET not configured")

    logger.info("Uploading report to S3: %s/%s", bucket, key)
    try:
        s3.put_object(
            Bucket=bucket,
            Key=key,
            Body=body,
            ContentType=PDF_CONTENT_TYPE,
        )
    except (ClientError, BotoCoreError) as e:
        raise UploadFailed(f"Upload to s3://{bucket}/{key} failed: {e}") from e
    return f"s3://{bucket}/{key}"


def presigned_url(bucket: str, key: str, expires_in: int) -> str | None:
    try:
        return s3.generate_presigned_url(
            "get_object",
            Params={"Bucket": bucket, "Key": key},
            ExpiresIn=expires_in,
        )
    except (ClientError, BotoCoreError) as e:
        logger.warning("Could not presign s3://%s/%s: %s", bucket, key, e)
        return None
