"""
api/services/s3.py

Presigned URL generation for the papers/notes object buckets.
The client fetches bytes from S3 directly — the API never proxies them,
and the URL it hands out expires on its own.
"""
import logging
import os

import boto3

log = logging.getLogger("study_share.s3")

DEFAULT_TTL = int(os.environ.get("SIGNED_URL_TTL", "3600"))

_s3 = None


def _client():
    global _s3
    if _s3 is None:
        _s3 = boto3.client(
            "s3",
            region_name=os.environ.get("AWS_REGION", "us-east-1"),
        )
    return _s3


def physical_bucket(bucket: str) -> str:
    """
    Map a logical bucket ("papers" / "notes") to the real S3 bucket name.

    S3_BUCKET_PAPERS / S3_BUCKET_NOTES override the default, which is the
    logical name itself.
    """
    return os.environ.get(f"S3_BUCKET_{bucket.upper()}", bucket)


def generate_presigned_url(bucket: str, key: str, ttl: int = DEFAULT_TTL) -> str:
    """
    Return a presigned GET URL for an object in a logical bucket.

    ttl: seconds until the URL expires (default 1 hour).
    Raises botocore's ClientError / BotoCoreError if signing fails.
    """
    url = _client().generate_presigned_url(
        "get_object",
        Params={"Bucket": physical_bucket(bucket), "Key": key},
        ExpiresIn=ttl,
    )
    log.debug("[S3] signed s3://%s/%s (ttl=%ds)", physical_bucket(bucket), key, ttl)
    return url
