"""S3 service for the storage side of the transport engine."""

from typing import Any, BinaryIO

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from mypy_boto3_s3 import S3Client


def create_s3_client(
    profile: str | None = None,
    region: str | None = None,
    endpoint_url: str | None = None,
) -> S3Client:
    """Create an S3 client.

    Args:
        profile: AWS profile name; None uses the default credential chain
        region: AWS region; None uses the profile/environment default
        endpoint_url: Endpoint of an S3-compatible store, if not AWS

    Returns:
        Configured S3 client
    """
    session = boto3.Session(profile_name=profile, region_name=region)
    client: S3Client = session.client("s3", endpoint_url=endpoint_url)
    return client


def put_object(
    client: S3Client,
    bucket: str,
    key: str,
    body: BinaryIO,
    length: int,
) -> dict[str, Any]:
    """Store one object.

    Args:
        client: S3 client
        bucket: S3 bucket name
        key: S3 object key
        body: Readable stream with the object content
        length: Exact number of bytes in body

    Returns:
        Dictionary with the result of the call
    """
    try:
        client.put_object(Bucket=bucket, Key=key, Body=body, ContentLength=length)
        return {
            "success": True,
            "bucket": bucket,
            "key": key,
            "size": length,
            "error": None,
        }
    except (ClientError, BotoCoreError) as e:
        return {
            "success": False,
            "bucket": bucket,
            "key": key,
            "size": length,
            "error": str(e),
        }
