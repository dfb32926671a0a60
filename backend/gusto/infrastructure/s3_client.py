"""
S3 client for blob storage.
Separated from business logic for clean architecture.
"""

from typing import Optional

import boto3
from botocore.config import Config

from gusto.core.config import get_settings


class S3Client:
    """Singleton boto3 S3 client. Returns None when S3 is not configured."""

    _instance = None

    @classmethod
    def get_client(cls):
        if cls._instance is None:
            settings = get_settings()
            if not (
                settings.AWS_REGION
                and settings.S3_BUCKET_NAME
                and settings.S3_ACCESS_KEY
                and settings.S3_SECRET_KEY
            ):
                return None
            s3_config = Config(
                signature_version="s3v4",
                s3={"addressing_style": "virtual"},
                retries={"max_attempts": 3, "mode": "standard"},
            )
            cls._instance = boto3.client(
                "s3",
                region_name=settings.AWS_REGION,
                aws_access_key_id=settings.S3_ACCESS_KEY,
                aws_secret_access_key=settings.S3_SECRET_KEY,
                endpoint_url=f"https://s3.{settings.AWS_REGION}.amazonaws.com",
                config=s3_config,
            )
        return cls._instance

    @classmethod
    def close(cls):
        if cls._instance is not None:
            cls._instance.close()
            cls._instance = None


def get_s3() -> Optional[object]:
    """Get S3 client instance, or None if credentials are missing."""
    return S3Client.get_client()
