"""
Infrastructure layer - external system integrations.
Keeps business logic clean from implementation details.
"""

from .redis_client import get_redis, close_redis
from .s3_client import get_s3, S3Client

__all__ = ['get_redis', 'close_redis', 'get_s3', 'S3Client']
