"""
Blob store interface for payment screenshots and other uploads.
Allows swapping object storage backends without touching the registration flow.
"""

from abc import ABC, abstractmethod


class BlobStore(ABC):
    """
    Interface for durable object storage.

    Implementations:
    - S3BlobStore: AWS S3 via boto3 (production)
    - LocalBlobStore: a local directory served by the app (development)
    """

    @abstractmethod
    async def store(
        self,
        data: bytes,
        filename: str,
        content_type: str,
        category: str,
        owner_id: str,
    ) -> str:
        """
        Store bytes and return a durable URL.

        The object key embeds `category` and `owner_id`. Implementations must
        raise StorageError on failure, never return a placeholder URL.
        """
        pass
