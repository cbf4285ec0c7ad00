"""
Azure Blob Storage client for wine and article photos.

Photos live in public-read containers, one per entity family
(settings.WINE_PHOTOS_CONTAINER, settings.ARTICLE_PHOTOS_CONTAINER), under
paths of the form ``<entity_id>/<timestamp>-<index>.<ext>``.
"""
import logging
from typing import Optional
from urllib.parse import quote

from azure.core.exceptions import AzureError, ResourceNotFoundError
from azure.storage.blob import BlobServiceClient, ContentSettings
from django.conf import settings

logger = logging.getLogger(__name__)


class BlobStorageError(Exception):
    """Raised when a blob cannot be written to storage"""


def _connection_string() -> Optional[str]:
    connection_string = getattr(settings, 'AZURE_STORAGE_CONNECTION_STRING', '')
    if connection_string:
        return connection_string
    account_name = getattr(settings, 'AZURE_STORAGE_ACCOUNT_NAME', '')
    account_key = getattr(settings, 'AZURE_STORAGE_ACCOUNT_KEY', '')
    if account_name and account_key:
        return (
            f"DefaultEndpointsProtocol=https;AccountName={account_name};"
            f"AccountKey={account_key};EndpointSuffix=core.windows.net"
        )
    return None


def get_service_client() -> BlobServiceClient:
    connection_string = _connection_string()
    if not connection_string:
        raise BlobStorageError('Azure Storage is not configured')
    return BlobServiceClient.from_connection_string(connection_string)


def upload_blob(container: str, path: str, data: bytes, content_type: str = 'image/jpeg') -> str:
    """
    Upload ``data`` to ``container/path`` and return its public URL.

    Raises:
        BlobStorageError: storage is not configured or the upload failed
    """
    try:
        blob_client = get_service_client().get_blob_client(container=container, blob=path)
        blob_client.upload_blob(
            data,
            overwrite=True,
            content_settings=ContentSettings(content_type=content_type),
        )
    except AzureError as e:
        logger.error(f"Failed to upload blob {container}/{path}: {str(e)}", exc_info=True)
        raise BlobStorageError(f"Upload failed for {path}") from e
    return get_public_url(container, path)


def get_public_url(container: str, path: str) -> str:
    account_name = getattr(settings, 'AZURE_STORAGE_ACCOUNT_NAME', '')
    if account_name:
        return f"https://{account_name}.blob.core.windows.net/{container}/{quote(path)}"
    # Connection-string only setups (e.g. Azurite) know their own endpoint
    blob_client = get_service_client().get_blob_client(container=container, blob=path)
    return blob_client.url


def remove_blob(container: str, path: str) -> bool:
    """
    Delete a blob. Best effort: failures are logged, never raised.

    Returns:
        True if the blob was deleted or did not exist, False otherwise
    """
    if not path:
        return True
    try:
        blob_client = get_service_client().get_blob_client(container=container, blob=path)
        blob_client.delete_blob()
        return True
    except ResourceNotFoundError:
        # Already gone
        return True
    except (AzureError, BlobStorageError) as e:
        logger.warning(f"Failed to delete blob {container}/{path}: {str(e)}", exc_info=True)
        return False
