"""Azure Blob Storage implementation."""

from __future__ import annotations

import os

from envsync.storage.base import (
    AuthenticationError,
    Storage,
    StorageConnectionError,
    StorageError,
)

try:
    from azure.core.exceptions import (
        ClientAuthenticationError,
        HttpResponseError,
        ResourceExistsError,
        ResourceNotFoundError,
        ServiceRequestError,
    )
    from azure.identity import DefaultAzureCredential
    from azure.storage.blob import BlobServiceClient

    AZURE_AVAILABLE = True
except ImportError:
    AZURE_AVAILABLE = False
    DefaultAzureCredential = None
    BlobServiceClient = None
    ResourceNotFoundError = Exception
    ResourceExistsError = Exception
    ClientAuthenticationError = Exception
    HttpResponseError = Exception
    ServiceRequestError = Exception

CONNECTION_STRING_ENV = "AZURE_STORAGE_CONNECTION_STRING"


class AzureBlobStorage(Storage):
    """Azure Blob Storage implementation, one blob per key.

    Credentials come from ``AZURE_STORAGE_CONNECTION_STRING`` when set,
    otherwise from DefaultAzureCredential. The container is created on first
    use if it does not exist.
    """

    def __init__(self, account_name: str, container_name: str):
        if not AZURE_AVAILABLE:
            raise ImportError(
                "Azure SDK not installed. Install with: pip install envsync[azure]"
            )

        self.account_name = account_name
        self.container_name = container_name
        self._container = None

    @property
    def account_url(self) -> str:
        return f"https://{self.account_name}.blob.core.windows.net"

    def authenticate(self) -> None:
        """Connect to the container, creating it if needed."""
        connection_string = os.environ.get(CONNECTION_STRING_ENV)
        try:
            if connection_string:
                service = BlobServiceClient.from_connection_string(connection_string)
            else:
                service = BlobServiceClient(
                    account_url=self.account_url,
                    credential=DefaultAzureCredential(),
                )
            container = service.get_container_client(self.container_name)
            try:
                container.create_container()
            except ResourceExistsError:
                pass
        except ClientAuthenticationError as e:
            raise AuthenticationError(f"Azure authentication failed: {e}") from e
        except ServiceRequestError as e:
            raise StorageConnectionError(f"Cannot reach {self.account_url}: {e}") from e
        except HttpResponseError as e:
            raise StorageConnectionError(f"Azure Storage error: {e}") from e
        self._container = container

    def is_authenticated(self) -> bool:
        return self._container is not None

    def has(self, key: str) -> bool:
        self.ensure_authenticated()
        try:
            return self._container.get_blob_client(key).exists()
        except ClientAuthenticationError as e:
            raise AuthenticationError(f"Azure authentication failed: {e}") from e
        except ServiceRequestError as e:
            raise StorageConnectionError(f"Cannot reach {self.account_url}: {e}") from e
        except HttpResponseError as e:
            raise StorageError(f"Azure Storage error: {e}") from e

    def get(self, key: str) -> str | None:
        self.ensure_authenticated()
        try:
            downloader = self._container.download_blob(key, encoding="utf-8")
            return downloader.readall()
        except UnicodeDecodeError as e:
            raise StorageError(f"Blob {key} is not valid UTF-8: {e}") from e
        except ResourceNotFoundError:
            return None
        except ClientAuthenticationError as e:
            raise AuthenticationError(f"Azure authentication failed: {e}") from e
        except ServiceRequestError as e:
            raise StorageConnectionError(f"Cannot reach {self.account_url}: {e}") from e
        except HttpResponseError as e:
            raise StorageError(f"Azure Storage error: {e}") from e

    def set(self, key: str, value: str) -> None:
        self.ensure_authenticated()
        try:
            self._container.upload_blob(key, value.encode("utf-8"), overwrite=True)
        except ClientAuthenticationError as e:
            raise AuthenticationError(f"Azure authentication failed: {e}") from e
        except ServiceRequestError as e:
            raise StorageConnectionError(f"Cannot reach {self.account_url}: {e}") from e
        except HttpResponseError as e:
            raise StorageError(f"Azure Storage error: {e}") from e

    def delete(self, key: str) -> None:
        self.ensure_authenticated()
        try:
            self._container.delete_blob(key)
        except ResourceNotFoundError:
            return
        except ClientAuthenticationError as e:
            raise AuthenticationError(f"Azure authentication failed: {e}") from e
        except ServiceRequestError as e:
            raise StorageConnectionError(f"Cannot reach {self.account_url}: {e}") from e
        except HttpResponseError as e:
            raise StorageError(f"Azure Storage error: {e}") from e
