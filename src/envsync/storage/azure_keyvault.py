"""Azure Key Vault storage implementation."""

from __future__ import annotations

import re

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
        ResourceNotFoundError,
        ServiceRequestError,
    )
    from azure.identity import DefaultAzureCredential
    from azure.keyvault.secrets import SecretClient

    AZURE_AVAILABLE = True
except ImportError:
    AZURE_AVAILABLE = False
    DefaultAzureCredential = None
    SecretClient = None
    ResourceNotFoundError = Exception
    ClientAuthenticationError = Exception
    HttpResponseError = Exception
    ServiceRequestError = Exception

# Secret names may only contain alphanumerics and dashes
_INVALID_NAME_CHARS = re.compile(r"[^0-9A-Za-z-]")


class AzureKeyVaultStorage(Storage):
    """Azure Key Vault implementation.

    Each key is stored as a secret. Uses DefaultAzureCredential which
    supports:
    - Environment variables (AZURE_CLIENT_ID, AZURE_CLIENT_SECRET, AZURE_TENANT_ID)
    - Managed Identity
    - Azure CLI credentials
    - VS Code credentials
    """

    def __init__(self, vault_url: str):
        """Initialize Azure Key Vault storage.

        Args:
            vault_url: The vault URL (e.g., "https://my-vault.vault.azure.net/")
        """
        if not AZURE_AVAILABLE:
            raise ImportError(
                "Azure SDK not installed. Install with: pip install envsync[azure]"
            )

        self.vault_url = vault_url
        self._client: SecretClient | None = None
        self._credential = None

    @staticmethod
    def secret_name(key: str) -> str:
        """Map a storage key onto the Key Vault secret name alphabet."""
        return _INVALID_NAME_CHARS.sub("-", key)

    def authenticate(self) -> None:
        """Authenticate using DefaultAzureCredential."""
        try:
            self._credential = DefaultAzureCredential()
            self._client = SecretClient(
                vault_url=self.vault_url,
                credential=self._credential,
            )
        except ClientAuthenticationError as e:
            raise AuthenticationError(f"Azure authentication failed: {e}") from e
        except ServiceRequestError as e:
            raise StorageConnectionError(f"Cannot reach {self.vault_url}: {e}") from e

    def is_authenticated(self) -> bool:
        """Check if client is authenticated."""
        return self._client is not None

    def _fetch(self, key: str):
        try:
            return self._client.get_secret(self.secret_name(key))
        except ResourceNotFoundError:
            return None
        except ClientAuthenticationError as e:
            raise AuthenticationError(f"Azure authentication failed: {e}") from e
        except ServiceRequestError as e:
            raise StorageConnectionError(f"Cannot reach {self.vault_url}: {e}") from e
        except HttpResponseError as e:
            raise StorageError(f"Azure Key Vault error: {e}") from e

    def has(self, key: str) -> bool:
        self.ensure_authenticated()
        return self._fetch(key) is not None

    def get(self, key: str) -> str | None:
        self.ensure_authenticated()
        secret = self._fetch(key)
        if secret is None:
            return None
        return secret.value or ""

    def set(self, key: str, value: str) -> None:
        self.ensure_authenticated()

        try:
            self._client.set_secret(self.secret_name(key), value)
        except ClientAuthenticationError as e:
            raise AuthenticationError(f"Azure authentication failed: {e}") from e
        except ServiceRequestError as e:
            raise StorageConnectionError(f"Cannot reach {self.vault_url}: {e}") from e
        except HttpResponseError as e:
            raise StorageError(f"Azure Key Vault error: {e}") from e

    def delete(self, key: str) -> None:
        """Begin deleting the secret; soft-delete retention is left to the vault."""
        self.ensure_authenticated()

        try:
            self._client.begin_delete_secret(self.secret_name(key)).wait()
        except ResourceNotFoundError:
            return
        except ClientAuthenticationError as e:
            raise AuthenticationError(f"Azure authentication failed: {e}") from e
        except ServiceRequestError as e:
            raise StorageConnectionError(f"Cannot reach {self.vault_url}: {e}") from e
        except HttpResponseError as e:
            raise StorageError(f"Azure Key Vault error: {e}") from e
