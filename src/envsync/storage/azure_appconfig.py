"""Azure App Configuration storage implementation."""

from __future__ import annotations

from envsync.storage.base import (
    AuthenticationError,
    Storage,
    StorageConnectionError,
    StorageError,
)

try:
    from azure.appconfiguration import AzureAppConfigurationClient, ConfigurationSetting
    from azure.core.exceptions import (
        ClientAuthenticationError,
        HttpResponseError,
        ResourceNotFoundError,
        ServiceRequestError,
    )
    from azure.identity import DefaultAzureCredential

    AZURE_AVAILABLE = True
except ImportError:
    AZURE_AVAILABLE = False
    AzureAppConfigurationClient = None
    ConfigurationSetting = None
    DefaultAzureCredential = None
    ResourceNotFoundError = Exception
    ClientAuthenticationError = Exception
    HttpResponseError = Exception
    ServiceRequestError = Exception


class AzureAppConfigStorage(Storage):
    """Azure App Configuration implementation.

    Keys are stored as configuration settings named ``<prefix><key>`` under
    the optional label.
    """

    def __init__(
        self,
        endpoint: str,
        prefix: str | None = None,
        label: str | None = None,
    ):
        """Initialize Azure App Configuration storage.

        Args:
            endpoint: Store endpoint (e.g., "https://my-config.azconfig.io")
            prefix: Optional key prefix shared by all settings
            label: Optional label for all settings
        """
        if not AZURE_AVAILABLE:
            raise ImportError(
                "Azure SDK not installed. Install with: pip install envsync[azure]"
            )

        self.endpoint = endpoint
        self.prefix = prefix or ""
        self.label = label or None
        self._client: AzureAppConfigurationClient | None = None

    def authenticate(self) -> None:
        """Authenticate using DefaultAzureCredential."""
        try:
            self._client = AzureAppConfigurationClient(
                base_url=self.endpoint,
                credential=DefaultAzureCredential(),
            )
        except ClientAuthenticationError as e:
            raise AuthenticationError(f"Azure authentication failed: {e}") from e
        except ServiceRequestError as e:
            raise StorageConnectionError(f"Cannot reach {self.endpoint}: {e}") from e

    def is_authenticated(self) -> bool:
        return self._client is not None

    def _key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    def get(self, key: str) -> str | None:
        self.ensure_authenticated()
        try:
            setting = self._client.get_configuration_setting(key=self._key(key), label=self.label)
        except ResourceNotFoundError:
            return None
        except ClientAuthenticationError as e:
            raise AuthenticationError(f"Azure authentication failed: {e}") from e
        except ServiceRequestError as e:
            raise StorageConnectionError(f"Cannot reach {self.endpoint}: {e}") from e
        except HttpResponseError as e:
            raise StorageError(f"Azure App Configuration error: {e}") from e
        if setting is None:
            return None
        return setting.value or ""

    def has(self, key: str) -> bool:
        return self.get(key) is not None

    def set(self, key: str, value: str) -> None:
        self.ensure_authenticated()
        setting = ConfigurationSetting(key=self._key(key), label=self.label, value=value)
        try:
            self._client.set_configuration_setting(setting)
        except ClientAuthenticationError as e:
            raise AuthenticationError(f"Azure authentication failed: {e}") from e
        except ServiceRequestError as e:
            raise StorageConnectionError(f"Cannot reach {self.endpoint}: {e}") from e
        except HttpResponseError as e:
            raise StorageError(f"Azure App Configuration error: {e}") from e

    def delete(self, key: str) -> None:
        self.ensure_authenticated()
        try:
            self._client.delete_configuration_setting(key=self._key(key), label=self.label)
        except ResourceNotFoundError:
            return
        except ClientAuthenticationError as e:
            raise AuthenticationError(f"Azure authentication failed: {e}") from e
        except ServiceRequestError as e:
            raise StorageConnectionError(f"Cannot reach {self.endpoint}: {e}") from e
        except HttpResponseError as e:
            raise StorageError(f"Azure App Configuration error: {e}") from e
