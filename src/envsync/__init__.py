"""Share .env files through a remote key-value store.

envsync helps you:
- Discover .env files in a project tree
- Push them to a remote store (local directory, Azure Blob Storage,
  Azure Key Vault or Azure App Configuration)
- Pull them back, optionally merging with local values
- Check which files are out of date
"""

__version__ = "0.1.0"

from envsync.config import EnvFile, EnvsyncConfig
from envsync.core.discovery import find_env_files
from envsync.storage import initialize_storage
from envsync.sync.engine import SyncEngine, SyncMode

__all__ = [
    "EnvFile",
    "EnvsyncConfig",
    "SyncEngine",
    "SyncMode",
    "__version__",
    "find_env_files",
    "initialize_storage",
]
