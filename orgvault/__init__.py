from .backup import BackupManager
from .config import VaultConfig

__version__ = "0.3.0"
__author__ = "orgvault-team"
__url__ = "https://github.com/orgvault/orgvault"

__all__ = ["BackupManager", "VaultConfig"]
