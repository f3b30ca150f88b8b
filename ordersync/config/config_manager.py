"""
Configuration management for the order sync engine.

Handles application settings and secure storage of backend credentials.
"""

import json
import os
from pathlib import Path
from typing import Any, Dict, Optional

from cryptography.fernet import Fernet


BACKEND_API_KEY = "backend_api_key"


class ConfigManager:
    """
    Manages application configuration and settings.

    Provides encrypted storage for sensitive data like the backend API key.
    """

    def __init__(self, config_dir: str = "config") -> None:
        """
        Initialize configuration manager.

        Args:
            config_dir: Directory for configuration files
        """
        self.config_dir = Path(config_dir)
        self.config_dir.mkdir(parents=True, exist_ok=True)

        self.config_file = self.config_dir / "app_config.json"
        self.credentials_file = self.config_dir / "credentials.enc"
        self.key_file = self.config_dir / ".key"

        self.config: Dict[str, Any] = {}
        self.credentials: Dict[str, Any] = {}

        self._init_encryption()
        self.load_config()

    def _init_encryption(self) -> None:
        """Initialize encryption for credentials."""
        if self.key_file.exists():
            with open(self.key_file, 'rb') as f:
                self.encryption_key = f.read()
        else:
            self.encryption_key = Fernet.generate_key()
            with open(self.key_file, 'wb') as f:
                f.write(self.encryption_key)
            if os.name != 'nt':
                os.chmod(self.key_file, 0o600)

        self.cipher = Fernet(self.encryption_key)

    def load_config(self) -> None:
        """Load configuration from files."""
        if self.config_file.exists():
            with open(self.config_file, 'r') as f:
                self.config = json.load(f)
        else:
            self.config = self._get_default_config()
            self.save_config()

        if self.credentials_file.exists():
            with open(self.credentials_file, 'rb') as f:
                encrypted_data = f.read()
            decrypted_data = self.cipher.decrypt(encrypted_data)
            self.credentials = json.loads(decrypted_data.decode())

    def save_config(self) -> None:
        """Save configuration to file."""
        with open(self.config_file, 'w') as f:
            json.dump(self.config, f, indent=2)

    def save_credentials(self) -> None:
        """Save encrypted credentials to file."""
        json_data = json.dumps(self.credentials).encode()
        encrypted_data = self.cipher.encrypt(json_data)

        with open(self.credentials_file, 'wb') as f:
            f.write(encrypted_data)

        if os.name != 'nt':
            os.chmod(self.credentials_file, 0o600)

    def _get_default_config(self) -> Dict[str, Any]:
        """Get default configuration."""
        return {
            "app_version": "0.1.0",
            "database": {
                "path": "data/ordersync.db"
            },
            "backend": {
                "base_url": "http://localhost:54321",
                "request_timeout_seconds": 15.0
            },
            "sync": {
                "edge_timeout_seconds": 6.0,
                "poll_interval_seconds": 1.2,
                "poll_timeout_seconds": 45.0,
                "local_read_limit": 5000,
                "auto_refresh_interval_minutes": 15
            },
            "logging": {
                "level": "INFO",
                "dir": "logs",
                "max_file_size_mb": 10,
                "backup_count": 5
            }
        }

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value.

        Args:
            key: Configuration key (supports dot notation, e.g., "sync.poll_interval_seconds")
            default: Default value if key not found

        Returns:
            Configuration value
        """
        keys = key.split('.')
        value = self.config

        for k in keys:
            if isinstance(value, dict):
                value = value.get(k)
                if value is None:
                    return default
            else:
                return default

        return value

    def set(self, key: str, value: Any, save: bool = True) -> None:
        """
        Set configuration value.

        Args:
            key: Configuration key (supports dot notation)
            value: Value to set
            save: Whether to save immediately
        """
        keys = key.split('.')
        config = self.config

        for k in keys[:-1]:
            if k not in config:
                config[k] = {}
            config = config[k]

        config[keys[-1]] = value

        if save:
            self.save_config()

    def get_credential(self, key: str) -> Optional[str]:
        """Get encrypted credential."""
        return self.credentials.get(key)

    def set_credential(self, key: str, value: str, save: bool = True) -> None:
        """
        Set encrypted credential.

        Args:
            key: Credential key
            value: Credential value
            save: Whether to save immediately
        """
        self.credentials[key] = value
        if save:
            self.save_credentials()

    def remove_credential(self, key: str, save: bool = True) -> bool:
        """
        Remove a credential.

        Returns:
            True if credential was removed
        """
        if key in self.credentials:
            del self.credentials[key]
            if save:
                self.save_credentials()
            return True
        return False

    def has_credential(self, key: str) -> bool:
        """Check if credential exists."""
        return key in self.credentials

    def get_backend_api_key(self) -> Optional[str]:
        """Get the API key used to authenticate against the order backend."""
        return self.get_credential(BACKEND_API_KEY)

    def set_backend_api_key(self, key: str) -> None:
        """Store the order backend API key encrypted at rest."""
        self.set_credential(BACKEND_API_KEY, key)


# Global configuration instance
_config_manager: Optional[ConfigManager] = None


def get_config_manager() -> ConfigManager:
    """
    Get global configuration manager instance.

    Returns:
        ConfigManager instance
    """
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager()
    return _config_manager


def reset_config_manager() -> None:
    """Reset global configuration manager (mainly for testing)."""
    global _config_manager
    _config_manager = None
