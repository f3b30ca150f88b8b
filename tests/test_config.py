"""
Tests for configuration management and encrypted credentials.
"""

from ordersync.config import ConfigManager, get_config_manager, reset_config_manager


class TestConfigManager:
    """Defaults, dot-notation access and credential storage."""

    def test_defaults_written_on_first_run(self, tmp_path):
        config = ConfigManager(str(tmp_path / "cfg"))

        assert (tmp_path / "cfg" / "app_config.json").exists()
        assert config.get("sync.poll_interval_seconds") == 1.2
        assert config.get("sync.poll_timeout_seconds") == 45.0
        assert config.get("sync.edge_timeout_seconds") == 6.0
        assert config.get("sync.local_read_limit") == 5000
        assert config.get("missing.key", "fallback") == "fallback"

    def test_set_persists(self, tmp_path):
        config = ConfigManager(str(tmp_path / "cfg"))
        config.set("backend.base_url", "https://orders.example.com")

        reloaded = ConfigManager(str(tmp_path / "cfg"))
        assert reloaded.get("backend.base_url") == "https://orders.example.com"

    def test_api_key_encrypted_at_rest(self, tmp_path):
        config = ConfigManager(str(tmp_path / "cfg"))
        config.set_backend_api_key("secret-key-123")

        raw = (tmp_path / "cfg" / "credentials.enc").read_bytes()
        assert b"secret-key-123" not in raw
        assert ConfigManager(str(tmp_path / "cfg")).get_backend_api_key() == "secret-key-123"

    def test_remove_credential(self, tmp_path):
        config = ConfigManager(str(tmp_path / "cfg"))
        config.set_credential("token", "abc")

        assert config.remove_credential("token") is True
        assert config.has_credential("token") is False
        assert config.remove_credential("token") is False

    def test_global_instance(self):
        first = get_config_manager()
        assert get_config_manager() is first
        reset_config_manager()
        assert get_config_manager() is not first
