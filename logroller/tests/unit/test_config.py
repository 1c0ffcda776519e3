"""Tests for configuration loading."""

import pytest

from logroller.utils.config import Config, RollerConfig, get_config, reset_config


class TestConfig:
    """Test Config."""
    
    def test_defaults(self):
        """Test packaged defaults load."""
        config = Config(environ={})
        
        assert config.get("roller.max_size_bytes") == 100 * 1024 * 1024
        assert config.get("roller.filename") is None
        assert config.get("logging.level") == "INFO"
        assert config.get("missing.key", "fallback") == "fallback"
    
    def test_defaults_build_roller_config(self):
        """Test defaults produce the default RollerConfig."""
        assert Config(environ={}).roller_config() == RollerConfig()
    
    def test_file_overrides(self, temp_dir):
        """Test a user YAML file is merged over the defaults."""
        path = temp_dir / "roller.yaml"
        path.write_text(
            "roller:\n"
            "  filename: /var/log/app/app.log\n"
            "  max_backups: 7\n"
            "  compress_backups: true\n"
        )
        
        roller = Config(str(path), environ={}).roller_config()
        
        assert roller.filename == "/var/log/app/app.log"
        assert roller.max_backups == 7
        assert roller.compress_backups is True
        assert roller.max_size_bytes == 100 * 1024 * 1024
    
    def test_env_overrides(self, temp_dir):
        """Test environment variables win over files."""
        path = temp_dir / "roller.yaml"
        path.write_text("roller:\n  max_backups: 7\n")
        environ = {
            "LOGROLLER_MAX_BACKUPS": "2",
            "LOGROLLER_MAX_AGE_DAYS": "14",
            "LOGROLLER_LOCAL_TIME": "yes",
            "LOGROLLER_PREAMBLE_LINES": "3",
            "LOG_LEVEL": "DEBUG",
        }
        
        config = Config(str(path), environ=environ)
        roller = config.roller_config()
        
        assert roller.max_backups == 2
        assert roller.max_age_days == 14
        assert roller.local_time is True
        assert roller.preamble_line_count == 3
        assert config.get("logging.level") == "DEBUG"
    
    def test_set_dot_notation(self):
        """Test setting nested keys."""
        config = Config(environ={})
        config.set("roller.archive_dir", "/tmp/archive")
        config.set("extra.nested.value", 1)
        
        assert config.roller_config().archive_dir == "/tmp/archive"
        assert config.get("extra.nested.value") == 1
    
    def test_negative_values_rejected(self):
        """Test invalid values fail when building the roller config."""
        config = Config(environ={"LOGROLLER_MAX_SIZE_BYTES": "-5"})
        
        with pytest.raises(ValueError):
            config.roller_config()
    
    def test_non_mapping_file_rejected(self, temp_dir):
        """Test a YAML file must hold a mapping."""
        path = temp_dir / "roller.yaml"
        path.write_text("- just\n- a list\n")
        
        with pytest.raises(ValueError):
            Config(str(path), environ={})
    
    def test_global_config(self):
        """Test the process-wide instance is cached until reset."""
        reset_config()
        try:
            first = get_config()
            
            assert get_config() is first
            
            reset_config()
            
            assert get_config() is not first
        finally:
            reset_config()
