"""
Unit Tests for Application Settings Configuration

Tests for:
- Default values for every section
- Validators (command prefix, snowflake IDs, log level)
- Loading from environment variables, including nested sections
- Settings caching and clearing
"""

import pytest
from pydantic import SecretStr, ValidationError

from guild_voice_bot.config.settings import (
    AudioSettings,
    DiscordSettings,
    Settings,
    VoiceSettings,
    clear_settings_cache,
    get_settings,
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in ("ENVIRONMENT", "DEBUG", "LOG_LEVEL", "DISCORD__TOKEN", "DISCORD__COMMAND_PREFIX"):
        monkeypatch.delenv(name, raising=False)
    clear_settings_cache()
    yield
    clear_settings_cache()


# =============================================================================
# DiscordSettings Tests
# =============================================================================


class TestDiscordSettings:
    def test_defaults(self):
        discord = DiscordSettings()

        assert discord.command_prefix == "~"
        assert discord.token.get_secret_value() == ""
        assert discord.owner_ids == ()

    def test_token_is_secret(self):
        discord = DiscordSettings(token=SecretStr("abc.def.ghi"))

        assert "abc.def.ghi" not in repr(discord)
        assert discord.token.get_secret_value() == "abc.def.ghi"

    def test_prefix_alias(self):
        assert DiscordSettings(prefix="!").command_prefix == "!"

    @pytest.mark.parametrize("prefix", ["", " ~", "a b", "toolong"])
    def test_invalid_prefix(self, prefix):
        with pytest.raises(ValidationError):
            DiscordSettings(command_prefix=prefix)

    def test_owner_ids_list_converted_to_tuple(self):
        assert DiscordSettings(owner_ids=[123456789]).owner_ids == (123456789,)

    def test_owner_ids_rejects_invalid_snowflake(self):
        with pytest.raises(ValidationError, match="must be positive"):
            DiscordSettings(owner_ids=[0])

    def test_is_frozen(self):
        discord = DiscordSettings()
        with pytest.raises(ValidationError):
            discord.command_prefix = "!"


# =============================================================================
# AudioSettings / VoiceSettings Tests
# =============================================================================


class TestAudioSettings:
    def test_defaults(self):
        audio = AudioSettings()

        assert audio.default_volume == 0.5
        assert audio.max_queue_size == 100
        assert audio.ytdlp_format == "bestaudio/best"
        assert "-vn" in audio.ffmpeg_options["options"]
        assert audio.cache_ttl_seconds == 3600

    @pytest.mark.parametrize("size", [0, 1001])
    def test_max_queue_size_bounds(self, size):
        with pytest.raises(ValidationError):
            AudioSettings(max_queue_size=size)

    def test_volume_bounds(self):
        with pytest.raises(ValidationError):
            AudioSettings(default_volume=2.5)


class TestVoiceSettings:
    def test_defaults(self):
        voice = VoiceSettings()
        assert voice.connect_timeout_s == 10.0
        assert voice.shutdown_timeout_s == 10.0

    def test_alias(self):
        assert VoiceSettings(connect_timeout=5.0).connect_timeout_s == 5.0

    def test_timeout_must_be_positive(self):
        with pytest.raises(ValidationError):
            VoiceSettings(connect_timeout_s=0.0)


# =============================================================================
# Settings Tests
# =============================================================================


class TestSettings:
    def test_defaults(self):
        settings = Settings()

        assert settings.environment == "development"
        assert settings.debug is False
        assert settings.log_level == "INFO"
        assert isinstance(settings.discord, DiscordSettings)
        assert isinstance(settings.audio, AudioSettings)
        assert isinstance(settings.voice, VoiceSettings)

    def test_load_from_environment_variables(self, monkeypatch):
        monkeypatch.setenv("ENVIRONMENT", "production")
        monkeypatch.setenv("LOG_LEVEL", "WARNING")

        settings = Settings()

        assert settings.environment == "production"
        assert settings.log_level == "WARNING"

    def test_load_nested_settings_from_env(self, monkeypatch):
        monkeypatch.setenv("DISCORD__TOKEN", "secret-token")
        monkeypatch.setenv("DISCORD__COMMAND_PREFIX", "?")

        settings = Settings()

        assert settings.discord.token.get_secret_value() == "secret-token"
        assert settings.discord.command_prefix == "?"

    def test_environment_validation(self, monkeypatch):
        monkeypatch.setenv("ENVIRONMENT", "invalid")

        with pytest.raises(ValidationError, match="Input should be"):
            Settings()

    def test_log_level_case_insensitive(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "debug")
        assert Settings().log_level == "DEBUG"

    def test_log_level_invalid(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "LOUD")

        with pytest.raises(ValidationError, match="Invalid log level"):
            Settings()


class TestSettingsCache:
    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()

    def test_clear_settings_cache(self, monkeypatch):
        first = get_settings()
        monkeypatch.setenv("ENVIRONMENT", "test")
        clear_settings_cache()

        second = get_settings()

        assert second is not first
        assert second.environment == "test"
