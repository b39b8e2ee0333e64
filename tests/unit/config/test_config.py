"""Unit tests for configuration loading and the runtime context."""

import pytest

from src.cms.core.exceptions import EntityValidationError
from src.cms.entities.core.owner import OwnerType
from src.cms.runtime.config.config_data import (
    AppConfig,
    CacheConfig,
    ConfigData,
    DatabaseConfig,
    RedisConfig,
)
from src.cms.runtime.config.config_template import (
    environment_overrides,
    load_templated_yaml,
    substitute_env_vars,
)
from src.cms.runtime.context import (
    get_config,
    get_current_user_id,
    with_context,
    with_user,
)


class TestSubstituteEnvVars:
    """Placeholder expansion in config.yaml."""

    def test_required_variable(self, monkeypatch):
        """Should substitute a set variable."""
        monkeypatch.setenv("CMS_TEST_HOST", "db.internal")
        assert substitute_env_vars("host: ${CMS_TEST_HOST}") == "host: db.internal"

    def test_default_value(self, monkeypatch):
        """Should fall back to the default when the variable is unset."""
        monkeypatch.delenv("CMS_TEST_MISSING", raising=False)
        assert substitute_env_vars("${CMS_TEST_MISSING:-fallback}") == "fallback"

    def test_missing_required_variable(self, monkeypatch):
        """Should raise when a required variable is unset."""
        monkeypatch.delenv("CMS_TEST_MISSING", raising=False)
        with pytest.raises(ValueError, match="CMS_TEST_MISSING not set"):
            substitute_env_vars("${CMS_TEST_MISSING}")

    def test_custom_error_message(self, monkeypatch):
        """Should include the custom message for ':?' placeholders."""
        monkeypatch.delenv("CMS_TEST_MISSING", raising=False)
        with pytest.raises(ValueError, match="set me please"):
            substitute_env_vars("${CMS_TEST_MISSING:?set me please}")

    def test_explicit_environment_mapping(self):
        """Should read from the mapping passed in instead of the process."""
        assert substitute_env_vars("${NAME}-${PORT:-80}", {"NAME": "cms"}) == "cms-80"


class TestEnvironmentOverrides:
    """Environment-prefixed variables replacing their bare names."""

    def test_prefixed_value_wins(self):
        """Should copy PRODUCTION_X over X without touching the input."""
        environ = {"DATABASE_URL": "sqlite://", "PRODUCTION_DATABASE_URL": "postgresql://db/cms"}

        resolved = environment_overrides(environ, "production")

        assert resolved["DATABASE_URL"] == "postgresql://db/cms"
        assert environ["DATABASE_URL"] == "sqlite://"

    def test_other_environments_ignored(self):
        """Should leave variables for other environments alone."""
        resolved = environment_overrides({"TEST_NAME": "t", "NAME": "n"}, "production")
        assert resolved["NAME"] == "n"

    def test_applied_when_loading(self, tmp_path, monkeypatch):
        """Should resolve placeholders with the prefixed value."""
        monkeypatch.setenv("APP_ENVIRONMENT", "test")
        monkeypatch.setenv("CMS_TEST_APP_NAME", "plain")
        monkeypatch.setenv("TEST_CMS_TEST_APP_NAME", "prefixed")
        path = tmp_path / "config.yaml"
        path.write_text("config:\n  app:\n    name: ${CMS_TEST_APP_NAME}\n")

        assert load_templated_yaml(path).app.name == "prefixed"


class TestLoadTemplatedYaml:
    """Reading the YAML configuration file."""

    def test_loads_config_section(self, tmp_path, monkeypatch):
        """Should parse the config section into ConfigData."""
        monkeypatch.setenv("APP_ENVIRONMENT", "test")
        monkeypatch.setenv("CMS_TEST_DB", "sqlite:///./other.db")
        path = tmp_path / "config.yaml"
        path.write_text(
            "config:\n"
            "  app:\n"
            "    environment: test\n"
            "    name: cms-test\n"
            "  database:\n"
            "    url: ${CMS_TEST_DB}\n"
            "  cache:\n"
            "    backend: memory\n"
            "    default_expiration_seconds: 60\n"
        )

        config = load_templated_yaml(path)

        assert config.app.name == "cms-test"
        assert config.database.url == "sqlite:///./other.db"
        assert config.cache.default_expiration_seconds == 60
        assert config.redis.enabled is False

    def test_invalid_values(self, tmp_path, monkeypatch):
        """Should report validation failures as ValueError."""
        monkeypatch.setenv("APP_ENVIRONMENT", "test")
        path = tmp_path / "config.yaml"
        path.write_text("config:\n  cache:\n    backend: memcached\n")

        with pytest.raises(ValueError, match="Invalid configuration"):
            load_templated_yaml(path)

    def test_empty_file(self, tmp_path, monkeypatch):
        """Should reject an empty document."""
        monkeypatch.setenv("APP_ENVIRONMENT", "test")
        path = tmp_path / "config.yaml"
        path.write_text("")

        with pytest.raises(ValueError, match="Failed to parse YAML"):
            load_templated_yaml(path)


class TestConfigModels:
    """Derived values on the configuration models."""

    def test_redis_password_injected(self):
        """Should add the password to the URL and mask it for logs."""
        config = RedisConfig(url="redis://localhost:6379/0", password="s3cret")

        assert config.connection_string == "redis://:s3cret@localhost:6379/0"
        assert config.sanitized_connection_string == "redis://***@localhost:6379/0"

    def test_redis_url_without_password(self):
        """Should keep the URL untouched without a password."""
        config = RedisConfig(url="redis://localhost:6379/0")
        assert config.sanitized_connection_string == "redis://localhost:6379/0"

    def test_sqlite_database(self):
        """Should detect SQLite and leave its URL alone."""
        config = DatabaseConfig(url="sqlite:///./cms.db", password_env_var="CMS_DB_PASSWORD")

        assert config.is_sqlite is True
        assert config.connection_string == "sqlite:///./cms.db"

    def test_database_password_from_environment(self, monkeypatch):
        """Should inject the password from the configured variable."""
        monkeypatch.setenv("CMS_TEST_DB_PASSWORD", "pw")
        config = DatabaseConfig(
            url="postgresql://cms@localhost/cms", password_env_var="CMS_TEST_DB_PASSWORD"
        )
        assert config.connection_string == "postgresql://cms:pw@localhost/cms"

    def test_database_password_missing(self, monkeypatch):
        """Should fail when the password variable is unset."""
        monkeypatch.delenv("CMS_TEST_DB_PASSWORD", raising=False)
        config = DatabaseConfig(
            url="postgresql://cms@localhost/cms", password_env_var="CMS_TEST_DB_PASSWORD"
        )
        with pytest.raises(ValueError, match="CMS_TEST_DB_PASSWORD not set"):
            _ = config.connection_string

    def test_base_url(self):
        """Should use https only in production."""
        assert AppConfig(host="cms.local", port=80).base_url == "http://cms.local:80"
        assert (
            AppConfig(environment="production", host="cms.example", port=443).base_url
            == "https://cms.example:443"
        )


class TestContext:
    """Context-local configuration overrides and the acting user."""

    def test_override_only_replaces_set_fields(self):
        """Should merge explicitly set fields over the current config."""
        original = get_config()

        with with_context(ConfigData(cache=CacheConfig(enabled=False, default_expiration_seconds=5))):
            overridden = get_config()
            assert overridden.cache.enabled is False
            assert overridden.cache.default_expiration_seconds == 5
            assert overridden.cache.key_prefix == original.cache.key_prefix
            assert overridden.database.url == original.database.url

        assert get_config() is original

    def test_nested_overrides(self):
        """Should stack overrides and unwind them in order."""
        original_max_entries = get_config().cache.max_entries
        with with_context(ConfigData(app=AppConfig(name="outer"))):
            with with_context(ConfigData(cache=CacheConfig(max_entries=5))):
                assert get_config().app.name == "outer"
                assert get_config().cache.max_entries == 5
            assert get_config().cache.max_entries == original_max_entries
            assert get_config().app.name == "outer"

    def test_none_override_is_noop(self):
        """Should leave the config untouched without an override."""
        original = get_config()
        with with_context(None):
            assert get_config() is original

    def test_rejects_other_types(self):
        """Should reject overrides that are not ConfigData."""
        with pytest.raises(ValueError, match="must be ConfigData"):
            with with_context({"cache": {"enabled": False}}):
                pass

    def test_with_user(self):
        """Should expose the acting user only inside the block."""
        assert get_current_user_id() is None
        with with_user(7):
            assert get_current_user_id() == 7
            with with_user(None):
                assert get_current_user_id() is None
            assert get_current_user_id() == 7
        assert get_current_user_id() is None

    def test_override_keeps_acting_user(self):
        """Should keep the acting user when the config is overridden."""
        with with_user(3), with_context(ConfigData(app=AppConfig(name="x"))):
            assert get_current_user_id() == 3


class TestOwnerType:
    """Parsing owner names for addresses and contact details."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("User", OwnerType.USER),
            ("company", OwnerType.COMPANY),
            (" LOCATION ", OwnerType.LOCATION),
            (OwnerType.USER, OwnerType.USER),
        ],
    )
    def test_parse(self, value, expected):
        """Should resolve owner names case-insensitively."""
        assert OwnerType.parse(value) is expected

    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_parse_empty(self, value):
        """Should reject missing owner names."""
        with pytest.raises(EntityValidationError, match="cannot be null or empty"):
            OwnerType.parse(value)

    def test_parse_unknown(self):
        """Should reject unknown owner names."""
        with pytest.raises(EntityValidationError, match="Invalid entity type: Vendor"):
            OwnerType.parse("Vendor")

    def test_column_name(self):
        """Should map each owner to its foreign-key column."""
        assert OwnerType.USER.column_name == "user_id"
        assert OwnerType.COMPANY.column_name == "company_id"
        assert OwnerType.LOCATION.column_name == "location_id"
