"""Tests for settings normalization."""

from peulot.config import Settings


class TestDatabaseUrl:
    def test_postgres_scheme_rewritten(self):
        s = Settings(database_url="postgres://u:p@host:5432/db")
        assert s.database_url == "postgresql+asyncpg://u:p@host:5432/db"

    def test_sslmode_stripped_and_detected(self):
        s = Settings(database_url="postgresql://u:p@host/db?sslmode=require&channel_binding=require")
        assert s.database_url == "postgresql+asyncpg://u:p@host/db"
        assert s.database_require_ssl is True

    def test_sqlite_passes_through(self):
        s = Settings(database_url="sqlite+aiosqlite:///./peulot.db")
        assert s.database_url == "sqlite+aiosqlite:///./peulot.db"
        assert s.database_require_ssl is False


class TestSecrets:
    def test_whitespace_stripped(self):
        s = Settings(llm_api_key="  sk-abc\n", google_refresh_token="tok\n")
        assert s.llm_api_key == "sk-abc"
        assert s.google_refresh_token == "tok"


class TestDefaults:
    def test_generation_defaults(self):
        s = Settings()
        assert s.llm_timeout_seconds == 120.0
        assert s.google_docs_template_name == "copy of peula format"
        assert s.mlflow_experiment_name == "peulot-generation"
