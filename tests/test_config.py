import pytest

from sdba import config
from sdba.db.database import normalize_database_url


@pytest.mark.parametrize(
    "url, expected",
    [
        ("postgresql://u:p@db:5432/sdba", "postgresql+asyncpg://u:p@db:5432/sdba"),
        ("postgres://u:p@db:5432/sdba", "postgresql+asyncpg://u:p@db:5432/sdba"),
        ("postgresql+psycopg://u:p@db/sdba", "postgresql+asyncpg://u:p@db/sdba"),
        ("postgresql+asyncpg://u:p@db/sdba", "postgresql+asyncpg://u:p@db/sdba"),
        ("sqlite+aiosqlite://", "sqlite+aiosqlite://"),
    ],
)
def test_normalize_database_url(url, expected):
    assert normalize_database_url(url) == expected


@pytest.mark.parametrize(
    "raw, expected",
    [("true", True), ("1", True), (" Yes ", True), ("false", False), ("0", False), ("off", False)],
)
def test_env_flag(monkeypatch, raw, expected):
    monkeypatch.setenv("SDBA_TEST_FLAG", raw)
    assert config._env_flag("SDBA_TEST_FLAG", not expected) is expected


def test_env_flag_default(monkeypatch):
    monkeypatch.delenv("SDBA_TEST_FLAG", raising=False)
    assert config._env_flag("SDBA_TEST_FLAG", True) is True


def test_positive_int(monkeypatch):
    monkeypatch.delenv("SDBA_TEST_SIZE", raising=False)
    assert config._positive_int("SDBA_TEST_SIZE", 1000) == 1000

    monkeypatch.setenv("SDBA_TEST_SIZE", "250")
    assert config._positive_int("SDBA_TEST_SIZE", 1000) == 250


@pytest.mark.parametrize("raw", ["0", "-5", "many"])
def test_positive_int_rejects_invalid_values(monkeypatch, raw):
    monkeypatch.setenv("SDBA_TEST_SIZE", raw)

    with pytest.raises(RuntimeError, match="SDBA_TEST_SIZE"):
        config._positive_int("SDBA_TEST_SIZE", 1000)
