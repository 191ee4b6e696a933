"""Settings defaults and validation."""

import pytest
from pydantic import ValidationError

from tinyurl.config import DEFAULT_ALPHABET, Settings


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("SHORT_ID_LENGTH", "SHORT_ID_ALPHABET", "MAX_RETRIES", "PORT"):
        monkeypatch.delenv(name, raising=False)

    settings = Settings(_env_file=None)
    assert settings.SHORT_ID_LENGTH == 6
    assert settings.SHORT_ID_ALPHABET == DEFAULT_ALPHABET
    assert settings.MAX_RETRIES == 3
    assert settings.PORT == 9876


def test_environment_override(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MAX_RETRIES", "5")
    monkeypatch.setenv("BASE_URL", "https://sho.rt")

    settings = Settings()

    assert settings.MAX_RETRIES == 5
    assert settings.BASE_URL == "https://sho.rt"


@pytest.mark.parametrize(
    "overrides",
    [
        {"MAX_RETRIES": -1},
        {"SHORT_ID_LENGTH": 0},
        {"SHORT_ID_LENGTH": 17},
        {"SHORT_ID_ALPHABET": "a"},
    ],
)
def test_rejects_invalid_values(overrides: dict) -> None:
    with pytest.raises(ValidationError):
        Settings(**overrides)
