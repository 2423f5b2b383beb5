"""Tests for the settings persistence layer."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from draftdesk.services.settings import SecretVault, Settings, SettingsStore, parse_setting, redact_secret


def _store(tmp_path: Path) -> SettingsStore:
    return SettingsStore(tmp_path / "settings.json", vault=SecretVault(key_path=tmp_path / "key"))


def test_load_returns_defaults_when_file_missing(tmp_path: Path) -> None:
    settings = _store(tmp_path).load()

    assert settings == Settings()
    assert settings.base_url == "http://localhost:3001/api/v1"
    assert settings.draft_expiry_days == 7


def test_save_and_load_roundtrip(tmp_path: Path) -> None:
    original = Settings(
        base_url="https://blog.example.com/api/v1",
        access_token="super-secret",
        request_timeout=12.5,
        storage_dir=str(tmp_path / "drafts"),
        draft_expiry_days=3,
        debug_logging=True,
        default_headers={"X-Client": "cli"},
    )

    _store(tmp_path).save(original)
    reloaded = _store(tmp_path).load()

    assert reloaded == original


def test_access_token_is_encrypted_at_rest(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    _store(tmp_path).save(Settings(access_token="super-secret"))

    payload = json.loads(path.read_text(encoding="utf-8"))

    assert "access_token" not in payload
    assert payload["access_token_ciphertext"].startswith("fernet:")
    assert "super-secret" not in path.read_text(encoding="utf-8")
    assert payload["version"] == 1


def test_plaintext_token_is_migrated(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"base_url": "https://old", "access_token": "plain"}), encoding="utf-8")

    loaded = _store(tmp_path).load()

    assert loaded.access_token == "plain"
    assert loaded.base_url == "https://old"
    migrated = json.loads(path.read_text(encoding="utf-8"))
    assert "access_token" not in migrated
    assert "access_token_ciphertext" in migrated


def test_unknown_fields_are_ignored(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"theme": "dark", "request_timeout": 5.0, "version": 1}), encoding="utf-8")

    assert _store(tmp_path).load().request_timeout == 5.0


def test_invalid_json_falls_back_to_defaults(tmp_path: Path) -> None:
    (tmp_path / "settings.json").write_text("{nope", encoding="utf-8")

    assert _store(tmp_path).load() == Settings()


def test_undecryptable_token_is_dropped(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    path.write_text(
        json.dumps({"access_token_ciphertext": "fernet:garbage", "version": 1}),
        encoding="utf-8",
    )

    assert _store(tmp_path).load().access_token == ""


def test_env_overrides_take_precedence(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    _store(tmp_path).save(Settings(base_url="https://local", access_token="abc"))
    monkeypatch.setenv("DRAFTDESK_BASE_URL", "https://env-base")
    monkeypatch.setenv("DRAFTDESK_ACCESS_TOKEN", "env-token")
    monkeypatch.setenv("DRAFTDESK_REQUEST_TIMEOUT", "9")
    monkeypatch.setenv("DRAFTDESK_DEBUG_LOGGING", "yes")
    monkeypatch.setenv("DRAFTDESK_DRAFT_EXPIRY_DAYS", "not-a-number")

    overridden = _store(tmp_path).load()

    assert overridden.base_url == "https://env-base"
    assert overridden.access_token == "env-token"
    assert overridden.request_timeout == 9.0
    assert overridden.debug_logging is True
    assert overridden.draft_expiry_days == 7


def test_runtime_overrides_apply_before_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("DRAFTDESK_BASE_URL", "https://env-base")

    loaded = _store(tmp_path).load(overrides={"base_url": "https://cli", "request_timeout": 3.0, "bogus": 1})

    assert loaded.base_url == "https://env-base"
    assert loaded.request_timeout == 3.0


def test_vault_rejects_foreign_tokens(tmp_path: Path) -> None:
    vault = SecretVault(key_path=tmp_path / "key")

    assert vault.decrypt(vault.encrypt("hello")) == "hello"
    assert vault.encrypt("") == ""
    with pytest.raises(ValueError):
        vault.decrypt("plain:abc")


@pytest.mark.parametrize(
    ("value", "expected"),
    [("", ""), ("abc", "***"), ("abcdefgh", "ab****gh")],
)
def test_redact_secret(value: str, expected: str) -> None:
    assert redact_secret(value) == expected


def test_out_of_range_values_are_normalized(tmp_path: Path) -> None:
    (tmp_path / "settings.json").write_text(
        json.dumps(
            {
                "base_url": "https://blog.example.com/api/v1/",
                "request_timeout": 0,
                "draft_expiry_days": 0,
                "version": 1,
            }
        ),
        encoding="utf-8",
    )

    loaded = _store(tmp_path).load()

    assert loaded.base_url == "https://blog.example.com/api/v1"
    assert loaded.request_timeout == 30.0
    assert loaded.draft_expiry_days == 7


def test_storage_path_expands_user(tmp_path: Path) -> None:
    assert Settings().storage_path() is None
    assert Settings(storage_dir=str(tmp_path)).storage_path() == tmp_path
    assert Settings(storage_dir="~/drafts").storage_path() == Path.home() / "drafts"


@pytest.mark.parametrize(
    ("name", "raw", "expected"),
    [
        ("debug_logging", " Yes ", True),
        ("draft_expiry_days", "3", 3),
        ("storage_dir", "", None),
        ("default_headers", '{"X-Client": "cli"}', {"X-Client": "cli"}),
    ],
)
def test_parse_setting(name: str, raw: str, expected) -> None:
    assert parse_setting(name, raw) == expected


@pytest.mark.parametrize(
    ("name", "raw"),
    [("theme", "dark"), ("debug_logging", "maybe"), ("default_headers", "[1]"), ("request_timeout", "soon")],
)
def test_parse_setting_rejects_bad_input(name: str, raw: str) -> None:
    with pytest.raises(ValueError):
        parse_setting(name, raw)


def test_file_values_are_type_checked(tmp_path: Path) -> None:
    (tmp_path / "settings.json").write_text(
        json.dumps(
            {
                "version": 1,
                "request_timeout": "12",
                "draft_expiry_days": [3],
                "debug_logging": "on",
                "default_headers": "not-an-object",
                "base_url": 42,
            }
        ),
        encoding="utf-8",
    )

    loaded = _store(tmp_path).load()

    assert loaded.request_timeout == 12.0
    assert loaded.draft_expiry_days == 7
    assert loaded.debug_logging is True
    assert loaded.default_headers == {}
    assert loaded.base_url == Settings().base_url


def test_unparseable_file_string_falls_back_to_default(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"version": 1, "request_timeout": "soon"}), encoding="utf-8")

    assert _store(tmp_path).load().request_timeout == 30.0
