"""Client settings and their on-disk persistence.

Settings live in a versioned JSON file. The backend access token never
touches disk in plaintext: it is stored as a Fernet ciphertext next to a
per-installation key file, and legacy plaintext tokens are rewritten on
the first load that sees them.

Precedence, lowest first: file, runtime overrides (``--set``), then the
``DRAFTDESK_*`` environment variables.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Callable, Dict, Mapping

from cryptography.fernet import Fernet, InvalidToken

__all__ = [
    "Settings",
    "SettingsStore",
    "SecretVault",
    "parse_bool",
    "parse_setting",
    "redact_secret",
]

LOGGER = logging.getLogger(__name__)

_SETTINGS_DIR = Path.home() / ".draftdesk"
_DEFAULT_SETTINGS_PATH = _SETTINGS_DIR / "settings.json"
_SETTINGS_VERSION = 1
_TOKEN_FIELD = "access_token_ciphertext"
_LEGACY_TOKEN_FIELD = "access_token"
_TRUE_VALUES = frozenset({"1", "true", "yes", "on", "debug"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off", "disabled"})
_ENV_FIELDS: Mapping[str, str] = {
    "DRAFTDESK_BASE_URL": "base_url",
    "DRAFTDESK_ACCESS_TOKEN": "access_token",
    "DRAFTDESK_STORAGE_DIR": "storage_dir",
    "DRAFTDESK_REQUEST_TIMEOUT": "request_timeout",
    "DRAFTDESK_DRAFT_EXPIRY_DAYS": "draft_expiry_days",
    "DRAFTDESK_DEBUG_LOGGING": "debug_logging",
}


def parse_bool(raw: str) -> bool:
    lowered = raw.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"Cannot read '{raw}' as a boolean.")


def _parse_headers(raw: str) -> dict[str, str]:
    value = json.loads(raw or "{}")
    if not isinstance(value, dict):
        raise ValueError("default_headers must be a JSON object")
    return {str(key): str(item) for key, item in value.items()}


_FIELD_PARSERS: Mapping[str, Callable[[str], Any]] = {
    "base_url": str,
    "access_token": str,
    "request_timeout": float,
    "storage_dir": lambda raw: raw or None,
    "draft_expiry_days": lambda raw: int(raw, 10),
    "debug_logging": parse_bool,
    "default_headers": _parse_headers,
}


def parse_setting(name: str, raw: str) -> Any:
    """Convert the text form of setting ``name`` (from ``--set`` or the environment).

    Raises:
        ValueError: If ``name`` is not a setting or ``raw`` does not parse.
    """

    parser = _FIELD_PARSERS.get(name)
    if parser is None:
        raise ValueError(f"Unknown setting '{name}'.")
    return parser(raw.strip())


@dataclass(slots=True)
class Settings:
    """User-configurable settings persisted between sessions.

    Attributes:
        base_url: Root of the blog backend API; endpoint paths are appended.
        access_token: Bearer token sent with every request, if any.
        request_timeout: Per-request timeout in seconds.
        storage_dir: Directory for the durable draft slot; ``None`` uses
            ``~/.draftdesk/storage``.
        draft_expiry_days: Age after which a saved draft is discarded.
        debug_logging: Turn on DEBUG logging without ``--debug``.
        default_headers: Extra headers added to every request.
    """

    base_url: str = "http://localhost:3001/api/v1"
    access_token: str = ""
    request_timeout: float = 30.0
    storage_dir: str | None = None
    draft_expiry_days: int = 7
    debug_logging: bool = False
    default_headers: dict[str, str] = field(default_factory=dict)

    def storage_path(self) -> Path | None:
        return Path(self.storage_dir).expanduser() if self.storage_dir else None

    def normalized(self) -> Settings:
        """Return a copy with out-of-range values replaced by usable ones."""

        defaults = Settings()
        changes: Dict[str, Any] = {}
        base_url = (self.base_url or "").strip().rstrip("/")
        if not base_url:
            LOGGER.warning("Empty base_url; using %s", defaults.base_url)
            base_url = defaults.base_url
        if base_url != self.base_url:
            changes["base_url"] = base_url
        if self.request_timeout <= 0:
            LOGGER.warning("request_timeout must be positive, got %s", self.request_timeout)
            changes["request_timeout"] = defaults.request_timeout
        if self.draft_expiry_days < 1:
            LOGGER.warning("draft_expiry_days must be at least 1, got %s", self.draft_expiry_days)
            changes["draft_expiry_days"] = defaults.draft_expiry_days
        return replace(self, **changes) if changes else self


class SettingsStore:
    """Reads and writes :class:`Settings` at a single JSON path."""

    def __init__(self, path: Path | None = None, *, vault: SecretVault | None = None) -> None:
        self._path = path or _DEFAULT_SETTINGS_PATH
        self._vault = vault or SecretVault(key_path=self._path.with_suffix(".key"))

    @property
    def path(self) -> Path:
        return self._path

    @property
    def vault(self) -> SecretVault:
        return self._vault

    def load(self, *, overrides: Mapping[str, Any] | None = None) -> Settings:
        """Load settings, then layer runtime overrides and the environment on top."""

        payload = self._read_payload()
        settings, rewrite = self._from_payload(payload) if payload else (Settings(), False)
        if rewrite:
            try:
                self.save(settings)
            except OSError as exc:
                LOGGER.warning("Could not rewrite settings file %s: %s", self._path, exc)

        if overrides:
            settings = _merge(settings, overrides, source="runtime")
        env_overrides = _environment_overrides()
        if env_overrides:
            settings = _merge(settings, env_overrides, source="environment")
        return settings.normalized()

    def save(self, settings: Settings) -> Path:
        """Write settings atomically and return the path written."""

        data = asdict(settings)
        token = data.pop(_LEGACY_TOKEN_FIELD) or ""
        if token:
            data[_TOKEN_FIELD] = self._vault.encrypt(token)
        data["version"] = _SETTINGS_VERSION

        self._path.parent.mkdir(parents=True, exist_ok=True)
        staging = self._path.with_suffix(".tmp")
        staging.write_text(json.dumps(data, indent=2, sort_keys=True), encoding="utf-8")
        staging.replace(self._path)
        LOGGER.debug("Settings saved to %s", self._path)
        return self._path

    def _from_payload(self, payload: Dict[str, Any]) -> tuple[Settings, bool]:
        """Build settings from a file payload; the flag asks for a rewrite."""

        ciphertext = payload.pop(_TOKEN_FIELD, None)
        plaintext = payload.pop(_LEGACY_TOKEN_FIELD, None)
        rewrite = payload.get("version") != _SETTINGS_VERSION

        token = ""
        if ciphertext:
            try:
                token = self._vault.decrypt(ciphertext)
            except ValueError as exc:
                LOGGER.warning("Stored access token could not be decrypted: %s", exc)
        elif plaintext:
            LOGGER.info("Found a plaintext access token; it will be stored encrypted.")
            token = str(plaintext)
            rewrite = True

        known = {item.name for item in fields(Settings)} - {_LEGACY_TOKEN_FIELD}
        values: Dict[str, Any] = {}
        for key, raw in payload.items():
            if key not in known:
                continue
            try:
                values[key] = _file_value(key, raw)
            except ValueError as exc:
                LOGGER.warning("Ignoring %s in %s: %s", key, self._path, exc)
        settings = Settings(**values)
        if token:
            settings = replace(settings, access_token=token)
        return settings, rewrite

    def _read_payload(self) -> Dict[str, Any]:
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except json.JSONDecodeError as exc:
            LOGGER.warning("Settings file %s is not valid JSON: %s", self._path, exc)
            return {}
        if not isinstance(data, dict):
            LOGGER.warning("Settings file %s does not contain an object", self._path)
            return {}
        return data


def _file_value(name: str, value: Any) -> Any:
    """Check a value read from the settings file against its field type.

    Strings are accepted for any field and go through :func:`parse_setting`,
    so a hand-edited ``"30"`` still works.

    Raises:
        ValueError: If the value cannot be used for ``name``.
    """

    if isinstance(value, str):
        return parse_setting(name, value)
    if name == "request_timeout" and isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    if name == "draft_expiry_days" and isinstance(value, int) and not isinstance(value, bool):
        return value
    if name == "debug_logging" and isinstance(value, bool):
        return value
    if name == "storage_dir" and value is None:
        return None
    if name == "default_headers" and isinstance(value, dict):
        return {str(key): str(item) for key, item in value.items()}
    raise ValueError(f"unexpected {type(value).__name__} value {value!r}")


def _merge(settings: Settings, overrides: Mapping[str, Any], *, source: str) -> Settings:
    known = {item.name for item in fields(Settings)}
    accepted = {key: value for key, value in overrides.items() if key in known and value is not None}
    if not accepted:
        return settings
    LOGGER.debug("Applying %s overrides: %s", source, sorted(accepted))
    return replace(settings, **accepted)


def _environment_overrides() -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    for env_name, field_name in _ENV_FIELDS.items():
        raw = os.environ.get(env_name)
        if raw is None:
            continue
        try:
            overrides[field_name] = parse_setting(field_name, raw)
        except ValueError as exc:
            LOGGER.warning("Ignoring %s=%r: %s", env_name, raw, exc)
    return overrides


class SecretVault:
    """Fernet encryption for the access token, keyed by a local key file."""

    strategy = "fernet"

    def __init__(self, *, key_path: Path | None = None) -> None:
        self._key_path = key_path or (_SETTINGS_DIR / "settings.key")
        self._fernet: Fernet | None = None

    def encrypt(self, secret: str) -> str:
        if not secret:
            return ""
        sealed = self._cipher().encrypt(secret.encode("utf-8")).decode("ascii")
        return f"{self.strategy}:{sealed}"

    def decrypt(self, token: str | None) -> str:
        if not token:
            return ""
        prefix, _, sealed = token.partition(":")
        if prefix != self.strategy or not sealed:
            raise ValueError(f"Unknown secret token prefix {prefix!r}")
        try:
            return self._cipher().decrypt(sealed.encode("ascii")).decode("utf-8")
        except InvalidToken as exc:
            raise ValueError("Access token ciphertext is invalid for this key") from exc

    def _cipher(self) -> Fernet:
        if self._fernet is None:
            self._fernet = Fernet(self._key())
        return self._fernet

    def _key(self) -> bytes:
        if self._key_path.exists():
            return self._key_path.read_bytes().strip()
        self._key_path.parent.mkdir(parents=True, exist_ok=True)
        key = Fernet.generate_key()
        staging = self._key_path.with_suffix(".tmp")
        staging.write_bytes(key)
        if os.name != "nt":
            os.chmod(staging, 0o600)
        staging.replace(self._key_path)
        return key


def redact_secret(value: str) -> str:
    """Mask all but the first and last two characters of ``value``."""

    stripped = (value or "").strip()
    if len(stripped) <= 4:
        return "*" * len(stripped)
    return f"{stripped[:2]}{'*' * (len(stripped) - 4)}{stripped[-2:]}"
