import os

from dotenv import find_dotenv, load_dotenv

from paytrack.logger import get_logger

logger = get_logger(__name__)


CONFIG_FILENAME = "config.yaml"

_CONFIG_KEYS = (
    "LOG_LEVEL",
    "LOG_DIR",
    "DATA_DIR",
    "OPENAI_API_KEY",
    "OPENAI_MODEL",
    "OPENAI_BASE_URL",
    "DEFAULT_SHEET_URL",
    "SYNC_TIMEOUT",
    "MAX_UPLOAD_BYTES",
)


def _resolve_dotenv_path() -> str | None:
    config_dir = os.getenv("CONFIG_DIR")
    if config_dir:
        candidate = os.path.join(config_dir, ".env")
        if os.path.exists(candidate):
            return candidate
    resolved = find_dotenv(usecwd=True)
    return resolved or None


def _resolve_config_path() -> str:
    config_dir = os.getenv("CONFIG_DIR")
    if config_dir:
        return os.path.join(config_dir, CONFIG_FILENAME)
    cwd = os.getcwd()
    candidate = os.path.join(cwd, "config", CONFIG_FILENAME)
    if os.path.exists(candidate):
        return candidate
    return os.path.join(cwd, CONFIG_FILENAME)


def _clean_value(raw_value: str) -> str:
    """Drop a trailing ``# comment`` and surrounding quotes from a config value."""
    value = raw_value.strip()
    if value[:1] in {'"', "'"}:
        quote = value[0]
        end = value.find(quote, 1)
        if end > 0:
            return value[1:end]
        return value[1:]
    marker = value.find(" #")
    if marker >= 0:
        value = value[:marker]
    return value.strip()


def read_config_file(path: str | None) -> dict[str, str]:
    """Read flat ``KEY: value`` lines; nested YAML is not supported."""
    if not path or not os.path.exists(path):
        return {}

    values: dict[str, str] = {}
    with open(path, encoding="utf-8") as handle:
        for line in handle:
            stripped = line.strip()
            if not stripped or stripped.startswith("#") or ":" not in stripped:
                continue
            key, raw_value = stripped.split(":", 1)
            key = key.strip()
            value = _clean_value(raw_value)
            if key and value:
                values[key] = value
    return values


def load_environment() -> None:
    dotenv_path = _resolve_dotenv_path()
    if dotenv_path:
        load_dotenv(dotenv_path=dotenv_path, override=False)

    config_values = read_config_file(_resolve_config_path())

    for key in _CONFIG_KEYS:
        if key not in os.environ and key in config_values:
            os.environ[key] = config_values[key]


def ensure_dirs(*paths: str | None) -> None:
    for path in paths:
        if path and path not in {".", "./"}:
            os.makedirs(path, exist_ok=True)


def get_env_int(name: str, default: int, min_value: int | None = None) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("[ENV] Invalid %s='%s', using default %s.", name, raw, default)
        return default
    if min_value is not None and value < min_value:
        logger.warning(
            "[ENV] %s='%s' below minimum %s, using default %s.",
            name,
            raw,
            min_value,
            default,
        )
        return default
    return value


def get_env_float(name: str, default: float | None = None) -> float | None:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("[ENV] Invalid %s='%s', using default %s.", name, raw, default)
        return default


_SENSITIVE_ENV_KEYS = (
    "KEY",
    "TOKEN",
    "SECRET",
    "PASSWORD",
    "AUTH",
)

_ENV_KEYS_TO_LOG = (
    "LOG_LEVEL",
    "DATA_DIR",
    "OPENAI_API_KEY",
    "OPENAI_MODEL",
    "OPENAI_BASE_URL",
    "DEFAULT_SHEET_URL",
    "SYNC_TIMEOUT",
    "MAX_UPLOAD_BYTES",
)


def _mask_env_value(name: str, value: str) -> str:
    sanitized = value.replace("\r", "\\r").replace("\n", "\\n")
    upper_name = name.upper()
    sensitive = any(marker in upper_name for marker in _SENSITIVE_ENV_KEYS)
    if not sensitive and not sanitized.startswith(("sk-", "Bearer ")):
        return sanitized
    if len(sanitized) <= 4:
        return "****"
    return f"{sanitized[:2]}...{sanitized[-2:]}"


def log_environment() -> None:
    logger.info("[ENV] Logging configured environment variables (masked where needed).")
    for key in _ENV_KEYS_TO_LOG:
        raw_value = os.getenv(key)
        value = "<unset>" if raw_value is None else _mask_env_value(key, raw_value)
        logger.info("[ENV] %s=%s", key, value)


DEFAULT_OPENAI_MODEL = "gpt-4o-mini"
DEFAULT_SHEET_URL = "https://docs.google.com/spreadsheets/"
DEFAULT_MAX_UPLOAD_BYTES = 10 * 1024 * 1024
ACTIVITY_LOG_LIMIT = 15

SETTINGS_KEY = "paytrack_settings"
HISTORY_KEY = "paytrack_history"


load_environment()

DATA_DIR = os.getenv("DATA_DIR", ".")
LOG_DIR = os.getenv("LOG_DIR")
CONFIG_DIR = os.getenv("CONFIG_DIR")

ensure_dirs(DATA_DIR, LOG_DIR, CONFIG_DIR)


def get_default_sheet_url() -> str:
    return os.getenv("DEFAULT_SHEET_URL") or DEFAULT_SHEET_URL


def get_openai_model() -> str:
    return os.getenv("OPENAI_MODEL") or DEFAULT_OPENAI_MODEL


def get_max_upload_bytes() -> int:
    return get_env_int("MAX_UPLOAD_BYTES", DEFAULT_MAX_UPLOAD_BYTES, min_value=1)


def get_sync_timeout() -> float | None:
    timeout = get_env_float("SYNC_TIMEOUT")
    if timeout is not None and timeout <= 0:
        return None
    return timeout
