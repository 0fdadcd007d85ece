import os

from dotenv import find_dotenv, load_dotenv

from keyword_categorizer.logger import get_logger

logger = get_logger(__name__)


CONFIG_FILENAME = "config.yaml"

DEFAULT_MEMORY_THRESHOLD = 90.0
DEFAULT_KEYWORD_THRESHOLD = 0.5
DEFAULT_TFIDF_THRESHOLD = 0.5
DEFAULT_MIN_KEYWORD_LENGTH = 3

_CONFIG_FILE_PATH: str | None = None
_CONFIG_FILE_VALUES: dict[str, str] = {}

_CONFIG_KEYS = (
    "LOG_LEVEL",
    "MATCHER_LOG_LEVEL",
    "LOG_DIR",
    "DATA_DIR",
    "MEMORY_THRESHOLD",
    "KEYWORD_THRESHOLD",
    "TFIDF_THRESHOLD",
    "MIN_KEYWORD_LENGTH",
    "FALSE_POSITIVES_PATH",
)


def _resolve_dotenv_path() -> str | None:
    config_dir = os.getenv("CONFIG_DIR")
    if config_dir:
        candidate = os.path.join(config_dir, ".env")
        if os.path.exists(candidate):
            return candidate
    return find_dotenv(usecwd=True) or None


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
    value = raw_value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in {'"', "'"}:
        return value[1:-1]
    # Unquoted values may carry a trailing comment
    if " #" in value:
        value = value.split(" #", 1)[0].rstrip()
    return value


def read_config_file(path: str | None) -> dict[str, str]:
    """Read flat ``KEY: value`` pairs from a yaml-style config file."""
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
    global _CONFIG_FILE_PATH
    global _CONFIG_FILE_VALUES

    dotenv_path = _resolve_dotenv_path()
    if dotenv_path:
        load_dotenv(dotenv_path=dotenv_path, override=False)

    _CONFIG_FILE_PATH = _resolve_config_path()
    _CONFIG_FILE_VALUES = read_config_file(_CONFIG_FILE_PATH)

    for key in _CONFIG_KEYS:
        if key not in os.environ and key in _CONFIG_FILE_VALUES:
            os.environ[key] = _CONFIG_FILE_VALUES[key]


def get_config_path() -> str | None:
    return _CONFIG_FILE_PATH


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


def get_env_float(
    name: str,
    default: float,
    min_value: float | None = None,
    max_value: float | None = None,
) -> float:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("[ENV] Invalid %s='%s', using default %s.", name, raw, default)
        return default
    if (min_value is not None and value < min_value) or (max_value is not None and value > max_value):
        logger.warning(
            "[ENV] %s='%s' outside [%s, %s], using default %s.",
            name,
            raw,
            min_value,
            max_value,
            default,
        )
        return default
    return value


def log_environment() -> None:
    logger.info("[ENV] Effective configuration (config file: %s).", get_config_path() or "<none>")
    for key in _CONFIG_KEYS:
        raw_value = os.getenv(key)
        logger.info("[ENV] %s=%s", key, "<unset>" if raw_value is None else raw_value)


load_environment()

DATA_DIR = os.getenv("DATA_DIR", ".")
LOG_DIR = os.getenv("LOG_DIR")
CONFIG_DIR = os.getenv("CONFIG_DIR")

ensure_dirs(DATA_DIR, LOG_DIR, CONFIG_DIR)


def memory_threshold() -> float:
    return get_env_float("MEMORY_THRESHOLD", DEFAULT_MEMORY_THRESHOLD, min_value=0.0, max_value=100.0)


def keyword_threshold() -> float:
    return get_env_float("KEYWORD_THRESHOLD", DEFAULT_KEYWORD_THRESHOLD, min_value=0.0, max_value=1.0)


def tfidf_threshold() -> float:
    return get_env_float("TFIDF_THRESHOLD", DEFAULT_TFIDF_THRESHOLD, min_value=0.0, max_value=1.0)


def min_keyword_length() -> int:
    return get_env_int("MIN_KEYWORD_LENGTH", DEFAULT_MIN_KEYWORD_LENGTH, min_value=1)


def false_positives_path() -> str | None:
    return os.getenv("FALSE_POSITIVES_PATH") or None
