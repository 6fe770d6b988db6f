"""Connection configuration for the WikiJS client.

Reads WikiJS connection settings from CLI args, environment variables,
.env files, and YAML config file fallbacks.

Precedence (highest to lowest):
    CLI args > Environment variables > .env file > YAML config > Built-in defaults

Environment variables:
    WIKIJS_URL: WikiJS instance URL (required)
    WIKIJS_API_KEY: WikiJS API key (required)
    WIKIJS_INSECURE: Skip SSL verification (optional, default: false)
    WIKIJS_DEBUG: Enable debug logging (optional, default: false)
    WIKIJS_TIMEOUT: Request read timeout in seconds (optional, default: 30)
"""

import logging
import os
from dataclasses import dataclass
from urllib.parse import urlparse

logger = logging.getLogger(__name__)


@dataclass
class Config:
    wiki_url: str
    api_key: str
    insecure: bool = False
    debug: bool = False
    timeout: float = 30.0
    max_retries: int = 2


def validate_config(config: Config) -> None:
    """Validate configuration values and raise ValueError if invalid.

    Raises:
        ValueError: If URL format is invalid or the API key is empty.
    """
    config.wiki_url = config.wiki_url.strip()

    if not config.wiki_url.startswith(("http://", "https://")):
        raise ValueError(
            f"Invalid WikiJS URL '{config.wiki_url}': must start with http:// or https://"
        )

    parsed = urlparse(config.wiki_url)
    if not parsed.hostname:
        raise ValueError(
            f"Invalid WikiJS URL '{config.wiki_url}': URL must include a hostname"
        )

    config.wiki_url = config.wiki_url.removesuffix("/")

    if not config.api_key.strip():
        raise ValueError(
            "WikiJS API key cannot be empty. Set WIKIJS_API_KEY environment variable."
        )

    if config.insecure:
        logger.warning(
            "WARNING: SSL verification disabled (insecure=True). Use only for development."
        )


def _get_bool_env(key: str) -> bool | None:
    """Return True/False from env var, or None if unset."""
    val = os.getenv(key)
    if val is None:
        return None
    return val.lower() in ("true", "1", "yes", "on")


def load_config(
    url: str | None = None,
    api_key: str | None = None,
    insecure: bool = False,
    debug: bool = False,
    yaml_fallbacks: dict | None = None,
) -> Config:
    """Load configuration with unified precedence.

    Resolution order for each field (highest to lowest):
        CLI arg > env var / .env > yaml_fallbacks > built-in default

    The caller is responsible for calling ``load_dotenv()`` before this
    function so that .env values are available via ``os.getenv()``.

    Args:
        url: Override WikiJS URL.
        api_key: Override API key.
        insecure: Skip SSL verification (CLI flag).
        debug: Enable debug logging (CLI flag).
        yaml_fallbacks: Values from the YAML ``wiki`` section, used when
            CLI arg and env var are both unset.

    Returns:
        Validated Config instance.

    Raises:
        ValueError: If URL or API key is missing after checking all
            sources, or a value is malformed.
    """
    fb = yaml_fallbacks or {}

    wiki_url = url or os.getenv("WIKIJS_URL") or fb.get("url")
    if not wiki_url:
        raise ValueError(
            "WikiJS URL not found. Set WIKIJS_URL environment variable, "
            "pass --url CLI argument, or add 'url' to config.yml."
        )

    wiki_api_key = api_key or os.getenv("WIKIJS_API_KEY") or fb.get("api_key")
    if not wiki_api_key:
        raise ValueError(
            "WikiJS API key not found. Set WIKIJS_API_KEY environment variable, "
            "pass --api-key CLI argument, or add 'api_key' to config.yml."
        )

    if insecure:
        final_insecure = True
    else:
        env_insecure = _get_bool_env("WIKIJS_INSECURE")
        if env_insecure is not None:
            final_insecure = env_insecure
        else:
            final_insecure = bool(fb.get("insecure", False))

    if debug:
        final_debug = True
    else:
        env_debug = _get_bool_env("WIKIJS_DEBUG")
        if env_debug is not None:
            final_debug = env_debug
        else:
            final_debug = bool(fb.get("debug", False))

    timeout_raw = os.getenv("WIKIJS_TIMEOUT")
    if timeout_raw is not None:
        try:
            final_timeout = float(timeout_raw)
        except ValueError:
            raise ValueError(
                f"Invalid WIKIJS_TIMEOUT '{timeout_raw}': must be a number of seconds"
            ) from None
        if final_timeout <= 0:
            raise ValueError(
                f"Invalid WIKIJS_TIMEOUT '{timeout_raw}': must be positive"
            )
    else:
        final_timeout = float(fb.get("timeout", 30.0))

    config = Config(
        wiki_url=wiki_url.strip(),
        api_key=wiki_api_key.strip(),
        insecure=final_insecure,
        debug=final_debug,
        timeout=final_timeout,
        max_retries=int(fb.get("max_retries", 2)),
    )

    validate_config(config)

    return config
