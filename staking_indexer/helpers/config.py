"""Configuration management and environment variable utilities."""

import os

from dotenv import load_dotenv

from staking_indexer.helpers.constants import DEFAULT_TOKEN_DECIMALS


# Load environment variables from .env file
load_dotenv()


def get_required_env(key: str) -> str:
    """Get a required environment variable.

    Args:
        key: Environment variable name

    Returns:
        Environment variable value

    Raises:
        ValueError: If the environment variable is not set

    Example:
        ```python
        from staking_indexer.helpers.config import get_required_env

        postgre_host = get_required_env("POSTGRE_HOST")
        ```
    """
    value = os.getenv(key)
    if not value:
        msg = f"{key} environment variable is not set"
        raise ValueError(msg)
    return value


def get_optional_env(key: str, default: str | None = None) -> str | None:
    """Get an optional environment variable with a default value.

    Args:
        key: Environment variable name
        default: Default value if not set

    Returns:
        Environment variable value or default
    """
    return os.getenv(key, default)


def get_token_decimals(token_decimals: int | None = None) -> int:
    """Get the chain token decimals from parameter or environment.

    Args:
        token_decimals: Optional decimals to use directly

    Returns:
        Number of decimals of the native token (planck -> token)

    Raises:
        ValueError: If TOKEN_DECIMALS is not a non-negative integer

    Example:
        ```python
        from staking_indexer.helpers.config import get_token_decimals

        # Get from environment (defaults to 12)
        decimals = get_token_decimals()

        # Or provide explicitly
        decimals = get_token_decimals(18)
        ```
    """
    if token_decimals is None:
        raw = os.getenv("TOKEN_DECIMALS", str(DEFAULT_TOKEN_DECIMALS))
        try:
            token_decimals = int(raw)
        except ValueError:
            msg = f"TOKEN_DECIMALS must be an integer, got {raw!r}"
            raise ValueError(msg) from None

    if token_decimals < 0:
        msg = f"TOKEN_DECIMALS must be non-negative, got {token_decimals}"
        raise ValueError(msg)

    return token_decimals


def get_log_level() -> str:
    """Get the configured log level (LOG_LEVEL, defaults to INFO)."""
    return os.getenv("LOG_LEVEL", "INFO").upper()


__all__ = [
    "get_log_level",
    "get_optional_env",
    "get_required_env",
    "get_token_decimals",
]
