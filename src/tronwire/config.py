"""
Client configuration.

Values come from the environment, optionally seeded from a ``.env`` file
(default: ~/.tronwire/.env). Explicit environment variables win over the
file.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Default config directory
TRONWIRE_DIR = Path.home() / ".tronwire"
TRONWIRE_ENV = TRONWIRE_DIR / ".env"

DEFAULT_ENDPOINT = "https://api.trongrid.io"
DEFAULT_TIMEOUT = 5.0
API_KEY_HEADER = "TRON-PRO-API-KEY"


@dataclass(frozen=True)
class ClientConfig:
    """
    Settings for ``TronClient``.

    Attributes:
        endpoint: Full-node HTTP API base URL
        api_key: Sent as the ``TRON-PRO-API-KEY`` header when set
        timeout: Per-request timeout in seconds
        max_retries: Attempts per request (transport errors, 429 and 5xx)
        backoff_seconds: Linear backoff step between attempts
        default_fee_limit: Fee limit (sun) applied to contract calls that
            don't pass their own; 0 leaves the node default
    """
    endpoint: str = DEFAULT_ENDPOINT
    api_key: Optional[str] = None
    timeout: float = DEFAULT_TIMEOUT
    max_retries: int = 3
    backoff_seconds: float = 0.5
    default_fee_limit: int = 0

    def __post_init__(self) -> None:
        if not self.endpoint or not self.endpoint.strip():
            raise ValueError("endpoint must be a non-empty string.")
        if self.timeout <= 0:
            raise ValueError("timeout must be positive.")
        if self.max_retries < 1:
            raise ValueError("max_retries must be at least 1.")
        if self.default_fee_limit < 0:
            raise ValueError("default_fee_limit must not be negative.")


def load_config(env_path: Optional[Path] = None) -> ClientConfig:
    """
    Load configuration from the environment.

    Args:
        env_path: ``.env`` file to read first (default: ~/.tronwire/.env)

    Returns:
        A validated ClientConfig
    """
    env_path = env_path or TRONWIRE_ENV
    if env_path.exists():
        load_dotenv(env_path, override=False)

    return ClientConfig(
        endpoint=os.getenv("TRON_ENDPOINT", DEFAULT_ENDPOINT).rstrip("/"),
        api_key=os.getenv("TRON_API_KEY") or None,
        timeout=float(os.getenv("TRON_TIMEOUT", str(DEFAULT_TIMEOUT))),
        max_retries=int(os.getenv("TRON_MAX_RETRIES", "3")),
        backoff_seconds=float(os.getenv("TRON_BACKOFF_SECONDS", "0.5")),
        default_fee_limit=int(os.getenv("TRON_FEE_LIMIT", "0")),
    )
