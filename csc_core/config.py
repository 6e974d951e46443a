# =============================================================================
# csc_core/config.py
# Environment-driven configuration for the CSC ERP core
# =============================================================================
"""
Configuration is read from the process environment, optionally seeded from a
``.env`` file. Remote (Supabase) credentials are optional: without them the
system runs in pure-local mode.

Expected variables:
    SUPABASE_URL / SUPABASE_KEY           remote endpoint and key
    VITE_SUPABASE_URL / VITE_SUPABASE_ANON_KEY   accepted as fallbacks
    CSC_LOCAL_DB_PATH                     SQLite file for the local mirror
    CSC_SCHEMA_VERSION                    local schema version stamp
    CSC_LOG_LEVEL / CSC_LOG_TO_FILE       logging setup
"""

from __future__ import annotations
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple

from dotenv import load_dotenv

from csc_core.errors import ConfigurationError
from csc_core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_DB_PATH = Path(__file__).parent.parent / "local_data" / "csc_erp.db"

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass
class ErpConfig:
    """Resolved runtime configuration."""
    supabase_url: str = ""
    supabase_key: str = ""
    local_db_path: Path = field(default_factory=lambda: DEFAULT_DB_PATH)
    schema_version: int = 1
    log_level: str = "INFO"
    log_to_file: bool = False

    @property
    def remote_configured(self) -> bool:
        return bool(self.supabase_url) and bool(self.supabase_key)


def _secrets_credentials() -> Tuple[str, str]:
    """Read [supabase] url/key from Streamlit secrets if a secrets file exists."""
    try:
        import streamlit as st

        if "supabase" in st.secrets:
            return (
                str(st.secrets["supabase"].get("url", "")),
                str(st.secrets["supabase"].get("key", "")),
            )
    except Exception as e:
        # No secrets.toml is the normal case outside Streamlit Cloud
        logger.debug(f"Streamlit secrets not available: {e}")
    return "", ""


def load_config(env_file: Optional[str] = None) -> ErpConfig:
    """
    Build an ErpConfig from the environment.

    Args:
        env_file: Optional path to a .env file (defaults to ./.env lookup)

    Returns:
        ErpConfig
    """
    load_dotenv(env_file, override=False)

    url = os.getenv("SUPABASE_URL") or os.getenv("VITE_SUPABASE_URL") or ""
    key = os.getenv("SUPABASE_KEY") or os.getenv("VITE_SUPABASE_ANON_KEY") or ""
    if not (url and key):
        secret_url, secret_key = _secrets_credentials()
        url = url or secret_url
        key = key or secret_key

    raw_version = os.getenv("CSC_SCHEMA_VERSION", "1")
    try:
        schema_version = int(raw_version)
    except ValueError:
        raise ConfigurationError(
            f"CSC_SCHEMA_VERSION must be an integer, got {raw_version!r}",
            config_key="CSC_SCHEMA_VERSION",
            expected_type="int",
        )

    db_path = os.getenv("CSC_LOCAL_DB_PATH")

    config = ErpConfig(
        supabase_url=url.strip(),
        supabase_key=key.strip(),
        local_db_path=Path(db_path) if db_path else DEFAULT_DB_PATH,
        schema_version=schema_version,
        log_level=os.getenv("CSC_LOG_LEVEL", "INFO"),
        log_to_file=os.getenv("CSC_LOG_TO_FILE", "").strip().lower() in _TRUTHY,
    )

    if config.remote_configured:
        logger.info("Remote store configured")
    else:
        logger.info("Remote store not configured, running in local-only mode")

    return config
