"""
Loads the Dynaconf settings object for the bundle service.
This module is the single source of truth for all configuration.

Values come from `config/settings.toml`, secrets from
`config/.secrets.toml`, and any value can be overridden with a
`BUNDLE_`-prefixed environment variable, e.g. `BUNDLE_REDIS__URL`.
"""

from pathlib import Path
from dynaconf import Dynaconf

PROJECT_ROOT = Path(__file__).parent.parent


def load_settings(**overrides) -> Dynaconf:
    """Builds the settings object; keyword overrides take precedence."""
    return Dynaconf(
        root_path=PROJECT_ROOT,
        settings_files=["config/settings.toml"],
        secrets="config/.secrets.toml",
        envvar_prefix="BUNDLE",
        merge_enabled=True,
        load_dotenv=False,
        environments=False,
        **overrides,
    )
