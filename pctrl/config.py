#  pctrl - Configuration
#
#  Loads config.json and provides typed access to all settings.
#  Dot-notation path lookup: cfg("scripts.timeout_sec")
#
#  Depends on: config.json (optional), PCTRL_* environment variables
#  Used by:    all pctrl modules

import json
import os
from pathlib import Path

# ---------------------------------------------------------------------------
# Path resolution
# ---------------------------------------------------------------------------

HOME_DIR = Path(os.environ.get("PCTRL_HOME", Path.home() / ".config" / "pctrl"))
CONFIG_PATH = Path(os.environ.get("PCTRL_CONFIG", HOME_DIR / "config.json"))

# ---------------------------------------------------------------------------
# Load config
# ---------------------------------------------------------------------------

_config: dict = {}


def _load_config(path: Path | None = None):
    """Load configuration from JSON file (internal, called once at import time).

    Module-level constants below are snapshots from _config.
    Do not call this function after import: constants won't update.
    """
    global _config
    config_path = path or CONFIG_PATH
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")
    with open(config_path) as f:
        _config = json.load(f)


# Auto-load if config exists at import time
if CONFIG_PATH.exists():
    _load_config()


def cfg(path: str, default=None):
    """Get a config value by dot-notation path.

    Example: cfg("probes.timeout_sec") -> 5.0
    """
    keys = path.split(".")
    val = _config
    for key in keys:
        if isinstance(val, dict) and key in val:
            val = val[key]
        else:
            return default
    return val


# ---------------------------------------------------------------------------
# Convenience constants
# ---------------------------------------------------------------------------

# Database
DB_PATH = Path(os.environ.get("PCTRL_DB", cfg("database.path", str(HOME_DIR / "pctrl.db"))))

# Encryption passphrase: environment only, never read from config.json
PASSPHRASE = os.environ.get("PCTRL_PASSPHRASE", "")

# Logging
LOG_LEVEL = cfg("logging.level", "WARNING")
LOG_FORMAT = cfg("logging.format", "text")

# Health probes
PROBE_TIMEOUT = cfg("probes.timeout_sec", 5.0)
PROBE_DEFAULT_SSH_PORT = cfg("probes.default_ssh_port", 22)

# Scripts
SCRIPT_TIMEOUT = cfg("scripts.timeout_sec", 300)
SCRIPT_OUTPUT_MAX_BYTES = cfg("scripts.output_max_bytes", 64 * 1024)

# Collaborators
GIT_COMMAND_TIMEOUT = cfg("git.timeout_sec", 30)
SSH_CONNECT_TIMEOUT = cfg("ssh.connect_timeout_sec", 5)


# ---------------------------------------------------------------------------
# Startup validation
# ---------------------------------------------------------------------------

def validate_config():
    """Validate config values. Call at CLI startup (not at import time).

    Raises ConfigError for fatal issues, logs warnings for non-fatal ones.
    """
    import logging
    _logger = logging.getLogger("pctrl.config")

    # Fatal: probes must give up within single-digit seconds
    if not isinstance(PROBE_TIMEOUT, (int, float)) or not (0 < PROBE_TIMEOUT < 10):
        raise ConfigError(f"probes.timeout_sec must be > 0 and < 10, got {PROBE_TIMEOUT}")

    if not isinstance(PROBE_DEFAULT_SSH_PORT, int) or not (1 <= PROBE_DEFAULT_SSH_PORT <= 65535):
        raise ConfigError(f"probes.default_ssh_port must be 1-65535, got {PROBE_DEFAULT_SSH_PORT}")

    # Fatal: script limits must be positive
    for label, val in [("scripts.timeout_sec", SCRIPT_TIMEOUT),
                       ("scripts.output_max_bytes", SCRIPT_OUTPUT_MAX_BYTES),
                       ("git.timeout_sec", GIT_COMMAND_TIMEOUT)]:
        if not isinstance(val, (int, float)) or val <= 0:
            raise ConfigError(f"{label} must be > 0, got {val}")

    if LOG_FORMAT not in ("json", "text"):
        raise ConfigError(f"logging.format must be 'json' or 'text', got '{LOG_FORMAT}'")

    # Warning: credentials are only encrypted when a passphrase is set
    if not PASSPHRASE:
        _logger.warning(
            "PCTRL_PASSPHRASE is not set. Credentials will be stored unencrypted."
        )


class ConfigError(Exception):
    """Raised when critical configuration is invalid."""
