import json
import logging
import os

from data_models import MAX_CANDIDATES

# --- CONFIGURATION ---
CONFIG_ENV_VAR = "BALLOT_CONFIG"
CONFIG_PATH = "election_config.json"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

DEFAULTS = {
    "ledger_path": None,
    "voter_roll_path": "voters.csv",
    "default_duration_hours": 24,
    "max_candidates": MAX_CANDIDATES,
    "log_level": "INFO",
}


def config_path():
    return os.environ.get(CONFIG_ENV_VAR, CONFIG_PATH)


def load_config(path=None):
    """Read the JSON config file, filling in defaults for any missing key."""
    path = path or config_path()
    data = dict(DEFAULTS)
    if os.path.exists(path):
        with open(path, 'r') as f:
            stored = json.load(f)
        if not isinstance(stored, dict):
            raise ValueError(f"config file {path} must contain a JSON object")
        data.update(stored)
    return data


def save_config(config, path=None):
    path = path or config_path()
    with open(path, 'w') as f:
        json.dump(config, f, indent=4, sort_keys=True)


def configure_logging(level="INFO"):
    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
    root.setLevel(level.upper() if isinstance(level, str) else level)
