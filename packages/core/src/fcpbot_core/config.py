import os
from pathlib import Path
from typing import Optional, Union

import yaml

from fcpbot_core.feed import DEFAULT_FEED_URL

DEFAULT_CONFIG: dict = {
    "feed_url": DEFAULT_FEED_URL,
    "targets": [],  # channel usernames ("@rust_fcp") or chat ids, in delivery order
    "send_delay": 2.0,  # seconds to wait after every send/edit attempt
    "request_timeout": 30,
    "store": "sqlite",  # sqlite | gist | memory
    "store_path": ".fcpbot.db",
    "gist_id": None,
}


def parse_targets(value: Union[str, list, None]) -> list:
    """Normalize the targets option into an ordered list of channel ids.

    Accepts a comma-delimited string ("@a, @b") or a list. Entries are trimmed
    and blanks dropped; order is preserved.
    """
    if value is None:
        return []
    items = value.split(",") if isinstance(value, str) else value
    return [str(item).strip() for item in items if str(item).strip()]


def load_config(config_path: str = ".fcpbot.yml", cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. .fcpbot.yml in the current directory
      3. FCPBOT_TARGETS, when set, replaces the targets list
      4. CLI argument overrides
    """
    config = {**DEFAULT_CONFIG, "targets": list(DEFAULT_CONFIG["targets"])}

    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            file_config = yaml.safe_load(f) or {}
        config.update(file_config)

    env_targets = os.environ.get("FCPBOT_TARGETS")
    if env_targets:
        config["targets"] = env_targets

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    config["targets"] = parse_targets(config.get("targets"))

    # Resolve credentials from environment variables
    config["bot_token"] = os.environ.get("TG_BOT_TOKEN", "").strip() or None
    config["github_token"] = os.environ.get("GITHUB_TOKEN")

    return config
