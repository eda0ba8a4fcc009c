"""GitHub token resolution with gh CLI fallback.

Only the Gist ledger backend needs a GitHub token. Falling back to the local
GitHub CLI session lets a developer who has run `gh auth login` inspect the
ledger with `fcpbot status` without exporting anything.

Resolution order (stops at first success):
  1. GITHUB_TOKEN environment variable
  2. `gh auth token`
"""

from __future__ import annotations

import logging
import os
import subprocess

logger = logging.getLogger(__name__)


def resolve_github_token() -> str | None:
    """Return a GitHub token from GITHUB_TOKEN or `gh auth token`, or None.

    Never raises; callers decide whether a missing token is fatal.
    """
    token = os.environ.get("GITHUB_TOKEN")
    if token:
        return token

    try:
        result = subprocess.run(
            ["gh", "auth", "token"],
            capture_output=True,
            text=True,
            timeout=5,
        )
    except (FileNotFoundError, subprocess.TimeoutExpired):
        return None

    if result.returncode == 0 and result.stdout.strip():
        logger.debug("Resolved GitHub token via gh CLI session.")
        return result.stdout.strip()
    return None
