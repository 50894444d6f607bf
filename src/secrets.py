"""Provider credentials kept outside version control.

`local_secrets.json` (or the file named by `LOCAL_SECRETS_FILE`) is the last
fallback after CLI flags and environment variables. Recognized keys::

    {
      "crunchbase_api_key": "<key for the Crunchbase v4 API>",
      "github_tokens": ["<token>", "<token>"]   # or "tok1,tok2"
    }

One GitHub client is built per token, so the token count bounds how many
repositories are fetched at once.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

DEFAULT_SECRETS_FILENAME = "local_secrets.json"
SECRETS_FILE_ENV = "LOCAL_SECRETS_FILE"

CRUNCHBASE_API_KEY_SECRET = "crunchbase_api_key"
GITHUB_TOKENS_SECRET = "github_tokens"


def _default_secrets_path() -> Path:
    return Path(__file__).resolve().parents[1] / DEFAULT_SECRETS_FILENAME


def load_local_secrets(path: Optional[str | Path] = None) -> Dict[str, Any]:
    """Return the credentials mapping, or {} when the file is absent or unreadable."""
    secrets_path = Path(path or os.getenv(SECRETS_FILE_ENV) or _default_secrets_path()).expanduser()
    if not secrets_path.is_file():
        return {}
    try:
        data = json.loads(secrets_path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        print(f"[warn] ignoring unreadable secrets file {secrets_path}: {exc}")
        return {}
    if not isinstance(data, dict):
        print(f"[warn] ignoring secrets file {secrets_path}: expected a JSON object")
        return {}
    return data


def split_tokens(raw: Any) -> List[str]:
    """Normalize a comma-separated string (or list) of GitHub tokens, dropping blanks."""
    if not raw:
        return []
    parts = raw.split(",") if isinstance(raw, str) else list(raw)
    return [str(part).strip() for part in parts if str(part).strip()]


__all__ = [
    "DEFAULT_SECRETS_FILENAME",
    "SECRETS_FILE_ENV",
    "CRUNCHBASE_API_KEY_SECRET",
    "GITHUB_TOKENS_SECRET",
    "load_local_secrets",
    "split_tokens",
]
