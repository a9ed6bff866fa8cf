# src/augcurve/env.py
from __future__ import annotations

import os
from pathlib import Path
from typing import List, Optional

from dotenv import dotenv_values

ENV_PREFIX = "AUGCURVE_"


def load_dotenv_if_present(dotenv_path: Optional[str] = None) -> List[str]:
    """Copy AUGCURVE_* settings from a .env file into os.environ.

    The file is `dotenv_path`, else AUGCURVE_DOTENV_PATH, else ./.env. Keys
    without the AUGCURVE_ prefix are ignored, and variables already set in
    the environment win over the file. Returns the keys that were set.
    """
    path = Path(dotenv_path or os.getenv("AUGCURVE_DOTENV_PATH", ".env")).expanduser()
    if not path.is_file():
        return []

    applied: List[str] = []
    for key, value in dotenv_values(path).items():
        if not key.startswith(ENV_PREFIX) or value is None or key in os.environ:
            continue
        os.environ[key] = value
        applied.append(key)
    return sorted(applied)
