from __future__ import annotations

import os
from pathlib import Path


CONFIG_PATH = Path(os.environ.get("CONFIG_PATH", "/config/repos.json"))
LOCK_PATH = Path(os.environ.get("LOCK_PATH", f"{CONFIG_PATH}.lock"))

LOCK_TIMEOUT_S = float(os.environ.get("LOCK_TIMEOUT_S", "10"))
LOCK_POLL_S = float(os.environ.get("LOCK_POLL_S", "0.05"))

REGISTRY_NAME = os.environ.get("REGISTRY_NAME", "repo registry")
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

CORS_ORIGINS = [
    o.strip()
    for o in os.environ.get("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").split(",")
    if o.strip()
]
