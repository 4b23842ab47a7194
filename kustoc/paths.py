from __future__ import annotations

import os
from pathlib import Path

APP_ENV_HOME = "KUSTOC_HOME"
APP_ENV_DB = "KUSTOC_DB"
APP_ENV_UPLOADS = "KUSTOC_UPLOADS"
APP_ENV_CONFIG = "KUSTOC_CONFIG_DIR"


def project_root() -> Path:
    """
    Repository/project root directory.
    Contains kustoc/, api/, cli/, tests/.
    """
    return Path(__file__).parent.parent.resolve()


def app_home() -> Path:
    """
    User-writable home for Kustoc.
    Override with KUSTOC_HOME.
    """
    if os.environ.get(APP_ENV_HOME):
        return Path(os.environ[APP_ENV_HOME]).expanduser().resolve()
    return (Path.home() / ".kustoc").resolve()


def config_dir() -> Path:
    if os.environ.get(APP_ENV_CONFIG):
        d = Path(os.environ[APP_ENV_CONFIG]).expanduser().resolve()
    else:
        d = app_home() / "config"
    d.mkdir(parents=True, exist_ok=True)
    return d


def data_dir() -> Path:
    d = app_home() / "data"
    d.mkdir(parents=True, exist_ok=True)
    return d


def db_path() -> Path:
    """
    Canonical DB path for kustoc.

    Resolution order:
    1. KUSTOC_DB env var (explicit override)
    2. ~/.kustoc/data/kustoc.db (default)
    """
    if os.environ.get(APP_ENV_DB):
        return Path(os.environ[APP_ENV_DB]).expanduser().resolve()
    return data_dir() / "kustoc.db"


def uploads_dir() -> Path:
    """Directory for interaction attachments and jump images."""
    if os.environ.get(APP_ENV_UPLOADS):
        d = Path(os.environ[APP_ENV_UPLOADS]).expanduser().resolve()
    else:
        d = app_home() / "uploads"
    d.mkdir(parents=True, exist_ok=True)
    return d
