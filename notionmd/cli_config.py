"""Locate and load the .env file used by the command-line entry points."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Optional

# Shipped next to the package in source checkouts and editable installs.
ENV_TEMPLATE = Path(__file__).resolve().parent.parent / ".env.example"


def load_config(
    *,
    config_dir: Path,
    config_env_file: Path,
    cwd: Path,
    load_env: Callable[[Path], bool],
    copy_file: Callable[[Path, Path], object],
    template: Path = ENV_TEMPLATE,
) -> Optional[Path]:
    """Load the first .env found and return its path.

    ``cwd/.env`` is tried before ``config_env_file``. When neither exists,
    ``template`` is copied to ``config_env_file`` so the user has a file to
    put NOTIONMD_TOKEN_V2 in, and the copy is loaded.
    """
    for candidate in (cwd / ".env", config_env_file):
        if candidate.is_file():
            load_env(candidate)
            return candidate

    if not template.is_file():
        return None
    try:
        config_dir.mkdir(parents=True, exist_ok=True)
        copy_file(template, config_env_file)
    except OSError as exc:
        logging.debug("Could not create %s: %s", config_env_file, exc)
        return None
    logging.info(
        "Created %s from .env.example; set NOTIONMD_TOKEN_V2 there to export private pages.",
        config_env_file,
    )
    load_env(config_env_file)
    return config_env_file
