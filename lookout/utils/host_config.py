"""
Host-specific configuration file selection.

Several lookout instances often share one checkout (one per ingest server),
so each host may carry its own ``<hostname>-settings.env`` next to the shared
``settings.env``.
"""

import logging
import os
import socket
from pathlib import Path

SETTINGS_FILE_ENV = "LOOKOUT_SETTINGS_FILE"
BASE_SETTINGS_FILE = "settings.env"


def get_hostname() -> str:
    """Get the current hostname (without domain)."""
    return socket.gethostname().split(".")[0]


def get_hostname_settings_file() -> str:
    """
    Pick the settings file for this host.

    Order:
    1. ``$LOOKOUT_SETTINGS_FILE`` if set
    2. ``{hostname}-settings.env`` if it exists
    3. ``settings.env`` (may not exist; pydantic-settings then reads env only)
    """
    explicit = os.environ.get(SETTINGS_FILE_ENV)
    if explicit:
        return explicit

    try:
        host_settings = Path(f"{get_hostname()}-settings.env")
    except OSError as e:
        logging.warning(f"Could not resolve hostname for settings lookup: {e}")
        return BASE_SETTINGS_FILE

    if host_settings.exists():
        logging.debug(f"Using host-specific configuration: {host_settings}")
        return str(host_settings)

    return BASE_SETTINGS_FILE


def list_all_settings_files() -> list[str]:
    """List all available settings files (base + host-specific)."""
    settings_files = []

    if Path(BASE_SETTINGS_FILE).exists():
        settings_files.append(BASE_SETTINGS_FILE)

    for file_path in Path(".").glob("*-settings.env"):
        settings_files.append(str(file_path))

    return settings_files
