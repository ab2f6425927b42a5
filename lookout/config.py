from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict
from .utils.host_config import get_hostname_settings_file


class Settings(BaseSettings):
    # Watched folders (empty = not configured, lifecycle operations fail closed)
    import_directory: str = ""
    import_label: str = "Import"
    failed_directory: str = ""
    failed_label: str = "Failed"

    # Status database
    database_path: str = "data/database.sqlite"
    sqlite_busy_timeout_ms: int = 5000

    # Write access probe
    write_probe_prefix: str = ".write_test_"

    # Expansion copies
    copy_chunk_size_kb: int = 1024

    # Status housekeeping
    status_retention_days: int = 7

    # Logging konfiguration
    log_level: str = "INFO"
    log_file_path: str = "logs/lookout.log"
    log_retention_days: int = 30

    model_config = SettingsConfigDict(
        env_file=get_hostname_settings_file(),
        env_prefix="LOOKOUT_",
        extra="ignore",
    )

    @property
    def log_directory(self) -> Path:
        """Returnerer log directory som Path objekt"""
        return Path(self.log_file_path).parent

    @property
    def copy_chunk_size(self) -> int:
        return self.copy_chunk_size_kb * 1024

    @property
    def config_file_info(self) -> dict:
        """Return information about which configuration file is being used."""
        from .utils.host_config import get_hostname, list_all_settings_files

        return {
            "hostname": get_hostname(),
            "active_config_file": get_hostname_settings_file(),
            "all_available_configs": list_all_settings_files(),
        }
