from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import List
import logging

class Settings(BaseSettings):
    # Logging level: DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_level: str = "INFO"

    # Value of the app.kubernetes.io/managed-by label stamped on every object we build
    managed_by: str = "cass-operator"

    # Server image resolution
    # Used when a datacenter does not pin an explicit image
    default_server_repository: str = "datastax/dse-server"
    # Comma-separated list of server versions we know how to run
    supported_server_versions: str = "6.7.3,6.7.4,6.7.5,6.7.7,6.8.0"

    @property
    def supported_server_version_list(self) -> List[str]:
        """Get supported server versions as a list."""
        return [v.strip() for v in self.supported_server_versions.split(",") if v.strip()]

    # Init container that expands CONFIG_FILE_DATA into the shared config volume
    config_builder_image: str = "datastax/dse-server-config-builder:7.0.0-3e8847c"

    # Sidecar that tails the server log
    system_logger_image: str = "busybox"

    # Pod identity
    default_service_account: str = "default"
    server_user_id: int = 999

    # Scheduling
    # Node label carrying the availability zone (racks are pinned to it)
    zone_label_key: str = "failure-domain.beta.kubernetes.io/zone"
    hostname_topology_key: str = "kubernetes.io/hostname"

    # Datacenter custom resource coordinates
    datacenter_crd_group: str = "cassandra.datastax.com"
    datacenter_crd_version: str = "v1alpha1"
    datacenter_crd_plural: str = "cassandradatacenters"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"  # Ignore extra fields from .env file
        case_sensitive = False  # Allow lowercase env vars to match uppercase field names

@lru_cache()
def get_settings():
    return Settings()


def configure_logging(settings: Settings = None) -> None:
    """Apply the configured log level and format to the root logger."""
    settings = settings or get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
