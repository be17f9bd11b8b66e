"""Device inventory management from YAML configuration."""
import logging
from pathlib import Path
from typing import Optional

import yaml

from ..devices import create_client, Client

logger = logging.getLogger(__name__)


class DeviceInventory:
    """Manages the device inventory loaded from YAML config.

    ```yaml
    defaults:
      username: netconf
      port: 830
      password_env: JUNOS_PASSWORD
    devices:
      srx-edge:
        ip: 192.0.2.1
      ex-access:
        ip: 192.0.2.2
        commit_confirmed: 5
    ```
    """

    def __init__(self, config_path: Optional[str] = None):
        self.config_path = config_path or self._find_config()
        self._config: dict = {}
        self._clients: dict[str, Client] = {}
        self._load_config()

    def _find_config(self) -> str:
        """Find the devices.yaml config file."""
        search_paths = [
            Path.cwd() / "configs" / "devices.yaml",
            Path.cwd() / "devices.yaml",
            Path.home() / ".config" / "junos-config-sync" / "devices.yaml",
            Path("/etc/junos-config-sync/devices.yaml"),
        ]

        for path in search_paths:
            if path.exists():
                return str(path)

        raise FileNotFoundError(
            "Could not find devices.yaml. Create one in ./configs/devices.yaml"
        )

    def _load_config(self) -> None:
        """Load the YAML configuration."""
        with open(self.config_path) as f:
            self._config = yaml.safe_load(f) or {}

        defaults = self._config.get("defaults", {}) or {}
        for device_id, device_config in self._config.get("devices", {}).items():
            if device_config is None:
                device_config = self._config["devices"][device_id] = {}
            for key, value in defaults.items():
                if key not in device_config:
                    device_config[key] = value
        logger.debug(f"Loaded {len(self.get_device_ids())} devices from {self.config_path}")

    def get_device_ids(self) -> list[str]:
        """Get all device IDs."""
        return list(self._config.get("devices", {}).keys())

    def get_device_config(self, device_id: str) -> dict:
        """Get raw config for a device."""
        devices = self._config.get("devices", {})
        if device_id not in devices:
            raise KeyError(f"Unknown device: {device_id}")
        return devices[device_id]

    def get_client(self, device_id: str) -> Client:
        """Get or create the client of a device."""
        if device_id not in self._clients:
            config = self.get_device_config(device_id)
            self._clients[device_id] = create_client(device_id, config)
        return self._clients[device_id]
