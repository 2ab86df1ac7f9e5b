"""Instance registry: load Syncthing connections from environment variables."""

import json
import os

from syncthing_connector.client import SyncthingClient
from syncthing_connector.connection import SyncthingConnection
from syncthing_connector.errors import TransportError
from syncthing_connector.settings import ConnectionSettings

# single-instance mode: environment variable -> ConnectionSettings field
_INTERVAL_VARS = {
    "SYNCTHING_RECONNECT_INTERVAL": "reconnect_interval",
    "SYNCTHING_TRAFFIC_POLL_INTERVAL": "traffic_poll_interval",
    "SYNCTHING_DEV_STATS_POLL_INTERVAL": "dev_stats_poll_interval",
    "SYNCTHING_DIR_STATS_POLL_INTERVAL": "dir_stats_poll_interval",
}


def load_settings() -> dict[str, ConnectionSettings]:
    """Build per-instance settings from environment variables.

    Supports two modes:
      - Multi-instance via SYNCTHING_INSTANCES (JSON object of settings)
      - Single-instance via SYNCTHING_API_KEY + SYNCTHING_URL
    """
    instances_json = os.environ.get("SYNCTHING_INSTANCES", "").strip()

    if instances_json:
        try:
            cfg = json.loads(instances_json)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Invalid SYNCTHING_INSTANCES JSON: {exc}") from exc
        if not isinstance(cfg, dict) or not cfg:
            raise ValueError("SYNCTHING_INSTANCES must be a non-empty JSON object.")
        settings: dict[str, ConnectionSettings] = {}
        for name, entry in cfg.items():
            if not isinstance(entry, dict):
                raise ValueError(f"Instance '{name}' config must be a JSON object.")
            entry = dict(entry)
            # "url" is accepted as a short form of "syncthing_url"
            if "url" in entry:
                entry["syncthing_url"] = entry.pop("url")
            settings[name] = ConnectionSettings(**entry)
        return settings

    values: dict[str, object] = {
        "syncthing_url": os.environ.get("SYNCTHING_URL", "http://localhost:8384"),
        "api_key": os.environ.get("SYNCTHING_API_KEY", ""),
    }
    for var, field in _INTERVAL_VARS.items():
        raw = os.environ.get(var, "").strip()
        if not raw:
            continue
        try:
            values[field] = int(raw)
        except ValueError as exc:
            raise ValueError(f"{var} must be an integer (milliseconds), got {raw!r}") from exc
    return {"default": ConnectionSettings(**values)}


def load_instances() -> dict[str, SyncthingConnection]:
    """One (not yet connected) SyncthingConnection per configured instance."""
    return {
        name: SyncthingConnection(SyncthingClient(name), settings)
        for name, settings in load_settings().items()
    }


# Module-level registry, initialised at import time.
_instances: dict[str, SyncthingConnection] = load_instances()


def get_instance(instance: str | None = None) -> SyncthingConnection:
    """Resolve an instance by name, or auto-select when there is only one."""
    if instance is None:
        if len(_instances) == 1:
            return next(iter(_instances.values()))
        names = list(_instances.keys())
        raise ValueError(
            f"Multiple instances configured ({names}). "
            "Specify 'instance' parameter to choose one."
        )
    if instance not in _instances:
        raise ValueError(
            f"Instance '{instance}' not found. Available: {list(_instances.keys())}"
        )
    return _instances[instance]


def get_all_instances() -> dict[str, SyncthingConnection]:
    """Return the full instance registry."""
    return _instances


def handle_error_global(e: Exception) -> str:
    """Fallback error handler when instance cannot be determined."""
    if isinstance(e, TransportError) and not e.canceled:
        # already formatted by SyncthingClient.handle_error
        return str(e)
    if isinstance(e, ValueError):
        return f"Error: {e}"
    return f"Error: {type(e).__name__}: {e}"


def reload_instances() -> None:
    """Re-read environment and rebuild the instance registry (for testing)."""
    global _instances
    for connection in _instances.values():
        connection.close()
    _instances = load_instances()
