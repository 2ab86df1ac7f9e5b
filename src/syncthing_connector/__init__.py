"""Syncthing connector: a live client-side replica of Syncthing daemons."""

from importlib.metadata import version, PackageNotFoundError

from syncthing_connector.connection import SyncthingConnection
from syncthing_connector.settings import ConnectionSettings

try:
    __version__ = version("syncthing-connector")
except PackageNotFoundError:
    __version__ = "0.1.0"  # fallback for editable installs / development

__all__ = ["ConnectionSettings", "SyncthingConnection", "__version__"]
