"""Import all tool sub-modules so their @mcp.tool decorators run at import time."""

from syncthing_connector.tools import devices  # noqa: F401
from syncthing_connector.tools import folders  # noqa: F401
from syncthing_connector.tools import status  # noqa: F401
from syncthing_connector.tools import system  # noqa: F401
