"""ArangoDB storage connector for a real-time data platform."""

__version__ = "0.1.0"

# Expose submodules for easier imports and to support unittest.mock patching
from . import common  # noqa: E402
from . import storage  # noqa: E402
from .connector import Connector, ConnectorState  # noqa: E402

__all__ = ["Connector", "ConnectorState", "common", "storage", "__version__"]
