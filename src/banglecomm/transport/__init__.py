"""BLE transport layer."""

from .connection import BLEConnection
from .flow import FlowController

__all__ = ["BLEConnection", "FlowController"]
