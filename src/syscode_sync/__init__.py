"""SysCode group membership sync for the asset-management API."""

__version__ = "1.0.0"
