"""Adapters for SysCode group membership.

Concrete implementations of the domain ports.
"""

from .api_gateway import ApiAssetGateway, ApiGroupGateway
from .csv_reader import REQUIRED_COLUMNS, CsvDeviceReader, parse_device_csv

__all__ = [
    "ApiGroupGateway",
    "ApiAssetGateway",
    "CsvDeviceReader",
    "parse_device_csv",
    "REQUIRED_COLUMNS",
]
