"""Directory and ledger services."""

from planning_kernel.services.base import BaseService
from planning_kernel.services.downtime_ledger import DowntimeLedger
from planning_kernel.services.hierarchy_directory import (
    DivisionDirectory,
    HierarchyDirectory,
    LineDirectory,
    LocationDirectory,
)
from planning_kernel.services.inventory_ledger import InventoryLedger

__all__ = [
    "BaseService",
    "HierarchyDirectory",
    "LocationDirectory",
    "DivisionDirectory",
    "LineDirectory",
    "DowntimeLedger",
    "InventoryLedger",
]
