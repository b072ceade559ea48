"""Read-only selectors returning DTOs."""

from planning_kernel.selectors.base import BaseSelector
from planning_kernel.selectors.downtime_selector import DowntimeSelector
from planning_kernel.selectors.hierarchy_selector import HierarchySelector
from planning_kernel.selectors.inventory_selector import InventorySelector

__all__ = [
    "BaseSelector",
    "HierarchySelector",
    "DowntimeSelector",
    "InventorySelector",
]
