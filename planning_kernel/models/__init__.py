"""ORM models for the planning kernel."""

from planning_kernel.models.division import Division
from planning_kernel.models.downtime import LineDowntime
from planning_kernel.models.inventory import Inventory, InventoryTransaction
from planning_kernel.models.line import Line
from planning_kernel.models.location import Location

__all__ = [
    "Location",
    "Division",
    "Line",
    "LineDowntime",
    "Inventory",
    "InventoryTransaction",
]
