"""
Planning Kernel

The computational core of a manufacturing operations-planning console:
- Location -> Division -> Line hierarchy with soft delete
- Line downtime lifecycle (pending / approved / cancelled)
- Capacity-hours lost to approved downtime, with partial-impact weighting
- Multi-stage inventory with an append-only stock-transaction ledger
"""

__version__ = "0.1.0"
