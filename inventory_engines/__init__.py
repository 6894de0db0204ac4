"""
Module: inventory_engines
Responsibility:
    Pure cost math for inventory valuation: FIFO/LIFO lot matching and the
    weighted moving average.  The stateful strategies that load and persist
    rows live in inventory_services.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import inventory_kernel domain types, exceptions and logging.
    MUST NOT import inventory_services or inventory_batch.

Invariants enforced:
    - Determinism: identical inputs always produce identical outputs.
    - Decimal-only arithmetic; floats are never used for quantities or rates.
"""

from inventory_engines.average_cost import (
    AveragePosition,
    AverageReplay,
    blend,
    issue,
    replay_average,
)
from inventory_engines.lot_tracking import (
    LOT_METHODS,
    LotReplay,
    OpenLot,
    consume_lots,
    consumption_order,
    receive_lot,
    replay_lots,
)

__all__ = [
    "AveragePosition",
    "AverageReplay",
    "LOT_METHODS",
    "LotReplay",
    "OpenLot",
    "blend",
    "consume_lots",
    "consumption_order",
    "issue",
    "receive_lot",
    "replay_average",
    "replay_lots",
]
