"""
Typed exception hierarchy for the inventory costing kernel.

Every error has a typed class (catch by type, not by message), a ``code``
attribute (machine-readable), and structured data fields.

    InventoryKernelError (base)
    |
    +-- ValidationError
    |   +-- MalformedItemEntryError
    |   +-- NotInventoryItemError
    |   +-- UnknownCostMethodError
    |
    +-- ItemError
    |   +-- ItemNotFoundError
    |
    +-- InventoryError
    |   +-- InsufficientInventoryError
    |
    +-- ConcurrencyError
    |   +-- CostComputeAlreadyRunningError
    |
    +-- JobError
    |   +-- JobNotFoundError
    |   +-- InvalidScheduleDelayError
    |
    +-- ConfigurationError

Storage failures are NOT wrapped: SQLAlchemy exceptions (IntegrityError,
OperationalError, ...) propagate unchanged to the caller or job runtime.

Code            | When raised
----------------|----------------------------------------------------------
MALFORMED_ITEM_ENTRY   | Entry lacks item_id, quantity or rate
NOT_INVENTORY_ITEM     | Cost computation requested for non-inventory item
UNKNOWN_COST_METHOD    | Item cost method has no registered strategy
ITEM_NOT_FOUND         | Item id does not exist for the tenant
INSUFFICIENT_INVENTORY | OUT quantity exceeds open lots (FIFO/LIFO)
COST_COMPUTE_RUNNING   | Tenant already has a compute pass in flight
JOB_NOT_FOUND          | Job id does not exist
INVALID_SCHEDULE_DELAY | Delay string cannot be parsed
CONFIGURATION_ERROR    | Config value missing or of the wrong type
"""

from datetime import date
from decimal import Decimal


class InventoryKernelError(Exception):
    """
    Base exception for all inventory kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "INVENTORY_KERNEL_ERROR"


# Validation exceptions


class ValidationError(InventoryKernelError):
    """Base exception for input that fails domain validation."""

    code: str = "VALIDATION_ERROR"


class MalformedItemEntryError(ValidationError):
    """An item entry is missing a field required to build a transaction."""

    code: str = "MALFORMED_ITEM_ENTRY"

    def __init__(self, entry_id: str | None, missing_fields: tuple[str, ...]):
        self.entry_id = entry_id
        self.missing_fields = missing_fields
        super().__init__(
            f"Item entry {entry_id} is missing required fields: "
            f"{', '.join(missing_fields)}"
        )


class NotInventoryItemError(ValidationError):
    """Cost computation was requested for an item that is not inventory."""

    code: str = "NOT_INVENTORY_ITEM"

    def __init__(self, item_id: str, item_type: str):
        self.item_id = item_id
        self.item_type = item_type
        super().__init__(
            f"Cannot compute cost of item {item_id}: "
            f"type is '{item_type}', not 'inventory'"
        )


class UnknownCostMethodError(ValidationError):
    """The item's cost method has no registered strategy."""

    code: str = "UNKNOWN_COST_METHOD"

    def __init__(self, cost_method: str, available: list[str]):
        self.cost_method = cost_method
        self.available = available
        super().__init__(
            f"No cost strategy registered for method '{cost_method}'. "
            f"Available: {', '.join(available)}"
        )


# Item exceptions


class ItemError(InventoryKernelError):
    """Base exception for item lookups."""

    code: str = "ITEM_ERROR"


class ItemNotFoundError(ItemError):
    """Item does not exist for the tenant."""

    code: str = "ITEM_NOT_FOUND"

    def __init__(self, tenant_id: int, item_id: str):
        self.tenant_id = tenant_id
        self.item_id = item_id
        super().__init__(f"Item {item_id} not found for tenant {tenant_id}")


# Inventory exceptions


class InventoryError(InventoryKernelError):
    """Base exception for inventory quantity errors."""

    code: str = "INVENTORY_ERROR"


class InsufficientInventoryError(InventoryError):
    """
    An outbound transaction exceeds the quantity held in open lots.

    Raised by the lot-tracking (FIFO/LIFO) cost strategy.  The weighted
    average strategy tolerates negative stock.
    """

    code: str = "INSUFFICIENT_INVENTORY"

    def __init__(
        self,
        item_id: str,
        requested: Decimal,
        available: Decimal,
        on_date: date | None = None,
    ):
        self.item_id = item_id
        self.requested = requested
        self.available = available
        self.on_date = on_date
        super().__init__(
            f"Insufficient inventory for item {item_id}"
            f"{f' on {on_date}' if on_date else ''}: "
            f"requested {requested}, available {available}"
        )


# Concurrency exceptions


class ConcurrencyError(InventoryKernelError):
    """Base exception for concurrency-related errors."""

    code: str = "CONCURRENCY_ERROR"


class CostComputeAlreadyRunningError(ConcurrencyError):
    """A cost computation pass is already in flight for the tenant."""

    code: str = "COST_COMPUTE_RUNNING"

    def __init__(self, tenant_id: int):
        self.tenant_id = tenant_id
        super().__init__(
            f"Item cost computation is already running for tenant {tenant_id}"
        )


# Job exceptions


class JobError(InventoryKernelError):
    """Base exception for the delayed job queue."""

    code: str = "JOB_ERROR"


class JobNotFoundError(JobError):
    """Job id does not exist."""

    code: str = "JOB_NOT_FOUND"

    def __init__(self, job_id: str):
        self.job_id = job_id
        super().__init__(f"Compute job not found: {job_id}")


class InvalidScheduleDelayError(JobError):
    """Delay expression cannot be parsed."""

    code: str = "INVALID_SCHEDULE_DELAY"

    def __init__(self, expression: str):
        self.expression = expression
        super().__init__(
            f"Invalid schedule delay '{expression}': expected 'now' or "
            "'<amount> <seconds|minutes|hours|days>'"
        )


# Configuration exceptions


class ConfigurationError(InventoryKernelError):
    """Configuration value is missing or invalid."""

    code: str = "CONFIGURATION_ERROR"

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Invalid configuration '{key}': {reason}")
