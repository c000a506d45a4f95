"""
Typed Exception Hierarchy for the POS Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

A stock take touches authoritative inventory.  Callers (a REST handler, a
terminal UI) need to react differently to "the user typed garbage into a
count field" and "the database refused the write".  Generic exceptions like
ValueError force callers to parse messages, which is fragile and hard to
test.

Every error here:
  1. Has its own class (catch by type, not message)
  2. Has a CODE class attribute (machine-readable, API-safe)
  3. Carries structured DATA as attributes (not just a message string)

Example - WRONG way to handle errors:
    try:
        service.finalize(session_id, actor_id)
    except Exception as e:
        if "nothing" in str(e):  # FRAGILE
            show_toast("No variances to apply")

Example - RIGHT way:
    try:
        service.finalize(session_id, actor_id)
    except NothingToFinalizeError as e:
        show_toast(f"Stock take {e.stock_take_id} has no variances")
    except PersistenceFailureError as e:
        show_toast(f"Inventory update failed, try again ({e.code})")

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    PosKernelError (base)
    |
    +-- ValidationError
    |   +-- InvalidCountError
    |   +-- ProductNotInSessionError
    |
    +-- StockTakeError
    |   +-- StockTakeNotFoundError
    |   +-- SessionClosedError
    |   +-- NothingToFinalizeError
    |   +-- CancellationNotConfirmedError
    |
    +-- ConcurrencyError
    |   +-- ConcurrentStockTakeError
    |
    +-- PersistenceError
        +-- PersistenceFailureError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category     | Code                        | When Raised
-------------|-----------------------------|-----------------------------------------
Validation   | INVALID_COUNT               | Count is non-numeric, negative, fractional
             | PRODUCT_NOT_IN_SESSION      | Product absent from the session snapshot
-------------|-----------------------------|-----------------------------------------
Stock take   | STOCK_TAKE_NOT_FOUND        | Session ID doesn't exist
             | SESSION_CLOSED              | Mutation on completed/cancelled session
             | NOTHING_TO_FINALIZE         | Finalize with zero variance lines
             | CANCELLATION_NOT_CONFIRMED  | Cancel without explicit confirmation
-------------|-----------------------------|-----------------------------------------
Concurrency  | CONCURRENT_STOCK_TAKE       | Location already has an open session
-------------|-----------------------------|-----------------------------------------
Persistence  | PERSISTENCE_FAILURE         | Inventory write failed during finalize

===============================================================================
HANDLING PATTERNS
===============================================================================

1. VALIDATION ERRORS are local.  Show them inline next to the field; the
   session state is unchanged, so there is nothing to recover.

2. SESSION ERRORS mean the user is looking at a stale screen.  Reload the
   session and show its current status.

3. PERSISTENCE ERRORS are retryable.  The finalize transaction was rolled
   back as a unit and the session is still ``in_progress``:

    try:
        service.finalize(session_id, actor_id)
    except PersistenceFailureError:
        # nothing was applied; offer "retry"
        ...

===============================================================================
"""


class PosKernelError(Exception):
    """
    Base exception for all POS kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "POS_KERNEL_ERROR"


# Validation exceptions


class ValidationError(PosKernelError):
    """Base exception for rejected user input."""

    code: str = "VALIDATION_ERROR"


class InvalidCountError(ValidationError):
    """A counted quantity is not a non-negative integer."""

    code: str = "INVALID_COUNT"

    def __init__(self, product_id: str, value: object, reason: str):
        self.product_id = product_id
        self.value = repr(value)
        self.reason = reason
        super().__init__(
            f"Invalid count {value!r} for product {product_id}: {reason}"
        )


class ProductNotInSessionError(ValidationError):
    """The product was not part of the stock take's snapshot."""

    code: str = "PRODUCT_NOT_IN_SESSION"

    def __init__(self, stock_take_id: str, product_id: str):
        self.stock_take_id = stock_take_id
        self.product_id = product_id
        super().__init__(
            f"Product {product_id} is not part of stock take {stock_take_id}"
        )


# Stock-take lifecycle exceptions


class StockTakeError(PosKernelError):
    """Base exception for stock-take lifecycle errors."""

    code: str = "STOCK_TAKE_ERROR"


class StockTakeNotFoundError(StockTakeError):
    """Stock take with given ID was not found."""

    code: str = "STOCK_TAKE_NOT_FOUND"

    def __init__(self, stock_take_id: str):
        self.stock_take_id = stock_take_id
        super().__init__(f"Stock take not found: {stock_take_id}")


class SessionClosedError(StockTakeError):
    """
    Mutating operation attempted on a completed or cancelled stock take.

    Completed and cancelled are terminal states; nothing may change a
    session once it reaches one of them.
    """

    code: str = "SESSION_CLOSED"

    def __init__(self, stock_take_id: str, status: str, action: str):
        self.stock_take_id = stock_take_id
        self.status = status
        self.action = action
        super().__init__(
            f"Stock take {stock_take_id} is {status}; cannot {action}"
        )


class NothingToFinalizeError(StockTakeError):
    """Finalize was requested but no counted line differs from its snapshot."""

    code: str = "NOTHING_TO_FINALIZE"

    def __init__(self, stock_take_id: str, counted_lines: int):
        self.stock_take_id = stock_take_id
        self.counted_lines = counted_lines
        super().__init__(
            f"Nothing to finalize for stock take {stock_take_id}: "
            f"{counted_lines} counted line(s), none with a variance"
        )


class CancellationNotConfirmedError(StockTakeError):
    """Cancel discards every entered count and must be confirmed explicitly."""

    code: str = "CANCELLATION_NOT_CONFIRMED"

    def __init__(self, stock_take_id: str, counted_lines: int):
        self.stock_take_id = stock_take_id
        self.counted_lines = counted_lines
        super().__init__(
            f"Cancelling stock take {stock_take_id} discards "
            f"{counted_lines} counted line(s); confirmation required"
        )


# Concurrency exceptions


class ConcurrencyError(PosKernelError):
    """Base exception for concurrency conflicts."""

    code: str = "CONCURRENCY_ERROR"


class ConcurrentStockTakeError(ConcurrencyError):
    """A location already has an open stock take."""

    code: str = "CONCURRENT_STOCK_TAKE"

    def __init__(self, location: str, open_stock_take_id: str):
        self.location = location
        self.open_stock_take_id = open_stock_take_id
        super().__init__(
            f"Location '{location}' already has an open stock take "
            f"{open_stock_take_id}"
        )


# Persistence exceptions


class PersistenceError(PosKernelError):
    """Base exception for storage failures."""

    code: str = "PERSISTENCE_ERROR"


class PersistenceFailureError(PersistenceError):
    """
    The inventory store rejected a write while finalizing.

    The finalize transaction is rolled back as a whole; the stock take stays
    ``in_progress`` and can be finalized again.
    """

    code: str = "PERSISTENCE_FAILURE"

    def __init__(self, stock_take_id: str, operation: str, detail: str):
        self.stock_take_id = stock_take_id
        self.operation = operation
        self.detail = detail
        super().__init__(
            f"Persistence failure during {operation} of stock take "
            f"{stock_take_id}: {detail}"
        )
