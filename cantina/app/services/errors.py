class BookingError(Exception):
    """Base class for domain errors raised by the service layer."""


class BookingValidationError(BookingError):
    """Client input that cannot be turned into a booking."""


class TableUnavailableError(BookingError):
    def __init__(self, message: str = "Table not available for selected date"):
        super().__init__(message)


class BookingPersistenceError(BookingError):
    def __init__(self, message: str = "Failed to create booking"):
        super().__init__(message)


class PricingConflictError(BookingError):
    """Two or more active pricing rules tie for the top priority on a date."""

    def __init__(self, table_type_id: str, on_date, rule_ids: list[str]):
        self.table_type_id = table_type_id
        self.on_date = on_date
        self.rule_ids = rule_ids
        super().__init__(
            f"Ambiguous pricing for table type {table_type_id} on {on_date}: "
            f"rules {', '.join(rule_ids)} share the same priority"
        )


class DraftNotFoundError(BookingError):
    def __init__(self, token: str):
        self.token = token
        super().__init__("Booking draft not found or expired")


class AmbiguousBottleError(BookingError):
    """A SKU-or-name lookup matched several bottles."""

    def __init__(self, query: str, candidates: list):
        self.query = query
        self.candidates = candidates
        super().__init__(f"Several bottles match '{query}'")


class NotFoundError(BookingError):
    pass
