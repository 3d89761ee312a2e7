"""
Domain exceptions raised by services and the persistence layer.
"""


class InvalidStateTransition(ValueError):
    """Invoice status cannot be advanced from its current value."""

    def __init__(self, current: str, message: str):
        super().__init__(message)
        self.current = current
        self.message = message


class InvoiceNumberConflict(RuntimeError):
    """Another writer took the same invoice number first."""

    retryable = True

    def __init__(self, invoice_number: str):
        super().__init__(f"Invoice number already taken: {invoice_number}")
        self.invoice_number = invoice_number


class NotFoundError(LookupError):
    """Requested entity does not exist."""

    def __init__(self, entity: str, entity_id: str):
        super().__init__(f"{entity} not found: {entity_id}")
        self.entity = entity
        self.entity_id = entity_id
