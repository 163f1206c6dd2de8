"""Domain errors raised by services and translated to HTTP responses by routes."""


class InvoiceValidationError(ValueError):
    """Invoice payload failed validation; nothing was written."""


class InvalidStatusTransition(ValueError):
    """Requested invoice status change is not permitted from the current status."""


class SettingsSchemaError(ValueError):
    """A stored settings row does not match the current settings schema."""
