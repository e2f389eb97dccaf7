"""Custom exceptions for the offer desk application."""


class OfferDeskError(Exception):
    """Base exception for all application errors."""
    def __init__(self, message="An internal error occurred", status_code=500, payload=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

    def to_dict(self):
        rv = dict(self.payload or ())
        rv['message'] = self.message
        rv['status'] = 'error'
        return rv


class AuthError(OfferDeskError):
    """Raised when no tenant can be resolved from the caller's credential."""
    def __init__(self, message="Authentication required", payload=None):
        super().__init__(message, 401, payload)


class StructuralError(OfferDeskError):
    """Raised when a payload lacks required nested structure."""
    def __init__(self, message, payload=None):
        super().__init__(message, 400, payload)


class ValidationError(OfferDeskError):
    """Raised for numeric and business-rule violations."""
    def __init__(self, message, status_code=400, payload=None):
        super().__init__(message, status_code, payload)


class BreakupTotalMismatchError(ValidationError):
    """Raised when the size breakup quantities do not add up to the grand total."""
    def __init__(self, computed_total, grand_total):
        from offerdesk.utils.number_format import format_number

        self.computed_total = computed_total
        self.grand_total = grand_total
        message = (
            f"Validation failed: Sum of all size breakups ({format_number(computed_total)}) "
            f"does not equal grand total ({format_number(grand_total)})"
        )
        super().__init__(message, payload={
            'computed_total': str(computed_total),
            'grand_total': str(grand_total),
        })


class NotFoundError(OfferDeskError):
    """Exception raised when a resource is not found."""
    def __init__(self, message="Resource not found", payload=None):
        super().__init__(message, 404, payload)


class DeliveryError(OfferDeskError):
    """Raised when an explicitly requested email could not be delivered."""
    def __init__(self, message="Failed to send email", payload=None):
        super().__init__(message, 502, payload)


class PartialWriteWarning:
    """
    A nested offer item that could not be copied during promotion.

    Never raised: the promoter logs it and reports it alongside the offer.
    """

    def __init__(self, offer_id, product_name, size=None, reason=None):
        self.offer_id = offer_id
        self.product_name = product_name
        self.size = size
        self.reason = reason

    @property
    def message(self):
        item = f"size breakup '{self.size}' of product '{self.product_name}'" if self.size else f"product '{self.product_name}'"
        return f"Offer {self.offer_id}: could not copy {item} ({self.reason})"

    def to_dict(self):
        rv = {'offer_id': self.offer_id, 'product_name': self.product_name, 'message': self.message}
        if self.size:
            rv['size'] = self.size
        return rv

    def __repr__(self):
        return f"<PartialWriteWarning(offer_id={self.offer_id}, product='{self.product_name}', size={self.size!r})>"
