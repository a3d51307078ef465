class OrderPlacementError(Exception):
    """Base for checkout failures; ``code`` is what views branch on."""

    code = "error"

    def __init__(self, message: str, *, code: str | None = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code


class CheckoutValidationError(OrderPlacementError):
    code = "validation"

    def __init__(self, message: str, *, field: str | None = None):
        super().__init__(message)
        self.field = field


class PersistenceError(OrderPlacementError):
    code = "persistence"


class PermissionDeniedError(PersistenceError):
    code = "permission_denied"


class PartialFailure(PersistenceError):
    """Header written but dependent rows failed. Placement writes atomically, so this is not raised there."""

    code = "partial_failure"


class NonFatalSideEffectFailure(OrderPlacementError):
    """Recorded on the attempt as a warning; never propagated to callers."""

    code = "side_effect"
