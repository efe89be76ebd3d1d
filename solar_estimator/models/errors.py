"""Exception types raised by the Solar Estimator engine."""

UNRECOGNIZED_LOCATION = "unrecognized location"


class InvalidInputError(ValueError):
    """Raised when an input prevents a trustworthy estimate.

    Attributes:
        kind: Machine-readable category (e.g., "unrecognized location").
        value: The offending input value.
    """

    def __init__(self, message: str, kind: str = "", value=None):
        super().__init__(message)
        self.kind = kind
        self.value = value
