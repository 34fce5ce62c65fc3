"""Exception types raised when callers break the staging-date input contract."""


class InvalidInputError(ValueError):
    """Raised for caller contract violations (bad workflow, unparsable timestamps)."""

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"Invalid input: {detail}")
