"""Exception types raised by the resolution pipeline."""


class HistoricDetectiveError(Exception):
    """Base class for all Historic Detective errors."""


class InvalidInput(HistoricDetectiveError, ValueError):
    """Malformed or ambiguous request (unknown modality, missing payload).

    Fatal to the request it belongs to.
    """


class AdapterError(HistoricDetectiveError):
    """An adapter failed to produce a result.

    Never aborts a request: the dispatcher records it as an error result.
    """

    def __init__(self, source: str, message: str) -> None:
        super().__init__(f"{source}: {message}")
        self.source = source
        self.message = message


class DimensionMismatch(HistoricDetectiveError, ValueError):
    """Query vector length differs from the index dimension."""

    def __init__(self, expected: int, actual: int) -> None:
        super().__init__(f"expected vector of length {expected}, got {actual}")
        self.expected = expected
        self.actual = actual
