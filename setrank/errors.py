"""Exception types raised while loading, scoring and ranking item sets."""


class RecordFormatError(ValueError):
    """An item set record cannot be scored (missing fields or non-numeric support / win ratio)."""


class ProfileFormatError(ValueError):
    """A single owned-item profile line cannot be parsed."""


class SourceError(RuntimeError):
    """A corpus or profile source is unreachable or unusable; the run must abort."""
