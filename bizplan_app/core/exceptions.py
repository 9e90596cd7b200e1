class BizplanError(Exception):
    """Base class for all errors raised by bizplan_app."""


class CatalogValidationError(BizplanError, ValueError):
    """The metric catalog is malformed (duplicate keys, bad month coverage, bad enum values)."""


class InvalidMetricReference(BizplanError):
    """A formula or summary entry names a metric key that is not in the catalog."""
