"""
Exception hierarchy.

Most engine operations report failure by returning None; exceptions are
reserved for construction-time misuse that has no absent value to return.
"""


class TensorLogicError(Exception):
    """Base class for all engine exceptions."""
    pass


class ConfigurationError(TensorLogicError, ValueError):
    """Raised when a store or engine is created with invalid dimensions."""
    pass
