# errors.py
from __future__ import annotations


class PatirError(Exception):
    """Base class for all errors raised by patir."""
    pass


class ParameterError(PatirError, ValueError):
    """Raised when a command is constructed without its required parameters."""
    pass


class ConfigurationError(PatirError, RuntimeError):
    """
    Raised when a configuration file cannot be loaded.

    Causes include invalid syntax, unknown directives or errors raised
    while the file is evaluated. The original exception is chained.
    """
    pass
