# arbsim/errors.py

class ArbitrageError(Exception):
    """Base class for everything the simulator raises on purpose."""

class ConfigurationError(ArbitrageError):
    """Bad trading parameters or a malformed config file. Raised before a run starts."""

class InputError(ArbitrageError):
    """The price series cannot be replayed as given (e.g. length mismatch)."""
