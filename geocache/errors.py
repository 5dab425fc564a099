import geocache


class GeocacheError(Exception):
    """Base class for all geocache-specific exceptions.
    It automatically appends the geocache version to help with debugging reports.
    """

    def __init__(self, message: str):
        self.geocache_version = getattr(geocache, "__version__", "unknown")
        # Store the original message cleanly for programmatic access
        self.original_message = message
        full_message = f"[geocache {self.geocache_version}] {message}"
        super().__init__(full_message)


class ConfigurationError(GeocacheError):
    """Raised when world parameters are invalid or missing."""

    def __init__(self, param_name: str = None, reason: str = None):
        # Allow flexible usage: raise ConfigurationError("Generic message")
        # OR: raise ConfigurationError("tile_width", "must be positive")
        if param_name and reason:
            message = f"Invalid configuration for '{param_name}': {reason}"
            self.param_name = param_name
        else:
            message = param_name if param_name else "Invalid configuration"
            self.param_name = None

        super().__init__(message)


# Cache Errors
class CacheError(GeocacheError):
    """Generic errors related to interacting with a cache.

    These are expected during normal play and are recoverable.
    """

    def __init__(self, cell, message: str):
        self.cell = cell
        super().__init__(message)


class NoCacheError(CacheError):
    """Raised when a cell holds no cache, because the generator declined to spawn one."""

    def __init__(self, cell):
        super().__init__(cell, f"No cache at cell {cell}.")


class EmptyCacheError(CacheError):
    """Raised when collecting from a cache that has no coins left."""

    def __init__(self, cell):
        super().__init__(cell, f"Cache at cell {cell} is empty.")


class NoHeldCoinsError(CacheError):
    """Raised when depositing while the observer holds no coins."""

    def __init__(self, cell):
        super().__init__(cell, f"Nothing held to deposit into cache at cell {cell}.")


# Persistence Errors
class VersionMismatchError(GeocacheError):
    """Raised when a memento or snapshot carries an unsupported format version."""

    def __init__(self, found, supported):
        self.found = found
        self.supported = supported
        message = f"Unsupported format version {found!r}, expected {supported!r}."
        super().__init__(message)

    @classmethod
    def check(cls, found, supported: int) -> None:
        """Raise unless found is exactly the supported integer version.

        Booleans and floats such as ``True`` or ``1.0`` compare equal to 1 but are
        not accepted as a version.
        """
        if type(found) is not int or found != supported:
            raise cls(found, supported)
