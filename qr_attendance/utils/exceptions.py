"""Custom exception classes."""


class PersistenceError(Exception):
    """Raised when a value cannot be written to the key-value store."""
    pass


class FileWriteError(PersistenceError):
    """Raised when unable to write to JSON file."""
    pass


class EncodingFault(Exception):
    """Raised when a validated session cannot be turned into a QR payload."""
    pass
