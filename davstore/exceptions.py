class ConfigError(Exception):
    """Raised when storage settings are missing or malformed

    The errors attribute is a list of (field, message) pairs, one for every
    field that failed validation, so a user can fix them all in one go.
    """
    def __init__(self, errors):
        self.errors = list(errors)
        super().__init__("Invalid storage settings: {}".format(
            "; ".join("{}: {}".format(field, msg) for field, msg in self.errors)
        ))


class RemoteIOError(IOError):
    """Raised for any failure talking to the storage backend

    This covers network errors, authentication failures, missing files and
    server errors alike. Callers get the underlying exception as __cause__
    where there is one. Nothing is retried.
    """
    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code
