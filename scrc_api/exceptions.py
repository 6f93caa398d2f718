"""
Domain exceptions raised by the service layer.
Routes translate these into HTTP errors.
"""


class StoreError(Exception):
    """Base class for persistence errors."""


class RecordNotFound(StoreError):
    """No record matches the requested identity."""


class BackendFailure(StoreError):
    """The database or blob store rejected an operation."""


class InvalidAlbumName(ValueError):
    """Album name is empty after sanitization."""


class AlbumAlreadyExists(StoreError):
    pass
