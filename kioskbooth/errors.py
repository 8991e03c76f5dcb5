"""Error taxonomy shared by the booth services."""


class BoothError(Exception):
    """Base class for booth failures."""


class DeviceError(BoothError):
    """Camera unavailable or already in use."""


class CaptureSampleError(BoothError):
    """A frame could not be grabbed from the live video source."""


class TemplateLoadError(BoothError):
    """Template background could not be fetched or decoded."""


class UploadError(BoothError):
    """Background submission to the remote backend failed."""


class PersistenceError(BoothError):
    """A local artifact could not be written."""


class UnsupportedSlotConfiguration(BoothError):
    """Template slot count or selection size outside the supported rules."""


class SelectionError(BoothError):
    """The user's photo selection does not satisfy the template."""
