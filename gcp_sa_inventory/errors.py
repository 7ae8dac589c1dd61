"""Exception types raised by the inventory tool"""


class InventoryError(Exception):
    """Base class for inventory errors"""


class DirectoryError(InventoryError):
    """A gcloud directory command failed or returned unusable output"""

    def __init__(self, message, output=None):
        super().__init__(message)
        self.output = output


class RecordStoreError(InventoryError):
    """The record file could not be written"""

    def __init__(self, path, cause):
        super().__init__(f"Failed to write {path}: {cause}")
        self.path = path
        self.cause = cause
