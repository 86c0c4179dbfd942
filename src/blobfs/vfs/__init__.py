"""blobfs virtual filesystem layer.

Maps hierarchical client paths onto flat storage keys and answers
filesystem queries over an ObjectStore.
"""

from blobfs.vfs.errors import UnsupportedOperationError
from blobfs.vfs.facade import FilesystemFacade
from blobfs.vfs.path_mapper import PathMapper

__all__ = ["FilesystemFacade", "PathMapper", "UnsupportedOperationError"]
