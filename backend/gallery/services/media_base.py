"""
Gallery Backend — Abstract Remote Media Interface
===================================================

What:  Abstract base class for the remote media host that stores image bytes.
Why:   GalleryService only needs "upload a local file, get a public URL and
       an object id back" and "release an object by id". Keeping that behind
       an interface lets tests use a fake and leaves room for another host.
Who:   Implemented by CloudinaryService; called by GalleryService.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class UploadedMedia:
    """What the media host returns for a stored object."""

    url: str
    remote_object_id: str


class MediaService(ABC):
    """
    Contract:
        - upload() returns a fully-qualified public URL and the host's
          object id for the new object
        - delete() releases an object; releasing an object the host no
          longer has is not an error
        - Host failures are wrapped in MediaServiceError
    """

    @abstractmethod
    async def upload(self, local_path: str) -> UploadedMedia:
        """
        Push a staged local file to the media host.

        Raises:
            MediaServiceError: the host rejected the upload or was unreachable
        """
        ...

    @abstractmethod
    async def delete(self, remote_object_id: str) -> None:
        """
        Release a remote object.

        Raises:
            MediaServiceError: the host could not be asked to delete the object
        """
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        """True if the host is reachable with the configured credentials."""
        ...
