"""
File upload descriptor.

An Upload is either backed by a file on disk (file name and mime type are
inferred lazily) or by an in-memory buffer with an explicit name and type.
"""
import logging
import mimetypes
import os
from pathlib import Path
from typing import Optional, Union

from .errors import MissingUploadSourceError

logger = logging.getLogger("fetch_params_client.upload")

DEFAULT_MIME_TYPE = "application/octet-stream"


def guess_mime_type(file_name: Optional[str]) -> str:
    """Mime type from the file extension, octet-stream when unknown."""
    if not file_name:
        return DEFAULT_MIME_TYPE
    mime_type, _ = mimetypes.guess_type(file_name, strict=False)
    return mime_type or DEFAULT_MIME_TYPE


class Upload:
    """A file payload for multipart/form-data requests."""

    def __init__(
        self,
        file_path: Optional[Union[str, os.PathLike]] = None,
        data: Optional[bytes] = None,
        file_name: Optional[str] = None,
        mime_type: Optional[str] = None,
    ):
        self.file_path = Path(file_path) if file_path is not None else None
        self._data = data
        self._file_name = file_name
        self._mime_type = mime_type

    @classmethod
    def from_path(cls, file_path: Union[str, os.PathLike]) -> "Upload":
        """Upload backed by a file; name and mime type are inferred."""
        return cls(file_path=file_path)

    @classmethod
    def from_bytes(cls, data: bytes, file_name: str, mime_type: str) -> "Upload":
        """Upload backed by a buffer; nothing is inferred."""
        return cls(data=data, file_name=file_name, mime_type=mime_type)

    @property
    def file_name(self) -> Optional[str]:
        if self._file_name is None and self.file_path is not None:
            self._file_name = self.file_path.name
        return self._file_name

    @property
    def mime_type(self) -> Optional[str]:
        if self._mime_type is None and self.file_path is not None:
            self._mime_type = guess_mime_type(self.file_path.name)
        return self._mime_type

    @property
    def is_loaded(self) -> bool:
        return self._data is not None

    def get_data(self) -> bytes:
        """Resolve the upload bytes.

        Blocking: the first call on a path-backed upload reads the file from
        disk. The bytes are cached after the first successful read.

        Raises:
            MissingUploadSourceError: no buffer and no readable file.
        """
        if self._data is not None:
            return self._data
        if self.file_path is None:
            raise MissingUploadSourceError()
        try:
            data = self.file_path.read_bytes()
        except OSError as e:
            logger.warning(f"Upload.get_data: cannot read {self.file_path}: {e}")
            raise MissingUploadSourceError(str(self.file_path), e.strerror) from e
        logger.debug(f"Upload.get_data: read {len(data)} bytes from {self.file_path}")
        self._data = data
        return data

    def __repr__(self) -> str:
        return f"Upload(file_name={self.file_name!r}, mime_type={self.mime_type!r})"
