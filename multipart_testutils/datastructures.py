from io import BytesIO
from typing import Dict, Mapping, Optional, Union

from multipart_testutils.constants import DEFAULT_FILE_CONTENT_TYPE
from multipart_testutils.utils import quote_header_value


class UploadedFile:
    __slots__ = ("_filename", "_content", "_content_type", "_headers")

    def __init__(
        self,
        filename: str,
        content: bytes,
        content_type: str = DEFAULT_FILE_CONTENT_TYPE,
        headers: Optional[Mapping[str, str]] = None,
    ) -> None:
        """An uploaded file held in memory. Its attributes are read-only.

        Args:
            filename: The filename.
            content: The file data.
            content_type: Content type for the file.
            headers: The part headers, derived from the other values when omitted.
        """
        self._filename = filename
        self._content = bytes(content)
        self._content_type = content_type
        self._headers = dict(headers) if headers else {
            "Content-Disposition": f'form-data; name="file"; filename="{quote_header_value(filename)}"',
            "Content-Type": content_type,
        }

    @property
    def filename(self) -> str:
        return self._filename

    @property
    def content(self) -> bytes:
        return self._content

    @property
    def content_type(self) -> str:
        return self._content_type

    @property
    def headers(self) -> Dict[str, str]:
        """A copy of the part headers."""
        return dict(self._headers)

    @property
    def size(self) -> int:
        return len(self._content)

    def open(self) -> BytesIO:
        """Returns a new stream positioned at the start of the file data.

        Streams returned by separate calls do not share a read position.
        """
        return BytesIO(self._content)

    def __repr__(self) -> str:
        name = type(self).__name__
        return f"{name}(filename={self.filename!r}, size={self.size}, content_type={self.content_type!r})"


def create_uploaded_file(filename: str, content: Union[bytes, str]) -> UploadedFile:
    """Creates an in-memory uploaded file, as a form parser would produce for a file field.

    Args:
        filename: The filename.
        content: The file data, ``str`` is encoded as UTF-8.

    Returns:
        An :class:`UploadedFile`.
    """
    if isinstance(content, str):
        content = content.encode("utf-8")
    return UploadedFile(filename=filename, content=content)
