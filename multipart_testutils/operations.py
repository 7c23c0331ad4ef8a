import os
import shutil
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import BinaryIO, Union

from multipart_testutils.constants import COPY_CHUNK_SIZE
from multipart_testutils.encoder import MultipartWriter
from multipart_testutils.exceptions import (
    FieldWriteError,
    FileOpenError,
    FormFileCopyError,
    FormFileCreateError,
)


@dataclass(frozen=True)
class PartOperation(ABC):
    """A deferred write of one multipart part."""

    __slots__ = ()

    @abstractmethod
    def apply(self, writer: MultipartWriter, chunk_size: int = COPY_CHUNK_SIZE) -> None:
        """Writes the part into ``writer``.

        Raises:
            PartWriteError: If the part cannot be written.
        """


@dataclass(frozen=True)
class WriteField(PartOperation):
    __slots__ = ("name", "value")

    name: str
    value: str

    def apply(self, writer: MultipartWriter, chunk_size: int = COPY_CHUNK_SIZE) -> None:
        try:
            writer.write_field(self.name, self.value)
        except Exception as exc:
            raise FieldWriteError(self.name, self.value, exc) from exc


@dataclass(frozen=True)
class WriteFileFromReader(PartOperation):
    __slots__ = ("field_name", "file_name", "reader")

    field_name: str
    file_name: str
    reader: BinaryIO

    def apply(self, writer: MultipartWriter, chunk_size: int = COPY_CHUNK_SIZE) -> None:
        try:
            part = writer.create_form_file(self.field_name, self.file_name)
        except Exception as exc:
            raise FormFileCreateError(self.field_name, self.file_name, exc, source=" for reader") from exc

        try:
            shutil.copyfileobj(self.reader, part, chunk_size)
        except Exception as exc:
            raise FormFileCopyError(self.field_name, self.file_name, exc, source=" for reader") from exc


@dataclass(frozen=True)
class WriteFileFromPath(PartOperation):
    __slots__ = ("field_name", "file_path")

    field_name: str
    file_path: Union[str, "os.PathLike[str]"]

    def apply(self, writer: MultipartWriter, chunk_size: int = COPY_CHUNK_SIZE) -> None:
        file_path = os.fspath(self.file_path)
        try:
            file = open(file_path, "rb")  # pylint: disable=consider-using-with
        except OSError as exc:
            raise FileOpenError(self.field_name, file_path, exc) from exc

        with file:
            try:
                part = writer.create_form_file(self.field_name, os.path.basename(file_path))
            except Exception as exc:
                raise FormFileCreateError(self.field_name, file_path, exc) from exc

            try:
                shutil.copyfileobj(file, part, chunk_size)
            except Exception as exc:
                raise FormFileCopyError(self.field_name, file_path, exc) from exc
