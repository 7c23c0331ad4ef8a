from dataclasses import dataclass, field
from typing import Dict

from multipart_testutils.utils import get_header


@dataclass(frozen=True)
class MultipartMessageEvent:
    """One piece of a multipart message, as produced by the decoder and consumed by the encoder."""


@dataclass(frozen=True)
class PreambleEvent(MultipartMessageEvent):
    data: bytes = b""


@dataclass(frozen=True)
class PartEvent(MultipartMessageEvent):
    """Start of a part.

    Attributes:
        name: The form field name, from the Content-Disposition header.
        headers: The part headers. The encoder derives Content-Disposition itself and skips it here.
    """

    name: str
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def content_type(self) -> str:
        return get_header(self.headers, "Content-Type")


@dataclass(frozen=True)
class FieldEvent(PartEvent):
    pass


@dataclass(frozen=True)
class FileEvent(PartEvent):
    filename: str = ""


@dataclass(frozen=True)
class DataEvent(MultipartMessageEvent):
    """A chunk of the current part's body. ``more_data`` is False on the last chunk of a part."""

    data: bytes
    more_data: bool = False


@dataclass(frozen=True)
class EpilogueEvent(MultipartMessageEvent):
    data: bytes = b""
