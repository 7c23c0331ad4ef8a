"""The contents of this file incorporate code adapted from
https://github.com/pallets/werkzeug.

Copyright 2007 Pallets

Redistribution and use in source and binary forms, with or without
modification, are permitted provided that the following conditions are
met:

1.  Redistributions of source code must retain the above copyright
    notice, this list of conditions and the following disclaimer.

2.  Redistributions in binary form must reproduce the above copyright
    notice, this list of conditions and the following disclaimer in the
    documentation and/or other materials provided with the distribution.

3.  Neither the name of the copyright holder nor the names of its
    contributors may be used to endorse or promote products derived from
    this software without specific prior written permission.

THIS SOFTWARE IS PROVIDED BY THE COPYRIGHT HOLDERS AND CONTRIBUTORS
"AS IS" AND ANY EXPRESS OR IMPLIED WARRANTIES, INCLUDING, BUT NOT
LIMITED TO, THE IMPLIED WARRANTIES OF MERCHANTABILITY AND FITNESS FOR A
PARTICULAR PURPOSE ARE DISCLAIMED. IN NO EVENT SHALL THE COPYRIGHT
HOLDER OR CONTRIBUTORS BE LIABLE FOR ANY DIRECT, INDIRECT, INCIDENTAL,
SPECIAL, EXEMPLARY, OR CONSEQUENTIAL DAMAGES (INCLUDING, BUT NOT LIMITED
TO, PROCUREMENT OF SUBSTITUTE GOODS OR SERVICES; LOSS OF USE, DATA, OR
PROFITS; OR BUSINESS INTERRUPTION) HOWEVER CAUSED AND ON ANY THEORY OF
LIABILITY, WHETHER IN CONTRACT, STRICT LIABILITY, OR TORT (INCLUDING
NEGLIGENCE OR OTHERWISE) ARISING IN ANY WAY OUT OF THE USE OF THIS
SOFTWARE, EVEN IF ADVISED OF THE POSSIBILITY OF SUCH DAMAGE.
"""

from typing import Any, Dict, Optional, Protocol, Union

from multipart_testutils.constants import DEFAULT_FILE_CONTENT_TYPE, ProcessingStage
from multipart_testutils.events import (
    DataEvent,
    EpilogueEvent,
    FieldEvent,
    FileEvent,
    MultipartMessageEvent,
    PartEvent,
    PreambleEvent,
)
from multipart_testutils.exceptions import WriterClosedError
from multipart_testutils.utils import choose_boundary, quote_header_value, validate_boundary

# Characters that force the boundary parameter of the content type to be quoted.
_TSPECIALS = frozenset('()<>@,;:\\"/[]?= ')


class SupportsWrite(Protocol):
    def write(self, data: bytes) -> Any:
        ...


class MultipartEncoder:
    __slots__ = ("message_boundary", "processing_stage", "line_break_pending")

    def __init__(self, message_boundary: bytes) -> None:
        """Encodes multipart events into byte strings.

        Args:
            message_boundary: The message boundary.
        """
        self.message_boundary = message_boundary
        self.processing_stage = ProcessingStage.PREAMBLE
        self.line_break_pending = False

    def _delimiter(self) -> bytes:
        return (b"\r\n--" if self.line_break_pending else b"--") + self.message_boundary

    def send_event(self, event: MultipartMessageEvent) -> bytes:
        """Encodes an event into a byte string.

        Args:
            event: An event instance.

        Raises:
            ValueError: If the event cannot be sent in the current processing stage.

        Returns:
            An encoded byte string.
        """
        if isinstance(event, PreambleEvent) and self.processing_stage == ProcessingStage.PREAMBLE:
            self.processing_stage = ProcessingStage.PART
            self.line_break_pending = bool(event.data)
            return event.data
        if isinstance(event, PartEvent) and self.processing_stage in {
            ProcessingStage.PREAMBLE,
            ProcessingStage.PART,
            ProcessingStage.DATA,
        }:
            data = self._delimiter() + b"\r\n"
            self.processing_stage = ProcessingStage.DATA
            self.line_break_pending = True
            data += b'Content-Disposition: form-data; name="%s"' % quote_header_value(event.name).encode()
            if isinstance(event, FileEvent):
                data += b'; filename="%s"' % quote_header_value(event.filename).encode()
            data += b"\r\n"
            for name, value in event.headers.items():
                if name.lower() != "content-disposition":
                    data += f"{name}: {value}\r\n".encode()
            data += b"\r\n"
            return data
        if isinstance(event, DataEvent) and self.processing_stage == ProcessingStage.DATA:
            return event.data
        if isinstance(event, EpilogueEvent) and self.processing_stage != ProcessingStage.COMPLETE:
            data = self._delimiter() + b"--\r\n" + event.data
            self.processing_stage = ProcessingStage.COMPLETE
            return data
        raise ValueError(f"Cannot generate {event} in processing_stage: {self.processing_stage}")


class MultipartPart:
    __slots__ = ("writer",)

    def __init__(self, writer: "MultipartWriter") -> None:
        self.writer = writer

    def write(self, data: Union[bytes, bytearray, memoryview]) -> int:
        """Writes body bytes of this part.

        Args:
            data: Bytes to append to the part body.

        Raises:
            WriterClosedError: If the writer was closed or a later part was started.

        Returns:
            The number of bytes written.
        """
        if self.writer.current_part is not self:
            raise WriterClosedError("multipartbuilder: write to a part that is no longer open")
        if data:
            self.writer.send(DataEvent(data=bytes(data), more_data=True))
        return len(data)


class MultipartWriter:
    __slots__ = ("sink", "boundary", "encoder", "current_part", "closed")

    def __init__(self, sink: SupportsWrite, boundary: Optional[str] = None) -> None:
        """A streaming multipart/form-data writer.

        Every part is encoded as soon as it is written and handed to ``sink``.

        Args:
            sink: Any object with a ``write(bytes)`` method.
            boundary: Optional fixed boundary, a random one is chosen otherwise.
        """
        self.sink = sink
        self.boundary = validate_boundary(boundary) if boundary is not None else choose_boundary()
        self.encoder = MultipartEncoder(self.boundary.encode("ascii"))
        self.current_part: Optional[MultipartPart] = None
        self.closed = False

    @property
    def content_type(self) -> str:
        boundary = self.boundary
        if any(char in _TSPECIALS for char in boundary):
            boundary = f'"{boundary}"'
        return f"multipart/form-data; boundary={boundary}"

    def send(self, event: MultipartMessageEvent) -> None:
        if self.closed:
            raise WriterClosedError("multipartbuilder: write to a closed multipart writer")
        self.sink.write(self.encoder.send_event(event))

    def create_part(self, event: PartEvent) -> MultipartPart:
        self.current_part = None
        self.send(event)
        self.current_part = MultipartPart(self)
        return self.current_part

    def create_form_file(
        self, name: str, filename: str, content_type: str = DEFAULT_FILE_CONTENT_TYPE
    ) -> MultipartPart:
        headers: Dict[str, str] = {"Content-Type": content_type}
        return self.create_part(FileEvent(name=name, filename=filename, headers=headers))

    def write_field(self, name: str, value: str) -> None:
        part = self.create_part(FieldEvent(name=name))
        part.write(value.encode("utf-8"))

    def close(self) -> None:
        """Writes the closing boundary. The writer cannot be used afterwards."""
        self.current_part = None
        self.send(EpilogueEvent())
        self.closed = True
