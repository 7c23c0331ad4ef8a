from typing import Iterator, Optional

from multipart_testutils.constants import CLOSE_DELIMITER_SUFFIX, CRLF, HEADERS_END, ProcessingStage
from multipart_testutils.events import (
    DataEvent,
    EpilogueEvent,
    FieldEvent,
    FileEvent,
    MultipartMessageEvent,
    PreambleEvent,
)
from multipart_testutils.utils import get_header, parse_headers, parse_options_header


class RequestEntityTooLarge(Exception):
    pass


class MultipartDecoder:
    __slots__ = ("buffer", "max_size", "received", "finished", "processing_stage", "dash_boundary", "delimiter")

    def __init__(self, boundary: bytes, max_size: Optional[int] = None) -> None:
        """An incremental decoder for multipart/form-data bodies with CRLF line breaks.

        Feed data by calling the decoder, then pull events with :meth:`next_event` or :meth:`events`. Call the
        decoder with None once the body is exhausted, the epilogue is only reported after that.

        Args:
            boundary: The message boundary.
            max_size: Maximum number of bytes allowed for the whole message.
        """
        self.buffer = bytearray()
        self.max_size = max_size
        self.received = 0
        self.finished = False
        self.processing_stage = ProcessingStage.PREAMBLE
        self.dash_boundary = b"--" + boundary
        self.delimiter = CRLF + self.dash_boundary

    def __call__(self, data: Optional[bytes] = None) -> None:
        if data is None:
            self.finished = True
            return
        self.received += len(data)
        if self.max_size is not None and self.received > self.max_size:
            raise RequestEntityTooLarge()
        self.buffer.extend(data)

    def _after_delimiter(self, end: int) -> Optional[ProcessingStage]:
        """Reads the two bytes following a delimiter ending at ``end`` and consumes everything up to them.

        Returns:
            The next stage, or None when those bytes have not arrived yet.
        """
        suffix = bytes(self.buffer[end : end + 2])
        if len(suffix) < 2:
            return None
        if suffix == CLOSE_DELIMITER_SUFFIX:
            stage = ProcessingStage.EPILOGUE
        elif suffix == CRLF:
            stage = ProcessingStage.PART
        else:
            raise ValueError(f"Malformed multipart delimiter line: {bytes(self.buffer[:end + 2])!r}")
        del self.buffer[: end + 2]
        return stage

    def _process_preamble(self) -> Optional[MultipartMessageEvent]:
        if self.buffer.startswith(self.dash_boundary):
            start, end = 0, len(self.dash_boundary)
        elif self.dash_boundary.startswith(self.buffer):
            return None
        else:
            start = self.buffer.find(self.delimiter)
            if start == -1:
                return None
            end = start + len(self.delimiter)

        data = bytes(self.buffer[:start])
        stage = self._after_delimiter(end)
        if stage is None:
            return None
        self.processing_stage = stage
        return PreambleEvent(data=data)

    def _process_part(self) -> Optional[MultipartMessageEvent]:
        if self.buffer.startswith(CRLF):
            header_block, end = b"", len(CRLF)
        else:
            index = self.buffer.find(HEADERS_END)
            if index == -1:
                return None
            header_block, end = bytes(self.buffer[:index]), index + len(HEADERS_END)
        del self.buffer[:end]

        headers = parse_headers(header_block)
        disposition = get_header(headers, "Content-Disposition")
        if not disposition:
            raise ValueError("Missing Content-Disposition header")
        _, options = parse_options_header(disposition)

        self.processing_stage = ProcessingStage.DATA
        if "filename" in options:
            return FileEvent(name=options.get("name", ""), headers=headers, filename=options["filename"])
        return FieldEvent(name=options.get("name", ""), headers=headers)

    def _process_data(self) -> Optional[MultipartMessageEvent]:
        index = self.buffer.find(self.delimiter)
        if index != -1:
            data = bytes(self.buffer[:index])
            stage = self._after_delimiter(index + len(self.delimiter))
            if stage is not None:
                self.processing_stage = stage
                return DataEvent(data=data, more_data=False)
            # the delimiter is complete but its line is not, hand out what precedes it
            safe = index
        else:
            # a delimiter may start within the last len(delimiter) - 1 bytes
            safe = len(self.buffer) - len(self.delimiter) + 1
        if safe <= 0:
            return None
        data = bytes(self.buffer[:safe])
        del self.buffer[:safe]
        return DataEvent(data=data, more_data=True)

    def _process_epilogue(self) -> Optional[MultipartMessageEvent]:
        if not self.finished:
            return None
        data = bytes(self.buffer)
        if data.startswith(CRLF):
            data = data[len(CRLF) :]
        del self.buffer[:]
        self.processing_stage = ProcessingStage.COMPLETE
        return EpilogueEvent(data=data)

    def next_event(self) -> Optional[MultipartMessageEvent]:
        """Produces the next event from the buffered data and advances the processing stage.

        Returns:
            An event, or None when more data is needed or the message is complete.
        """
        if self.processing_stage == ProcessingStage.PREAMBLE:
            return self._process_preamble()
        if self.processing_stage == ProcessingStage.PART:
            return self._process_part()
        if self.processing_stage == ProcessingStage.DATA:
            return self._process_data()
        if self.processing_stage == ProcessingStage.EPILOGUE:
            return self._process_epilogue()
        return None

    def events(self) -> Iterator[MultipartMessageEvent]:
        """Yields every event that can be produced from the data buffered so far."""
        event = self.next_event()
        while event is not None:
            yield event
            event = self.next_event()
