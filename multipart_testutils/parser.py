from typing import AsyncIterator, BinaryIO, List, Mapping, Optional, Tuple, Union

from multipart_testutils.constants import COPY_CHUNK_SIZE, DEFAULT_FILE_CONTENT_TYPE
from multipart_testutils.datastructures import UploadedFile
from multipart_testutils.decoder import MultipartDecoder
from multipart_testutils.events import DataEvent, EpilogueEvent, FileEvent, PartEvent
from multipart_testutils.utils import get_header, parse_options_header

FormItem = Tuple[str, Union[str, UploadedFile]]


class MultipartFormDataParser:
    __slots__ = ("headers", "stream", "decoder", "charset", "part", "data")

    def __init__(
        self,
        headers: Mapping[str, str],
        stream: Optional[AsyncIterator[bytes]] = None,
        max_size: Optional[int] = None,
        charset: str = "utf-8",
    ) -> None:
        """Parses multipart/form-data.

        Args:
            headers: A mapping of headers, must include the content type.
            stream: An async iterator yielding the body, required only when the parser is awaited.
            max_size: Max body size allowed.
            charset: Charset used to decode field values when the content type does not name one.
        """
        _, options = parse_options_header(get_header(dict(headers), "Content-Type"))
        if not options.get("boundary"):
            raise ValueError("Missing boundary in Content-Type header")
        self.headers = headers
        self.stream = stream
        self.decoder = MultipartDecoder(boundary=options["boundary"].encode("latin-1"), max_size=max_size)
        self.charset = options.get("charset", charset)
        self.part: Optional[PartEvent] = None
        self.data = bytearray()

    def _complete_part(self) -> FormItem:
        part, data = self.part, bytes(self.data)
        self.part = None
        self.data.clear()
        if isinstance(part, FileEvent):
            upload_file = UploadedFile(
                filename=part.filename,
                content=data,
                content_type=part.content_type or DEFAULT_FILE_CONTENT_TYPE,
                headers=part.headers,
            )
            return part.name, upload_file
        return (part.name if part else ""), data.decode(self.charset)

    def feed(self, chunk: Optional[bytes]) -> List[FormItem]:
        """Feeds a chunk of the body into the parser.

        Args:
            chunk: The next chunk, None once the body is exhausted.

        Returns:
            A list of tuples completed by this chunk, each containing the field name and its value - either a string
            or an uploaded file.
        """
        self.decoder(chunk)
        items: List[FormItem] = []
        for event in self.decoder.events():
            if isinstance(event, EpilogueEvent):
                break
            if isinstance(event, PartEvent):
                self.part = event
                continue
            if isinstance(event, DataEvent):
                self.data.extend(event.data)
                if not event.more_data:
                    items.append(self._complete_part())
        return items

    async def __call__(self) -> List[FormItem]:
        """Asynchronously parses the stream data.

        Returns:
            A list of tuples, each containing the field name and its value - either a string or an uploaded file.
        """
        if self.stream is None:
            raise ValueError("No stream to parse")
        parse_result: List[FormItem] = []
        async for chunk in self.stream:
            parse_result.extend(self.feed(chunk))
        parse_result.extend(self.feed(None))
        return parse_result


def parse_form(
    content_type: str,
    body: BinaryIO,
    chunk_size: int = COPY_CHUNK_SIZE,
    max_size: Optional[int] = None,
) -> List[FormItem]:
    """Reads a multipart body to the end and parses it. The body is closed afterwards.

    Args:
        content_type: The body's content type, including the boundary.
        body: A readable binary stream, for example the reader returned by ``MultipartBuilder.build``.
        chunk_size: Number of bytes read at a time.
        max_size: Max body size allowed.

    Returns:
        A list of tuples in body order, each containing the field name and its value - either a string or an
        uploaded file.
    """
    parser = MultipartFormDataParser({"Content-Type": content_type}, max_size=max_size)
    items: List[FormItem] = []
    try:
        for chunk in iter(lambda: body.read(chunk_size), b""):
            items.extend(parser.feed(chunk))
    finally:
        body.close()
    items.extend(parser.feed(None))
    return items
