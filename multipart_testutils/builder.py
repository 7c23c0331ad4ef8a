import json
import logging
import os
import threading
from typing import TYPE_CHECKING, BinaryIO, List, Mapping, Optional, Tuple, Union

from multipart_testutils.constants import COPY_CHUNK_SIZE, DEFAULT_PAGE_URL, EVENT_DATA_FIELD, EXECUTE_EVENT_PARAM
from multipart_testutils.encoder import MultipartWriter
from multipart_testutils.event_data import Event, EventBody, EventFuncID
from multipart_testutils.exceptions import BuilderFinalizedError
from multipart_testutils.operations import PartOperation, WriteField, WriteFileFromPath, WriteFileFromReader
from multipart_testutils.pipe import Pipe, PipeReader
from multipart_testutils.request import create_test_request
from multipart_testutils.utils import validate_boundary

if TYPE_CHECKING:
    from starlette.requests import Request

logger = logging.getLogger(__name__)


class MultipartBuilder:
    __slots__ = ("page_url", "event_body", "boundary", "chunk_size", "_operations", "_finalized")

    def __init__(
        self,
        page_url: str = DEFAULT_PAGE_URL,
        boundary: Optional[str] = None,
        chunk_size: int = COPY_CHUNK_SIZE,
    ) -> None:
        """Builds multipart/form-data request bodies for tests.

        Parts are recorded as operations and written only when the builder is finalized with :meth:`build`,
        :meth:`build_request` or :meth:`build_event_func_request`. A builder can be finalized once and is not
        safe to share between threads.

        Args:
            page_url: Target URL of requests produced by the builder.
            boundary: Optional fixed multipart boundary, a random one is chosen otherwise.
            chunk_size: Number of bytes copied at a time from readers and files.
        """
        self.page_url = page_url
        self.event_body = EventBody()
        self.boundary = validate_boundary(boundary) if boundary is not None else None
        self.chunk_size = chunk_size
        self._operations: List[PartOperation] = []
        self._finalized = False

    @property
    def operations(self) -> Tuple[PartOperation, ...]:
        """The recorded part operations, in the order they will be written."""
        return tuple(self._operations)

    @property
    def finalized(self) -> bool:
        return self._finalized

    def _check_accumulating(self) -> None:
        if self._finalized:
            raise BuilderFinalizedError("multipartbuilder: builder was already finalized")

    def add_operation(self, operation: PartOperation) -> "MultipartBuilder":
        """Appends a part operation, for parts the other ``add_*`` methods do not cover."""
        self._check_accumulating()
        self._operations.append(operation)
        return self

    def add_field(self, name: str, value: str) -> "MultipartBuilder":
        return self.add_operation(WriteField(name=name, value=value))

    def add_reader(self, field_name: str, file_name: str, reader: BinaryIO) -> "MultipartBuilder":
        """Adds a file field whose content is copied from ``reader`` when the body is written."""
        return self.add_operation(WriteFileFromReader(field_name=field_name, file_name=file_name, reader=reader))

    def add_file(self, field_name: str, file_path: Union[str, "os.PathLike[str]"]) -> "MultipartBuilder":
        """Adds a file field read from ``file_path``. The part's filename is the path's base name."""
        return self.add_operation(WriteFileFromPath(field_name=field_name, file_path=file_path))

    def set_event_func(self, id: str, *params: str) -> "MultipartBuilder":  # pylint: disable=redefined-builtin
        self._check_accumulating()
        self.event_body.event_func_id = EventFuncID(id=id, params=list(params))
        return self

    def set_event(self, event: Event) -> "MultipartBuilder":
        self._check_accumulating()
        self.event_body.event = event
        return self

    def set_page_url(self, url: str) -> "MultipartBuilder":
        self._check_accumulating()
        self.page_url = url or DEFAULT_PAGE_URL
        return self

    def _produce(self, writer: MultipartWriter, pipe: Pipe) -> None:
        for operation in self._operations:
            try:
                operation.apply(writer, self.chunk_size)
            except Exception as exc:  # pylint: disable=broad-except
                logger.debug("multipart body aborted by %r: %s", operation, exc)
                pipe.writer.close(exc)
                return
        try:
            writer.close()
        except Exception as exc:  # pylint: disable=broad-except
            pipe.writer.close(exc)
            return
        logger.debug("multipart body with %d parts written", len(self._operations))
        pipe.writer.close()

    def build(self) -> Tuple[str, PipeReader]:
        """Finalizes the builder.

        The body is written by a background thread into a synchronous pipe, so this returns immediately. The
        returned reader must be read to the end and closed: the writing thread blocks until then, and is never
        timed out. Errors of any part are raised by the read that reaches them, later parts are not written.

        Raises:
            BuilderFinalizedError: If the builder was already finalized.

        Returns:
            A tuple of the request content type, including the boundary, and the body reader.
        """
        self._check_accumulating()
        self._finalized = True

        pipe = Pipe()
        writer = MultipartWriter(pipe.writer, boundary=self.boundary)
        logger.debug("building multipart body with %d parts, boundary %s", len(self._operations), writer.boundary)
        thread = threading.Thread(target=self._produce, args=(writer, pipe), daemon=True, name="MultipartBuilder")
        thread.start()
        return writer.content_type, pipe.reader

    def build_request(self, method: str = "POST", query: Optional[Mapping[str, str]] = None) -> "Request":
        """Finalizes the builder into a synthetic starlette request targeting :attr:`page_url`.

        Args:
            method: HTTP method of the request.
            query: Query parameters appended to the ones already in the page URL.

        Returns:
            A request whose body streams the multipart body.
        """
        content_type, body = self.build()
        return create_test_request(
            method=method,
            url=self.page_url or DEFAULT_PAGE_URL,
            body=body,
            headers={"content-type": content_type},
            query=query,
            chunk_size=self.chunk_size,
        )

    def _event_data(self) -> str:
        try:
            return json.dumps(self.event_body.to_dict(), separators=(",", ":"))
        except (TypeError, ValueError) as exc:
            # an unserializable event is sent as an empty field rather than failing the request
            logger.debug("failed to serialize event data: %s", exc)
            return ""

    def build_event_func_request(self) -> "Request":
        """Finalizes the builder into a POST request dispatching the configured event function.

        The event descriptor is serialized into the ``__event_data__`` field and the event function id is sent in
        the ``__execute_event__`` query parameter.

        Returns:
            A synthetic starlette request.
        """
        self.add_field(EVENT_DATA_FIELD, self._event_data())
        return self.build_request(query={EXECUTE_EVENT_PARAM: self.event_body.event_func_id.id})
