import io
import threading
from typing import Any, Optional, Union

from multipart_testutils.exceptions import ClosedPipeError

BytesLike = Union[bytes, bytearray, memoryview]


class Pipe:
    __slots__ = ("reader", "writer", "_cond", "_write_lock", "_data", "_reader_closed", "_writer_closed", "_error")

    def __init__(self) -> None:
        """A synchronous in-memory pipe.

        Each write blocks until readers have consumed all of its data; there is no internal buffering
        beyond the write in flight. Closing either end wakes up the other one.
        """
        self._cond = threading.Condition()
        self._write_lock = threading.Lock()
        self._data = memoryview(b"")
        self._reader_closed = False
        self._writer_closed = False
        self._error: Optional[BaseException] = None
        self.reader = PipeReader(self)
        self.writer = PipeWriter(self)

    def write(self, data: BytesLike) -> int:
        view = memoryview(data).cast("B")
        total = len(view)
        with self._write_lock, self._cond:
            if self._writer_closed:
                raise ValueError("write to closed pipe")
            if self._reader_closed:
                raise ClosedPipeError("write on pipe with closed reader")
            self._data = view
            self._cond.notify_all()
            while len(self._data) and not self._reader_closed:
                self._cond.wait()
            if len(self._data):
                self._data = memoryview(b"")
                raise ClosedPipeError("write on pipe with closed reader")
        return total

    def readinto(self, buffer: memoryview) -> int:
        with self._cond:
            while True:
                if self._reader_closed:
                    raise ValueError("read from closed pipe")
                if len(self._data):
                    size = min(len(buffer), len(self._data))
                    buffer[:size] = self._data[:size]
                    self._data = self._data[size:]
                    if not len(self._data):
                        self._cond.notify_all()
                    return size
                if self._writer_closed:
                    if self._error is not None:
                        raise self._error
                    return 0
                self._cond.wait()

    def close_reader(self) -> None:
        with self._cond:
            self._reader_closed = True
            self._cond.notify_all()

    def close_writer(self, exc: Optional[BaseException] = None) -> None:
        with self._cond:
            # only the first close decides how the stream ends
            if not self._writer_closed:
                self._writer_closed = True
                self._error = exc
            self._cond.notify_all()


class PipeReader(io.RawIOBase):
    def __init__(self, pipe: Pipe) -> None:
        """The read end of a :class:`Pipe`.

        Reads block until the writer provides data. Once the writer is closed, reads return ``b""``, or raise the
        exception the writer was closed with.
        """
        super().__init__()
        self._pipe = pipe

    def readable(self) -> bool:
        return True

    def readinto(self, buffer: Any) -> int:
        if self.closed:
            raise ValueError("I/O operation on closed pipe reader")
        return self._pipe.readinto(memoryview(buffer).cast("B"))

    def close(self) -> None:
        if not self.closed:
            self._pipe.close_reader()
        super().close()


class PipeWriter:
    __slots__ = ("_pipe",)

    def __init__(self, pipe: Pipe) -> None:
        self._pipe = pipe

    def write(self, data: BytesLike) -> int:
        """Writes ``data``, blocking until it has been read in full.

        Raises:
            ClosedPipeError: If the reader was closed before all data was consumed.
            ValueError: If the writer itself was closed.
        """
        return self._pipe.write(data)

    def close(self, exc: Optional[BaseException] = None) -> None:
        """Closes the write end. Readers see end of stream, or ``exc`` raised, once pending data is consumed."""
        self._pipe.close_writer(exc)
