from multipart_testutils.builder import MultipartBuilder
from multipart_testutils.datastructures import UploadedFile, create_uploaded_file
from multipart_testutils.decoder import MultipartDecoder, RequestEntityTooLarge
from multipart_testutils.encoder import MultipartEncoder, MultipartWriter
from multipart_testutils.event_data import Event, EventBody, EventFuncID
from multipart_testutils.exceptions import (
    BuilderFinalizedError,
    ClosedPipeError,
    FieldWriteError,
    FileOpenError,
    FormFileCopyError,
    FormFileCreateError,
    MultipartBuilderError,
    PartWriteError,
    WriterClosedError,
)
from multipart_testutils.operations import PartOperation, WriteField, WriteFileFromPath, WriteFileFromReader
from multipart_testutils.parser import MultipartFormDataParser, parse_form
from multipart_testutils.pipe import Pipe, PipeReader, PipeWriter
from multipart_testutils.request import create_test_request
from multipart_testutils.utils import parse_options_header

__all__ = [
    "BuilderFinalizedError",
    "ClosedPipeError",
    "Event",
    "EventBody",
    "EventFuncID",
    "FieldWriteError",
    "FileOpenError",
    "FormFileCopyError",
    "FormFileCreateError",
    "MultipartBuilder",
    "MultipartBuilderError",
    "MultipartDecoder",
    "MultipartEncoder",
    "MultipartFormDataParser",
    "MultipartWriter",
    "PartOperation",
    "PartWriteError",
    "Pipe",
    "PipeReader",
    "PipeWriter",
    "RequestEntityTooLarge",
    "UploadedFile",
    "WriteField",
    "WriteFileFromPath",
    "WriteFileFromReader",
    "WriterClosedError",
    "create_test_request",
    "create_uploaded_file",
    "parse_form",
    "parse_options_header",
]
