import re
from enum import Enum

EVENT_DATA_FIELD = "__event_data__"
EXECUTE_EVENT_PARAM = "__execute_event__"

DEFAULT_PAGE_URL = "/"
DEFAULT_FILE_CONTENT_TYPE = "application/octet-stream"
COPY_CHUNK_SIZE = 32 * 1024

# Host and client address of synthetic requests, same as a browser-less test harness would report.
TEST_REQUEST_HOST = "example.com"
TEST_REQUEST_CLIENT = ("192.0.2.1", 1234)

BOUNDARY_RE = re.compile(r"[0-9A-Za-z'()+_,\-./:=? ]{0,69}[0-9A-Za-z'()+_,\-./:=?]")

CRLF = b"\r\n"
HEADERS_END = b"\r\n\r\n"
CLOSE_DELIMITER_SUFFIX = b"--"

# `; key=token` or `; key="quoted \" string"`
OPTION_RE = re.compile(r';\s*([^\s;=]+)\s*=\s*("(?:[^"\\]|\\.)*"|[^;]*)')
QUOTED_PAIR_RE = re.compile(r"\\(.)")


class ProcessingStage(str, Enum):
    PREAMBLE = "PREAMBLE"
    PART = "PART"
    DATA = "DATA"
    EPILOGUE = "EPILOGUE"
    COMPLETE = "COMPLETE"
