from io import BytesIO
from typing import Any

import pytest

from multipart_testutils import (
    FieldWriteError,
    FormFileCreateError,
    MultipartWriter,
    PartOperation,
    WriteField,
    WriteFileFromPath,
    WriteFileFromReader,
    WriterClosedError,
)


@pytest.fixture()
def closed_writer() -> MultipartWriter:
    writer = MultipartWriter(BytesIO())
    writer.close()
    return writer


def test_write_field() -> None:
    sink = BytesIO()
    WriteField(name="a", value="1").apply(MultipartWriter(sink, boundary="b"))
    assert sink.getvalue() == b'--b\r\nContent-Disposition: form-data; name="a"\r\n\r\n1'


def test_write_field_failure(closed_writer: MultipartWriter) -> None:
    with pytest.raises(FieldWriteError) as exc_info:
        WriteField(name="a", value="1").apply(closed_writer)
    error = exc_info.value
    assert str(error).startswith("multipartbuilder: failed to write field a=1: ")
    assert error.field_name == "a"
    assert error.value == "1"
    assert isinstance(error.cause, WriterClosedError)
    assert error.__cause__ is error.cause


def test_write_file_from_reader_create_failure(closed_writer: MultipartWriter) -> None:
    with pytest.raises(FormFileCreateError) as exc_info:
        WriteFileFromReader(field_name="f", file_name="x.txt", reader=BytesIO(b"data")).apply(closed_writer)
    error = exc_info.value
    assert str(error).startswith("multipartbuilder: failed to create form file f (x.txt) for reader: ")
    assert error.field_name == "f"
    assert error.file_name == "x.txt"
    assert isinstance(error.cause, WriterClosedError)


def test_write_file_from_path_create_failure(closed_writer: MultipartWriter, tmp_path: Any) -> None:
    path = tmp_path / "exists.txt"
    path.write_bytes(b"data")
    with pytest.raises(FormFileCreateError) as exc_info:
        WriteFileFromPath(field_name="f", file_path=path).apply(closed_writer)
    error = exc_info.value
    assert str(error).startswith(f"multipartbuilder: failed to create form file f ({path}): ")
    assert error.file_name == str(path)
    assert isinstance(error.cause, WriterClosedError)


def test_part_operation_is_abstract() -> None:
    with pytest.raises(TypeError):
        PartOperation()  # type: ignore[abstract]
