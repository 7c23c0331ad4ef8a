import json
import os
from io import BytesIO
from typing import Any, Dict, List

import pytest
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.types import Message, Receive, Scope, Send

from multipart_testutils import (
    Event,
    FileOpenError,
    MultipartBuilder,
    MultipartFormDataParser,
    UploadedFile,
    create_test_request,
)
from multipart_testutils.request import create_receive


async def standard_app(scope: Scope, receive: Receive, send: Send) -> None:
    request = Request(scope, receive)
    parser = MultipartFormDataParser(headers=request.headers, stream=request.stream())
    output: Dict[str, Any] = {"__path__": request.url.path, "__query__": dict(request.query_params)}
    for key, value in await parser():
        if isinstance(value, UploadedFile):
            output[key] = {
                "filename": value.filename,
                "content": value.content.decode(),
                "content_type": value.content_type,
            }
        else:
            output[key] = value
    response = JSONResponse(output)
    await response(scope, receive, send)


async def call_app(request: Request) -> Any:
    messages: List[Message] = []

    async def send(message: Message) -> None:
        messages.append(message)

    await standard_app(request.scope, request.receive, send)
    assert messages[0]["status"] == 200
    return json.loads(b"".join(message.get("body", b"") for message in messages[1:]))


@pytest.mark.anyio
async def test_event_func_request() -> None:
    request = MultipartBuilder().set_event_func("save", "x", "y").build_event_func_request()
    assert request.method == "POST"
    assert request.url.path == "/"
    assert request.url.query == "__execute_event__=save"
    assert request.headers["content-type"].startswith("multipart/form-data; boundary=")

    parser = MultipartFormDataParser(request.headers, request.stream())
    items = await parser()
    assert items[-1][0] == "__event_data__"
    assert json.loads(items[-1][1]) == {"eventFuncId": {"id": "save", "params": ["x", "y"]}}  # type: ignore[arg-type]


@pytest.mark.anyio
async def test_event_func_request_app(tmp_path: Any) -> None:
    path = os.path.join(str(tmp_path), "test.txt")
    with open(path, "w") as file:
        file.write("<file content>")

    request = (
        MultipartBuilder()
        .set_page_url("/users/edit?id=42")
        .set_event_func("update", "name")
        .set_event(Event(checked=True, value="Jane"))
        .add_field("Name", "Jane")
        .add_file("avatar", path)
        .add_reader("notes", "notes.txt", BytesIO(b"some notes"))
        .build_event_func_request()
    )
    output = await call_app(request)
    assert output == {
        "__path__": "/users/edit",
        "__query__": {"id": "42", "__execute_event__": "update"},
        "Name": "Jane",
        "avatar": {"filename": "test.txt", "content": "<file content>", "content_type": "application/octet-stream"},
        "notes": {"filename": "notes.txt", "content": "some notes", "content_type": "application/octet-stream"},
        "__event_data__": '{"eventFuncId":{"id":"update","params":["name"]},"event":{"checked":true,"value":"Jane"}}',
    }


@pytest.mark.anyio
async def test_event_func_request_without_event() -> None:
    request = MultipartBuilder().build_event_func_request()
    assert request.url.query == "__execute_event__="
    items = await MultipartFormDataParser(request.headers, request.stream())()
    assert items == [("__event_data__", "{}")]


@pytest.mark.anyio
async def test_build_request_error() -> None:
    request = MultipartBuilder().add_file("doc", "/does/not/exist.txt").build_request(method="put")
    assert request.method == "PUT"
    with pytest.raises(FileOpenError):
        await request.body()


def test_create_test_request_absolute_url() -> None:
    request = create_test_request("GET", "https://testserver:8443/a%20b?x=1", query={"y": "2"})
    assert request.url.scheme == "https"
    assert request.url.path == "/a b"
    assert request.query_params["x"] == "1"
    assert request.query_params["y"] == "2"
    assert request.headers["host"] == "testserver:8443"
    assert request.client is not None
    assert request.client.host == "192.0.2.1"


@pytest.mark.anyio
async def test_receive_without_body() -> None:
    receive = create_receive(None)
    assert await receive() == {"type": "http.request", "body": b"", "more_body": False}
    assert await receive() == {"type": "http.disconnect"}


@pytest.mark.anyio
async def test_receive_closes_body() -> None:
    body = BytesIO(b"abc")
    receive = create_receive(body, chunk_size=2)
    assert await receive() == {"type": "http.request", "body": b"ab", "more_body": True}
    assert await receive() == {"type": "http.request", "body": b"c", "more_body": True}
    assert await receive() == {"type": "http.request", "body": b"", "more_body": False}
    assert body.closed
