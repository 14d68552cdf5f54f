import sys
from pathlib import Path

import httpx
import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from fetchr.core.body import build_body, parse_body
from fetchr.core.errors import FileReadError
from fetchr.models import FormDataField, JsonBody, MultipartBody, NoBody, RawBody


def test_parse_body_tags():
    assert isinstance(parse_body("json", "{}", None), JsonBody)
    assert isinstance(parse_body("raw", "x", None), RawBody)
    assert isinstance(parse_body("form", "", []), MultipartBody)
    assert isinstance(parse_body("urlencoded", "", [FormDataField(key="a")]), MultipartBody)
    assert isinstance(parse_body("form", "", None), NoBody)
    assert isinstance(parse_body("graphql", "q", None), NoBody)


@pytest.mark.asyncio
async def test_json_body_is_verbatim_with_content_type():
    headers = httpx.Headers({"content-type": "text/plain"})
    text = '{"a": 1,   "b": [1,2]}'
    payload = await build_body(JsonBody(text=text), headers)
    assert payload.content == text.encode()
    assert headers.get_list("content-type") == ["application/json"]


@pytest.mark.asyncio
async def test_empty_json_body_behaves_as_none():
    headers = httpx.Headers()
    payload = await build_body(JsonBody(text=""), headers)
    assert payload.content is None
    assert not payload.files
    assert "content-type" not in headers


@pytest.mark.asyncio
async def test_raw_body_does_not_force_content_type():
    headers = httpx.Headers()
    payload = await build_body(RawBody(text="hello"), headers)
    assert payload.content == b"hello"
    assert "content-type" not in headers


@pytest.mark.asyncio
async def test_multipart_skips_disabled_and_keeps_order(tmp_path):
    upload = tmp_path / "report.csv"
    upload.write_bytes(b"a,b\n1,2\n")
    fields = [
        FormDataField(key="first", value="1"),
        FormDataField(key="skipped", value="x", enabled=False),
        FormDataField(key="doc", type="file", file_path=str(upload)),
        FormDataField(key="last", value="3"),
    ]
    payload = await build_body(MultipartBody(fields=fields), httpx.Headers())
    assert [name for name, _ in payload.files] == ["first", "doc", "last"]
    assert payload.files[0] == ("first", (None, "1"))
    assert payload.files[1] == ("doc", ("report.csv", b"a,b\n1,2\n"))


@pytest.mark.asyncio
async def test_unreadable_file_aborts(tmp_path):
    missing = tmp_path / "nope.bin"
    fields = [FormDataField(key="doc", type="file", file_path=str(missing))]
    with pytest.raises(FileReadError) as info:
        await build_body(MultipartBody(fields=fields), httpx.Headers())
    assert str(missing) in str(info.value)


@pytest.mark.asyncio
async def test_file_field_without_path_is_skipped():
    fields = [FormDataField(key="doc", type="file"), FormDataField(key="t", value="v")]
    payload = await build_body(MultipartBody(fields=fields), httpx.Headers())
    assert [name for name, _ in payload.files] == ["t"]


@pytest.mark.asyncio
async def test_empty_form_is_closed_multipart():
    headers = httpx.Headers()
    fields = [FormDataField(key="off", value="x", enabled=False)]
    payload = await build_body(MultipartBody(fields=fields), headers)
    assert payload.files == []
    boundary = headers["content-type"].split("boundary=", 1)[1]
    assert payload.content == f"--{boundary}--\r\n".encode()
