import asyncio
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple, Union

import httpx

from fetchr.core.errors import FileReadError
from fetchr.models import FormDataField, NoBody, RawBody, JsonBody, MultipartBody

logger = logging.getLogger(__name__)

Body = Union[NoBody, RawBody, JsonBody, MultipartBody]

FORM_TAGS = ("form", "formdata", "form-data", "multipart", "urlencoded")
DEFAULT_FILENAME = "file"


@dataclass
class Payload:
    """What gets handed to httpx for the request body."""
    content: Optional[bytes] = None
    # (field name, (filename or None, data)); filename None makes a plain text part
    files: List[Tuple[str, Tuple[Optional[str], Union[str, bytes]]]] = field(default_factory=list)


def parse_body(body_type: str, body: str, form_data: Optional[List[FormDataField]]) -> Body:
    tag = (body_type or "none").strip().lower()
    if tag == "json":
        return JsonBody(text=body or "")
    if tag == "raw":
        return RawBody(text=body or "")
    if tag in FORM_TAGS and form_data is not None:
        return MultipartBody(fields=list(form_data))
    return NoBody()


def _filename_for(file_path: str) -> str:
    return Path(file_path).name or DEFAULT_FILENAME


async def _read_file(file_path: str) -> bytes:
    try:
        # Off the event loop so one slow disk read does not stall other sends
        return await asyncio.to_thread(Path(file_path).read_bytes)
    except OSError as ex:
        raise FileReadError(f"Failed to read file {file_path}: {ex}") from ex


async def build_body(body: Body, headers: httpx.Headers) -> Payload:
    """
    Turn a body descriptor into a payload. Sets Content-Type for non-empty JSON
    bodies and for multipart forms with no parts left to send; otherwise
    multipart boundaries are left to httpx.
    """
    payload = Payload()
    if isinstance(body, JsonBody):
        if body.text:
            headers["Content-Type"] = "application/json"
            payload.content = body.text.encode("utf-8")
    elif isinstance(body, RawBody):
        if body.text:
            payload.content = body.text.encode("utf-8")
    elif isinstance(body, MultipartBody):
        for row in body.fields:
            if not row.enabled:
                continue
            if row.type == "file":
                if not row.file_path:
                    logger.debug("Skipping file field %r without a path", row.key)
                    continue
                data = await _read_file(row.file_path)
                payload.files.append((row.key, (_filename_for(row.file_path), data)))
            else:
                payload.files.append((row.key, (None, row.value)))
        if not payload.files:
            # Empty form: closing delimiter only
            boundary = os.urandom(16).hex()
            headers["Content-Type"] = f"multipart/form-data; boundary={boundary}"
            payload.content = f"--{boundary}--\r\n".encode("ascii")
    return payload
