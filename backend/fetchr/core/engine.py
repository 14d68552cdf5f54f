import httpx
import logging
import re
import time
from typing import List, Optional, Tuple

from fetchr.config import settings
from fetchr.core.auth import auth_header, parse_auth
from fetchr.core.body import build_body, parse_body
from fetchr.core.errors import HeaderEncodingError, MethodParseError, TransportError
from fetchr.core.response import normalize_response
from fetchr.models import HttpRequest, HttpResponse, KeyValue

logger = logging.getLogger(__name__)

# RFC 7230 token: methods and header names
TOKEN_RE = re.compile(r"[!#$%&'*+\-.^_`|~0-9A-Za-z]+")


class RequestRunner:
    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None, timeout: Optional[float] = None):
        # Tests inject httpx.MockTransport; production uses httpx's default.
        self._transport = transport
        self._timeout = timeout

    def _parse_method(self, method: str) -> str:
        token = (method or "").strip().upper()
        if not TOKEN_RE.fullmatch(token):
            raise MethodParseError(f"invalid HTTP method: {method!r}")
        return token

    def _encode_header(self, name: str, value: str) -> Tuple[bytes, bytes]:
        if not TOKEN_RE.fullmatch(name):
            raise HeaderEncodingError(f"invalid HTTP header name: {name!r}")
        raw = value.encode("utf-8")
        for b in raw:
            if (b < 0x20 and b != 0x09) or b == 0x7F:
                raise HeaderEncodingError(f"invalid HTTP header value for {name!r}")
        return name.encode("ascii"), raw

    def _build_headers(self, entries: List[KeyValue], auth: Optional[Tuple[str, str]]) -> httpx.Headers:
        """
        Enabled entries only. Names are case-insensitive, so a later entry
        replaces an earlier one with the same name, and the auth header
        replaces any user header it collides with.
        """
        pairs = [(e.key, e.value) for e in entries if e.enabled]
        if auth is not None:
            pairs.append(auth)
        by_name = {}
        for name, value in pairs:
            key, raw = self._encode_header(name, value)
            by_name[key.lower()] = (key, raw)
        return httpx.Headers(list(by_name.values()))

    def _client(self) -> httpx.AsyncClient:
        timeout = self._timeout if self._timeout is not None else settings.request_timeout
        return httpx.AsyncClient(transport=self._transport, timeout=timeout)

    async def execute(self, req: HttpRequest) -> HttpResponse:
        """
        Build, send and normalize a single request. Every non-2xx status is
        still a success here; only request-building and transport failures
        raise, each as a FetchrError subclass.
        """
        # 1. Building
        method = self._parse_method(req.method)
        headers = self._build_headers(req.headers, auth_header(parse_auth(req.auth_type, req.auth_data)))
        payload = await build_body(parse_body(req.body_type, req.body, req.form_data), headers)

        logger.debug("Sending %s %s", method, req.url)

        # 2. Sent: timer covers dispatch through the full body read
        start_time = time.perf_counter()
        try:
            async with self._client() as client:
                response = await client.request(
                    method=method,
                    url=req.url,
                    headers=headers,
                    content=payload.content,
                    files=payload.files or None,
                )
                await response.aread()
        except (httpx.HTTPError, httpx.InvalidURL) as ex:
            logger.warning("%s %s failed: %s", method, req.url, ex)
            raise TransportError(str(ex) or type(ex).__name__) from ex

        elapsed_ms = int((time.perf_counter() - start_time) * 1000)

        # 3. Succeeded
        result = normalize_response(response, elapsed_ms)
        logger.info("%s %s -> %s in %dms", method, req.url, result.status, elapsed_ms)
        return result


runner = RequestRunner()
