from typing import Dict, List, Optional

import httpx

from fetchr.models import Cookie, HttpResponse

UNKNOWN_REASON = "Unknown"


def parse_set_cookie(raw: str) -> Optional[Cookie]:
    """
    Only the leading name=value pair is kept; Domain/Path/etc. attributes are
    ignored. Anything without an '=' in that pair yields None.
    """
    name_value = raw.split(";", 1)[0]
    parts = name_value.split("=", 1)
    if len(parts) != 2:
        return None
    return Cookie(name=parts[0].strip(), value=parts[1].strip())


def extract_cookies(headers: httpx.Headers) -> List[Cookie]:
    cookies = []
    for raw in headers.get_list("set-cookie"):
        cookie = parse_set_cookie(raw)
        if cookie is not None:
            cookies.append(cookie)
    return cookies


def extract_headers(headers: httpx.Headers) -> Dict[str, str]:
    # Repeated keys collapse to whichever pair httpx yields last; no ordering
    # guarantee beyond that.
    return {k: v for k, v in headers.multi_items()}


def normalize_response(response: httpx.Response, elapsed_ms: int) -> HttpResponse:
    """Expects a response whose body has already been read."""
    raw = response.content or b""
    reason = httpx.codes.get_reason_phrase(response.status_code) or UNKNOWN_REASON
    return HttpResponse(
        status=response.status_code,
        status_text=reason,
        headers=extract_headers(response.headers),
        body=raw.decode("utf-8", errors="replace"),
        response_time=elapsed_ms,
        size=len(raw),
        cookies=extract_cookies(response.headers),
    )
