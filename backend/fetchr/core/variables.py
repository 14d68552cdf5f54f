import json
import logging
from typing import List, Optional

from fetchr.models import Environment, EnvironmentVariable, HttpRequest, StoredEnvironment

logger = logging.getLogger(__name__)


def parse_variables(raw: str) -> List[EnvironmentVariable]:
    """Stored variables are JSON text; malformed text means no variables."""
    try:
        data = json.loads(raw or "[]")
    except ValueError:
        logger.debug("Ignoring malformed environment variables")
        return []
    if not isinstance(data, list):
        return []
    result = []
    for item in data:
        if not isinstance(item, dict):
            continue
        key, value = item.get("key"), item.get("value")
        if isinstance(key, str) and isinstance(value, str):
            result.append(EnvironmentVariable(key=key, value=value))
    return result


def load_environment(record: Optional[StoredEnvironment]) -> Optional[Environment]:
    if record is None:
        return None
    return Environment(id=record.id, name=record.name, variables=parse_variables(record.variables))


def interpolate(text: str, environment: Optional[Environment]) -> str:
    """
    Replace {{key}} with value for each variable, in list order. One literal
    pass per variable, so a value is never expanded recursively; text inserted
    by an earlier variable is still visible to later ones. Unknown tokens stay
    as they are.
    """
    if environment is None:
        return text
    for var in environment.variables:
        text = text.replace(f"{{{{{var.key}}}}}", var.value)
    return text


def resolve_request(req: HttpRequest, environment: Optional[Environment]) -> HttpRequest:
    """Copy of req with URL, header values and body text interpolated."""
    if environment is None:
        return req
    # Deep copy to avoid mutating the caller's descriptor
    req_copy = req.model_copy(deep=True)
    req_copy.url = interpolate(req_copy.url, environment)
    for header in req_copy.headers:
        header.value = interpolate(header.value, environment)
    if req_copy.body:
        req_copy.body = interpolate(req_copy.body, environment)
    return req_copy
