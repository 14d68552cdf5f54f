import json
import logging
from typing import Any, Dict, List

from fetchr.models import ExportDocument, ExportedRequest, StoredRequest

logger = logging.getLogger(__name__)


def _load_json(text: str, expected: type, default: Any) -> Any:
    try:
        value = json.loads(text)
    except (TypeError, ValueError):
        logger.debug("Exporting default for unparsable stored JSON")
        return default
    return value if isinstance(value, expected) else default


def export_collection(name: str, requests: List[StoredRequest]) -> Dict[str, Any]:
    """
    Flat export: one entry per stored request, no folder nesting. Stored
    header/auth JSON that does not parse is exported as [] / {}.
    """
    doc = ExportDocument(
        name=name,
        requests=[
            ExportedRequest(
                name=req.name,
                method=req.method,
                url=req.url,
                headers=_load_json(req.headers, list, []),
                body=req.body,
                body_type=req.body_type,
                auth_type=req.auth_type,
                auth_data=_load_json(req.auth_data, dict, {}),
            )
            for req in requests
        ],
    )
    return doc.model_dump()


def export_collection_json(name: str, requests: List[StoredRequest]) -> str:
    return json.dumps(export_collection(name, requests), indent=2)
