import json
import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1]))

from fetchr.core.exporter import export_collection, export_collection_json
from fetchr.models import StoredRequest


def test_export_is_flat_and_parses_stored_json():
    requests = [
        StoredRequest(
            collection_id="c1",
            name="List",
            method="GET",
            url="http://x/items",
            headers='[{"key": "A", "value": "1", "enabled": true}]',
            auth_type="bearer",
            auth_data='{"token": "t"}',
        ),
        StoredRequest(
            collection_id="c1",
            name="Broken",
            method="POST",
            url="http://x/items",
            headers="{not json",
            body='{"a": 1}',
            body_type="json",
            auth_type="basic",
            auth_data="[1, 2]",
        ),
    ]
    doc = export_collection("Shop", requests)
    assert doc["name"] == "Shop"
    first, second = doc["requests"]
    assert first["headers"] == [{"key": "A", "value": "1", "enabled": True}]
    assert first["auth_data"] == {"token": "t"}
    assert second["headers"] == []
    assert second["auth_data"] == {}
    assert second["body"] == '{"a": 1}'
    assert set(first) == {"name", "method", "url", "headers", "body", "body_type", "auth_type", "auth_data"}


def test_export_json_is_pretty_printed():
    text = export_collection_json("Empty", [])
    assert json.loads(text) == {"name": "Empty", "requests": []}
    assert "\n  " in text
