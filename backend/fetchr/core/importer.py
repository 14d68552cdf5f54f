"""
Postman v2.x collection import.

The foreign document is a tree of items where each item is either a folder
(has ``item``) or a request (has ``request``). It is validated into a closed
set of node models, then flattened depth-first into folders tagged with their
ancestor path and requests tagged with their folder path. Paths are the only
link between the two lists; ``link_imported_collection`` turns them back into
parent ids when the result is stored.
"""
import json
import logging
from typing import Annotated, Any, Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, Discriminator, Field, Tag, ValidationError, field_validator

from fetchr.core.errors import ImportFormatError
from fetchr.models import (
    AuthData,
    FormDataField,
    ImportedCollection,
    ImportedFolder,
    ImportedRequest,
    KeyValue,
    LinkedCollection,
    StoredCollection,
    StoredRequest,
)

logger = logging.getLogger(__name__)


# --- Foreign format models ---

class PostmanInfo(BaseModel):
    name: str
    postman_id: Optional[str] = Field(default=None, alias="_postman_id")

class PostmanHeader(BaseModel):
    key: str
    value: str = ""
    disabled: bool = False

class PostmanFormField(BaseModel):
    key: str
    value: Optional[str] = None
    type: Optional[str] = None
    src: Optional[Union[str, List[str]]] = None
    disabled: bool = False

    def file_path(self) -> Optional[str]:
        # Multi-file fields carry a list; only the first file is kept
        if isinstance(self.src, list):
            return self.src[0] if self.src else None
        return self.src

class PostmanBody(BaseModel):
    mode: Optional[str] = None
    raw: Optional[str] = None
    formdata: Optional[List[PostmanFormField]] = None
    urlencoded: Optional[List[PostmanFormField]] = None

class PostmanUrl(BaseModel):
    raw: str

class PostmanRequest(BaseModel):
    method: str
    header: Optional[List[PostmanHeader]] = None
    body: Optional[PostmanBody] = None
    url: Union[str, PostmanUrl]
    auth: Optional[Any] = None

class PostmanRequestItem(BaseModel):
    name: str
    request: PostmanRequest


def _node_kind(value: Any) -> Optional[str]:
    """A node with children is a folder, whatever else it carries."""
    if isinstance(value, dict):
        if value.get("item") is not None:
            return "folder"
        if value.get("request") is not None:
            return "request"
        return None
    if isinstance(value, PostmanFolder):
        return "folder"
    if isinstance(value, PostmanRequestItem):
        return "request"
    return None


def _drop_shapeless(items: Any) -> Any:
    # Items that are neither folder nor request are skipped, not rejected
    if isinstance(items, list):
        return [i for i in items if not isinstance(i, dict) or _node_kind(i) is not None]
    return items


PostmanNode = Annotated[
    Union[
        Annotated["PostmanFolder", Tag("folder")],
        Annotated[PostmanRequestItem, Tag("request")],
    ],
    Discriminator(_node_kind),
]

class PostmanFolder(BaseModel):
    name: str
    item: List[PostmanNode] = []

    @field_validator("item", mode="before")
    @classmethod
    def skip_shapeless_items(cls, value):
        return _drop_shapeless(value)

class PostmanCollection(BaseModel):
    info: PostmanInfo
    item: List[PostmanNode] = []

    @field_validator("item", mode="before")
    @classmethod
    def skip_shapeless_items(cls, value):
        return _drop_shapeless(value)

# Resolve forward reference for recursion
PostmanFolder.model_rebuild()
PostmanCollection.model_rebuild()


# --- Foreign -> normalized shapes ---

def _parse_url(url: Union[str, PostmanUrl]) -> str:
    if isinstance(url, str):
        return url
    return url.raw


def _parse_headers(headers: Optional[List[PostmanHeader]]) -> List[KeyValue]:
    return [
        KeyValue(key=h.key, value=h.value, enabled=not h.disabled)
        for h in headers or []
    ]


def _parse_body(body: Optional[PostmanBody]) -> Tuple[str, str, List[FormDataField]]:
    """Returns (body text, body_type, form fields)."""
    if body is None:
        return "", "none", []
    if body.mode == "raw":
        return body.raw or "", "json", []
    if body.mode == "formdata":
        fields = [
            FormDataField(
                key=f.key,
                value=f.value or "",
                type=f.type or "text",
                enabled=not f.disabled,
                file_path=f.file_path(),
            )
            for f in body.formdata or []
        ]
        return "", "form", fields
    if body.mode == "urlencoded":
        fields = [
            FormDataField(key=f.key, value=f.value or "", type="text", enabled=not f.disabled)
            for f in body.urlencoded or []
        ]
        return "", "urlencoded", fields
    return "", "none", []


def _auth_pairs(auth: dict, section: str) -> Optional[List[Tuple[str, str]]]:
    """Postman keeps auth settings as [{key, value}, ...] under the type name."""
    entries = auth.get(section)
    if not isinstance(entries, list):
        return None
    pairs = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        key, value = entry.get("key"), entry.get("value")
        if isinstance(key, str) and isinstance(value, str):
            pairs.append((key, value))
    return pairs


def _parse_auth(auth: Any) -> Tuple[str, AuthData]:
    if not isinstance(auth, dict):
        return "none", AuthData()
    auth_type = auth.get("type")
    pairs = _auth_pairs(auth, auth_type) if isinstance(auth_type, str) else None
    if pairs is None:
        return "none", AuthData()

    if auth_type == "basic":
        values = dict(pairs)
        return "basic", AuthData(username=values.get("username", ""), password=values.get("password", ""))
    if auth_type == "bearer":
        token = next((v for k, v in pairs if k == "token"), None)
        if token is not None:
            return "bearer", AuthData(token=token)
    elif auth_type == "apikey":
        values = dict(pairs)
        return "apikey", AuthData(key=values.get("key", ""), value_field=values.get("value", ""))
    return "none", AuthData()


def _to_imported_request(node: PostmanRequestItem, folder_path: List[str]) -> ImportedRequest:
    req = node.request
    body, body_type, form_data = _parse_body(req.body)
    auth_type, auth_data = _parse_auth(req.auth)
    return ImportedRequest(
        name=node.name,
        method=req.method.strip().upper(),
        url=_parse_url(req.url),
        headers=_parse_headers(req.header),
        body=body,
        body_type=body_type,
        auth_type=auth_type,
        auth_data=auth_data,
        form_data=form_data,
        folder_path=list(folder_path),
    )


def _flatten(
    nodes: list,
    current_path: List[str],
    folders: List[ImportedFolder],
    requests: List[ImportedRequest],
):
    """Depth-first, document order. Paths are snapshotted at emission."""
    for node in nodes:
        if isinstance(node, PostmanFolder):
            folders.append(ImportedFolder(name=node.name, parent_path=list(current_path)))
            current_path.append(node.name)
            _flatten(node.item, current_path, folders, requests)
            current_path.pop()
        else:
            requests.append(_to_imported_request(node, current_path))


def parse_postman_collection(source: Union[str, bytes, Dict[str, Any]]) -> ImportedCollection:
    try:
        if isinstance(source, (str, bytes)):
            collection = PostmanCollection.model_validate_json(source)
        else:
            collection = PostmanCollection.model_validate(source)
    except ValidationError as ex:
        raise ImportFormatError(f"Invalid Postman collection: {ex}") from ex

    folders: List[ImportedFolder] = []
    requests: List[ImportedRequest] = []
    _flatten(collection.item, [], folders, requests)
    logger.info(
        "Parsed collection %r: %d folders, %d requests",
        collection.info.name, len(folders), len(requests),
    )
    return ImportedCollection(name=collection.info.name, folders=folders, requests=requests)


def link_imported_collection(imported: ImportedCollection) -> LinkedCollection:
    """
    Assign ids and resolve parent links by exact path match. The path->id map
    is filled in folder emission order, so a parent is always known before its
    children. Unknown paths fall back to the root collection.
    """
    root = StoredCollection(name=imported.name, parent_id=None, is_folder=True)
    folder_ids: Dict[Tuple[str, ...], str] = {(): root.id}

    folders = []
    for folder in imported.folders:
        parent_id = folder_ids.get(tuple(folder.parent_path), root.id)
        record = StoredCollection(name=folder.name, parent_id=parent_id, is_folder=True)
        folders.append(record)
        folder_ids[tuple(folder.parent_path) + (folder.name,)] = record.id

    requests = []
    for req in imported.requests:
        requests.append(StoredRequest(
            collection_id=folder_ids.get(tuple(req.folder_path), root.id),
            name=req.name,
            method=req.method,
            url=req.url,
            headers=json.dumps([h.model_dump() for h in req.headers]),
            body=req.body,
            body_type=req.body_type,
            auth_type=req.auth_type,
            auth_data=json.dumps(req.auth_data.model_dump(exclude_none=True)),
        ))

    return LinkedCollection(root=root, folders=folders, requests=requests)
