from __future__ import annotations
from typing import Any, Dict, List, Literal, Optional
from datetime import datetime, timezone
from pydantic import BaseModel, Field
import uuid


def _new_id() -> str:
    return str(uuid.uuid4())


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


# --- Outbound Request Models (wire shape sent by the UI) ---

class KeyValue(BaseModel):
    key: str
    value: str = ""
    enabled: bool = True

class FormDataField(BaseModel):
    key: str
    value: str = ""
    type: str = "text"  # 'text' | 'file'; anything but 'file' is sent as text
    enabled: bool = True
    file_path: Optional[str] = None

class AuthData(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None
    token: Optional[str] = None
    key: Optional[str] = None  # apikey header name
    value_field: Optional[str] = None  # apikey header value

class HttpRequest(BaseModel):
    method: str = "GET"
    url: str = ""
    headers: List[KeyValue] = []
    body: str = ""
    body_type: str = "none"  # none, raw, json, form, urlencoded
    auth_type: str = "none"  # none, basic, bearer, apikey
    auth_data: AuthData = Field(default_factory=AuthData)
    form_data: Optional[List[FormDataField]] = None


# --- Auth Descriptors (closed variant, parsed once from auth_type/auth_data) ---

class NoAuth(BaseModel):
    kind: Literal["none"] = "none"

class BasicAuth(BaseModel):
    kind: Literal["basic"] = "basic"
    username: Optional[str] = None
    password: Optional[str] = None

class BearerAuth(BaseModel):
    kind: Literal["bearer"] = "bearer"
    token: Optional[str] = None

class ApiKeyAuth(BaseModel):
    kind: Literal["apikey"] = "apikey"
    header: Optional[str] = None
    value: Optional[str] = None


# --- Body Descriptors ---

class NoBody(BaseModel):
    kind: Literal["none"] = "none"

class RawBody(BaseModel):
    kind: Literal["raw"] = "raw"
    text: str = ""

class JsonBody(BaseModel):
    kind: Literal["json"] = "json"
    text: str = ""

class MultipartBody(BaseModel):
    kind: Literal["multipart"] = "multipart"
    fields: List[FormDataField] = []


# --- Response Models ---

class Cookie(BaseModel):
    name: str
    value: str
    domain: Optional[str] = None
    path: Optional[str] = None

class HttpResponse(BaseModel):
    status: int
    status_text: str
    headers: Dict[str, str]
    body: str
    response_time: int  # ms, includes body transfer
    size: int
    cookies: List[Cookie] = []


# --- Environment Models ---

class EnvironmentVariable(BaseModel):
    key: str
    value: str

class Environment(BaseModel):
    """Snapshot of an environment handed to the interpolator."""
    id: str = Field(default_factory=_new_id)
    name: str = "default"
    variables: List[EnvironmentVariable] = []


# --- Stored Records ---

class StoredCollection(BaseModel):
    id: str = Field(default_factory=_new_id)
    name: str
    parent_id: Optional[str] = None
    is_folder: bool = True
    created_at: str = Field(default_factory=utc_now)

class StoredRequest(BaseModel):
    id: str = Field(default_factory=_new_id)
    collection_id: str
    name: str = "New Request"
    method: str = "GET"
    url: str = ""
    headers: str = "[]"  # JSON text
    body: str = ""
    body_type: str = "none"
    auth_type: str = "none"
    auth_data: str = "{}"  # JSON text
    created_at: str = Field(default_factory=utc_now)
    updated_at: str = Field(default_factory=utc_now)

class StoredEnvironment(BaseModel):
    id: str = Field(default_factory=_new_id)
    name: str
    variables: str = "[]"  # JSON text: [{key, value}]
    is_active: bool = False
    created_at: str = Field(default_factory=utc_now)

class HistoryEntry(BaseModel):
    id: str = Field(default_factory=_new_id)
    method: str
    url: str
    status: int
    response_time: int
    created_at: str = Field(default_factory=utc_now)


# --- Import Models (flattened foreign tree) ---

class ImportedFolder(BaseModel):
    name: str
    parent_path: List[str] = []

class ImportedRequest(BaseModel):
    name: str
    method: str
    url: str
    headers: List[KeyValue] = []
    body: str = ""
    body_type: str = "none"
    auth_type: str = "none"
    auth_data: AuthData = Field(default_factory=AuthData)
    form_data: List[FormDataField] = []
    folder_path: List[str] = []

class ImportedCollection(BaseModel):
    name: str
    folders: List[ImportedFolder] = []
    requests: List[ImportedRequest] = []

class LinkedCollection(BaseModel):
    """Imported collection resolved into storable records with generated ids."""
    root: StoredCollection
    folders: List[StoredCollection] = []
    requests: List[StoredRequest] = []


# --- Export Models ---

class ExportedRequest(BaseModel):
    name: str
    method: str
    url: str
    headers: List[Any] = []
    body: str = ""
    body_type: str = "none"
    auth_type: str = "none"
    auth_data: Dict[str, Any] = {}

class ExportDocument(BaseModel):
    name: str
    requests: List[ExportedRequest] = []
