import base64
from typing import Optional, Tuple, Union

from fetchr.models import AuthData, NoAuth, BasicAuth, BearerAuth, ApiKeyAuth

Auth = Union[NoAuth, BasicAuth, BearerAuth, ApiKeyAuth]


def parse_auth(auth_type: str, auth_data: AuthData) -> Auth:
    """
    Map the UI's auth_type tag onto a closed auth variant. Only the fields that
    belong to the tag are carried over, so a stray token on a basic descriptor
    never reaches the wire.
    """
    tag = (auth_type or "none").strip().lower()
    if tag == "basic":
        return BasicAuth(username=auth_data.username, password=auth_data.password)
    if tag == "bearer":
        return BearerAuth(token=auth_data.token)
    if tag == "apikey":
        return ApiKeyAuth(header=auth_data.key, value=auth_data.value_field)
    return NoAuth()


def auth_header(auth: Auth) -> Optional[Tuple[str, str]]:
    """
    The (name, value) header an auth variant contributes, or None when the
    descriptor is incomplete. Wire legality is checked by the caller along
    with the user's own headers.
    """
    if isinstance(auth, BasicAuth):
        if auth.username is None or auth.password is None:
            return None
        token = base64.b64encode(f"{auth.username}:{auth.password}".encode("utf-8")).decode("ascii")
        return "Authorization", f"Basic {token}"
    if isinstance(auth, BearerAuth):
        if auth.token is None:
            return None
        return "Authorization", f"Bearer {auth.token}"
    if isinstance(auth, ApiKeyAuth):
        if not auth.header or auth.value is None:
            return None
        return auth.header, auth.value
    return None
