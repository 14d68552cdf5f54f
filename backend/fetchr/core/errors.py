class FetchrError(Exception):
    """Base class for every error surfaced to callers as a plain message."""

    kind = "error"


class MethodParseError(FetchrError):
    kind = "malformed-method"


class HeaderEncodingError(FetchrError):
    kind = "malformed-header"


class FileReadError(FetchrError):
    kind = "file-read-failure"


class TransportError(FetchrError):
    kind = "transport-failure"


class ImportFormatError(FetchrError):
    kind = "foreign-format-invalid"


class RecordNotFoundError(FetchrError):
    kind = "not-found"
