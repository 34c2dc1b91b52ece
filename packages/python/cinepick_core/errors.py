class DomainError(Exception):
    code: str = "domain_error"
    status: int = 400

    def __init__(self, message: str = "", *, code: str | None = None, status: int | None = None):
        super().__init__(message or self.__class__.__name__)
        if code:
            self.code = code
        if status:
            self.status = status


class NotFound(DomainError):
    code = "not_found"
    status = 404


class Conflict(DomainError):
    code = "conflict"
    status = 409


class Forbidden(DomainError):
    code = "forbidden"
    status = 403


class InvalidAction(DomainError):
    code = "invalid_action"
    status = 422


class CatalogLookupError(Exception):
    """Catalog lookup failed (transport error, bad status, malformed payload)."""

    def __init__(self, media_type: str, media_id: int, reason: str):
        super().__init__(f"{media_type}/{media_id}: {reason}")
        self.media_type = media_type
        self.media_id = media_id
        self.reason = reason


def map_pgrest(e: Exception) -> Exception:
    """Translate a PostgREST APIError into a domain error when the code is known."""
    code = getattr(e, "code", None) or ""
    # 23505 unique_violation, 42501 insufficient_privilege (RLS), 23503 foreign_key_violation
    if code == "23505":
        return Conflict("duplicate")
    if code in ("42501", "PGRST301"):
        return Forbidden("permission denied")
    if code == "23503":
        return Conflict("foreign key violation")
    return e  # let unexpected ones bubble up to 500
