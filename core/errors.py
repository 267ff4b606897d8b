# core/errors.py

from typing import List, Optional


# ============================================================
# Error kinds
# ============================================================
class HelioError(Exception):
    """
    Base for every error raised by the RBAC/audit core and the managers.

    `kind` is the stable machine-readable error code sent to callers,
    `status_code` the HTTP equivalent used by the API layer.
    """

    kind = "internal"
    status_code = 500

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message or self.kind

    def to_payload(self) -> dict:
        return {"detail": self.message, "code": self.kind}


class Unauthenticated(HelioError):
    kind = "unauthenticated"
    status_code = 401


class InvalidArgument(HelioError):
    kind = "invalid-argument"
    status_code = 400


class PermissionDenied(HelioError):
    kind = "permission-denied"
    status_code = 403


class NotFound(HelioError):
    kind = "not-found"
    status_code = 404


class AlreadyExists(HelioError):
    kind = "already-exists"
    status_code = 409


class InvalidRole(InvalidArgument):
    kind = "invalid-role"


class InvalidLogType(InvalidArgument):
    kind = "invalid-log-type"


class ValidationError(HelioError):
    """Business-rule violations. Carries every violated rule, not just the first."""

    kind = "validation-error"
    status_code = 422

    def __init__(self, messages: List[str], message: Optional[str] = None):
        self.messages = list(messages)
        super().__init__(message or "; ".join(self.messages) or "Validation failed")

    def to_payload(self) -> dict:
        payload = super().to_payload()
        payload["errors"] = self.messages
        return payload


class Internal(HelioError):
    kind = "internal"
    status_code = 500


def is_caller_error(error: Exception) -> bool:
    """True for 4xx-style errors the caller can fix; False for system failures."""
    return isinstance(error, HelioError) and not isinstance(error, Internal)


def raise_if_invalid(errors: List[str]):
    if errors:
        raise ValidationError(errors)


# ============================================================
# Supabase error translation
# ============================================================
def extract_supabase_error(error: Exception) -> str:
    """
    Safely extract readable details from Supabase Python client errors.
    Handles:
      • PostgREST errors
      • GoTrue (Auth) errors
      • Generic Python exceptions
    """

    # Case 1: Supabase Auth / GoTrue errors
    if hasattr(error, "message"):
        try:
            return str(error.message)
        except Exception:
            pass

    # Case 2: Supabase errors with args (common)
    if hasattr(error, "args") and error.args:
        try:
            return str(error.args[0])
        except Exception:
            pass

    # Case 3: Plain string fallback
    try:
        return str(error)
    except Exception:
        return "Unknown Supabase error"


def handle_supabase_error(error: Exception, operation: str = "Database operation") -> HelioError:
    """
    Translate a store/provider failure into a typed error.
    Returns the error (doesn't raise) so the caller can re-raise with `from`.

    The underlying detail is logged, never sent back to the caller.
    """
    from core.logging_config import logger

    if isinstance(error, HelioError):
        return error

    error_detail = extract_supabase_error(error)
    logger.error(f"{operation}: {error_detail}")

    error_lower = error_detail.lower()
    if "duplicate" in error_lower or "unique" in error_lower:
        return AlreadyExists(f"{operation}: Record already exists")
    return Internal(f"{operation} failed")
