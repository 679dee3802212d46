"""Typed failures raised by the guard, directory and tenant-scoped services.

Every failure carries a ``kind``.  The services never know about HTTP;
changemaker/api/errors.py is the only place that turns a kind into a
status code.

Cross-tenant reads are reported with the NotFound family so a caller
cannot tell "belongs to another workspace" from "does not exist".
"""

from __future__ import annotations


class ChangemakerError(Exception):
    kind = "error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


# --- authentication / authorization ---


class Unauthorized(ChangemakerError):
    kind = "unauthorized"


class AccessDenied(ChangemakerError):
    kind = "access_denied"


class NotWorkspaceMember(AccessDenied):
    def __init__(self) -> None:
        super().__init__("Not a member of this workspace")


class AdminRequired(AccessDenied):
    def __init__(self) -> None:
        super().__init__("Admin privileges required for this operation")


class CrossTenantViolation(AccessDenied):
    def __init__(self, subject: str) -> None:
        super().__init__(f"{subject} does not belong to this workspace")


# --- lookups ---


class NotFound(ChangemakerError):
    kind = "not_found"


class WorkspaceNotFound(NotFound):
    def __init__(self) -> None:
        super().__init__("Workspace not found")


class ChallengeNotFound(NotFound):
    def __init__(self) -> None:
        super().__init__("Challenge not found")


class EnrollmentNotFound(NotFound):
    def __init__(self) -> None:
        super().__init__("Enrollment not found")


class UserNotFound(NotFound):
    def __init__(self) -> None:
        super().__init__("User not found")


# --- input ---


class ValidationError(ChangemakerError):
    kind = "validation"


class InvalidPrincipalData(ValidationError):
    pass


# --- uniqueness ---


class Conflict(ChangemakerError):
    kind = "conflict"


class SlugTaken(Conflict):
    def __init__(self, slug: str) -> None:
        super().__init__(f"Workspace slug {slug!r} is already taken")


class DuplicateEnrollment(Conflict):
    def __init__(self) -> None:
        super().__init__("User is already enrolled in this challenge")


class SyncConflict(Conflict):
    pass


# --- store ---


class DatabaseError(ChangemakerError):
    """Unanticipated store failure.  Wrapped, logged, never retried."""

    kind = "database"
