"""
Enrollment Lifecycle Exceptions

Exceptions raised by the enrollment workflow and the trainer assignment
coordinator. Each carries the HTTP status and a stable ``error_code`` so the
views can answer with a structured ``{"success": false, ...}`` payload.

Author: DSP Development Team
Version: 1.0.0
"""

from typing import Optional, Dict, Any


class EnrollmentException(Exception):
    """
    Base exception class for enrollment lifecycle errors.

    Attributes:
        message (str): Human-readable error message
        status_code (int): HTTP status code for the API response
        error_code (str): Stable machine-readable reason
        details (Dict[str, Any]): Additional error details
    """

    status_code = 400
    error_code = "EnrollmentError"

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        if error_code is not None:
            self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": False,
            "message": self.message,
            "reason": self.error_code,
            "details": self.details,
        }


class EnrollmentNotFound(EnrollmentException):
    status_code = 404
    error_code = "NotFound"

    def __init__(self, enrollment_id: Any = None) -> None:
        super().__init__("Enrollment not found", details={"enrollment_id": enrollment_id})


class TrainerNotFound(EnrollmentException):
    status_code = 404
    error_code = "NotFound"

    def __init__(self, trainer_id: Any = None) -> None:
        super().__init__("Trainer not found", details={"trainer_id": trainer_id})


class InvalidTrainerRole(EnrollmentException):
    """The user exists but does not carry the trainer role."""

    status_code = 400
    error_code = "InvalidRole"

    def __init__(self, trainer_id: Any = None) -> None:
        super().__init__("User does not have the trainer role", details={"trainer_id": trainer_id})


class AssignmentConflict(EnrollmentException):
    """Trainer assignment is only valid while the enrollment is ``enrolled``."""

    status_code = 409
    error_code = "Conflict"

    def __init__(self, enrollment_id: Any = None, current_status: Optional[str] = None) -> None:
        super().__init__(
            "Enrollment is not awaiting a trainer",
            details={"enrollment_id": enrollment_id, "status": current_status},
        )


class InvalidStatusTransition(EnrollmentException):
    status_code = 409
    error_code = "InvalidTransition"

    def __init__(self, current_status: str, target_status: str) -> None:
        super().__init__(
            f"Cannot move enrollment from '{current_status}' to '{target_status}'",
            details={"from": current_status, "to": target_status},
        )


class AccessDenied(EnrollmentException):
    status_code = 403
    error_code = "AccessDenied"

    def __init__(self, actor_id: Any = None, required_role: Optional[str] = None) -> None:
        super().__init__(
            "Access denied",
            details={"actor_id": actor_id, "required_role": required_role},
        )


class PersistenceError(EnrollmentException):
    """Unexpected storage failure; the surrounding transaction was rolled back."""

    status_code = 500
    error_code = "PersistenceError"

    def __init__(self, message: str = "Could not persist enrollment") -> None:
        super().__init__(message)
