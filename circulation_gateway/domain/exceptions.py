"""Domain-specific exceptions"""

from typing import Any, Dict, Optional

from circulation_gateway.domain.policy_kinds import PolicyKind


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class ValidationError(DomainException):
    """Request or configuration failed validation (reported as 422)"""

    def __init__(self, message: str, parameters: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.parameters = parameters or {}


class PolicyNotFoundError(ValidationError):
    """A circulation rule references a policy id that does not exist"""

    def __init__(self, kind: PolicyKind, policy_id: str):
        super().__init__(
            f"{kind.label} policy {policy_id} does not exist",
            {"policyType": kind.letter, "policyId": policy_id},
        )
        self.kind = kind
        self.policy_id = policy_id


class CirculationRulesError(ValidationError):
    """Rule table text is malformed or incomplete"""

    def __init__(self, message: str, line: Optional[int] = None, column: Optional[int] = None):
        parameters = {}
        if line is not None:
            parameters["line"] = line
        if column is not None:
            parameters["column"] = column
        super().__init__(message, parameters)
        self.line = line
        self.column = column


class NoApplicableScheduleError(ValidationError):
    """Loan date falls outside every band of a fixed due date schedule"""

    pass


class ServerError(DomainException):
    """Internal failure, including server-side configuration defects"""

    pass


class UnableToApplyRulesError(ServerError):
    """Circulation rules could not be applied to the given records"""

    pass


class StorageUnavailableError(ServerError):
    """A storage module timed out or could not be reached"""

    pass


class ForwardedFailure(DomainException):
    """Unexpected response from another module, passed on unchanged"""

    def __init__(self, status_code: int, body: str):
        super().__init__(f"Forwarded failure: {status_code} {body}")
        self.status_code = status_code
        self.body = body

