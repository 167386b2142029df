# =============================================================================
# core/errors.py - Exception types
# =============================================================================


class RoleRiskError(Exception):
    """Base class for role risk review errors"""


class IngestionError(RoleRiskError):
    """Uploaded file could not be read or does not match the expected layout"""


class InputTooLargeError(RoleRiskError):
    """Input table exceeds the configured row cap"""


class AccountError(RoleRiskError):
    """Account store rejected the request"""


class AccountNotFoundError(AccountError):
    """No account with the requested id"""
