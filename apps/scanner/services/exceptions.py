"""
Domain-specific exceptions for scan sessions.
"""


class ScannerServiceError(Exception):
    """Base exception for all scanner service errors."""
    code = 'scanner_error'


class SessionNotFoundError(ScannerServiceError):
    """Raised when a session doesn't exist or belongs to another operator."""
    code = 'session_not_found'


class InvalidSessionModeError(ScannerServiceError):
    """Raised when a session is opened with an unknown mode."""
    code = 'invalid_mode'


class InvalidSessionActionError(ScannerServiceError):
    """Raised when an action doesn't apply to the session's mode."""
    code = 'invalid_action'


class ScanInProgressError(ScannerServiceError):
    """Raised when a scan arrives while the previous one is still being recorded."""
    code = 'scan_in_progress'


class NoPendingDonorError(ScannerServiceError):
    """Raised when an amount is submitted before a donor was scanned."""
    code = 'no_pending_donor'
