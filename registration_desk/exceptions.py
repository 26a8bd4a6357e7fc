"""Error taxonomy for the registration desk.

Every error carries a category (``error_type``) and the HTTP status the
request handlers answer with, so the API layer can render one structured
failure shape for all of them.
"""


class RegistrationDeskError(Exception):
    """Base exception for registration desk errors."""

    error_type = "internal"
    status_code = 500

    def __init__(self, message: str = "伺服器內部錯誤"):
        super().__init__(message)
        self.message = message


class ValidationError(RegistrationDeskError):
    """Malformed or missing request input."""

    error_type = "validation"
    status_code = 400


class VerificationError(RegistrationDeskError):
    """Human verification (reCAPTCHA) did not pass."""

    error_type = "verification"
    status_code = 403

    def __init__(self, message: str = "人機驗證失敗", score: float | None = None):
        super().__init__(message)
        self.score = score


class RegistrationNotFoundError(RegistrationDeskError):
    """No registration matches the requested course."""

    error_type = "not_found"
    status_code = 404

    def __init__(self, message: str = "找不到該報名資料"):
        super().__init__(message)


class StateConflictError(RegistrationDeskError):
    """The registration is already in a state that blocks the transition."""

    error_type = "state_conflict"
    status_code = 409


class AlreadyCancelledError(StateConflictError):
    def __init__(self, message: str = "此課程報名已經取消"):
        super().__init__(message)


class AlreadyConfirmedError(StateConflictError):
    def __init__(self, message: str = "此課程報名已經確認"):
        super().__init__(message)


class CancelledCannotConfirmError(StateConflictError):
    def __init__(self, message: str = "此課程報名已經取消，無法確認"):
        super().__init__(message)


class ConfigurationError(RegistrationDeskError):
    """Missing credentials, spreadsheet id, or a required sheet column."""

    error_type = "configuration"
    status_code = 500


class SheetsAccessError(RegistrationDeskError):
    """The Google Sheets API call failed."""

    error_type = "sheets_unavailable"
    status_code = 503

    def __init__(self, message: str = "無法存取 Google Sheet", http_status: int | None = None):
        super().__init__(message)
        self.http_status = http_status
