class ReportError(Exception):
    """Base class for failures raised while producing a health report."""


class ConfigurationError(ReportError):
    pass


class SecretUnavailable(ReportError):
    pass


class CredentialNotFound(ReportError):
    pass


class ConnectionFailed(ReportError):
    pass


class CheckFailed(ReportError):
    """A single diagnostic query failed. Recorded in the report, never raised past the probe."""

    def __init__(self, check: str, message: str):
        super().__init__(f"{check}: {message}")
        self.check = check


class RenderFailed(ReportError):
    pass


class UploadFailed(ReportError):
    pass
