"""Panel error taxonomy surfaced to API callers as structured rejections."""


class PanelError(Exception):
    """Recoverable control-operation failure with a stable error code."""

    code = "panel_error"
    status_code = 400
    default_message = "Request failed."

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_payload(self):
        """Return the JSON body used for API rejections."""
        return {"ok": False, "error": self.code, "message": self.message}


class AlreadyRunning(PanelError):
    code = "already_running"
    status_code = 409
    default_message = "Already running"


class NotRunning(PanelError):
    code = "not_running"
    status_code = 409
    default_message = "Not running"


class ArtifactMissing(PanelError):
    code = "artifact_missing"
    status_code = 404
    default_message = "Server jar not found."


class EmptyCommand(PanelError):
    code = "empty_command"
    default_message = "Empty"


class UnknownAction(PanelError):
    code = "unknown_action"
    default_message = "Unknown action"


class DownloadInProgress(PanelError):
    code = "download_in_progress"
    status_code = 409
    default_message = "Download already in progress"


class SpawnFailure(PanelError):
    code = "spawn_failure"
    status_code = 500
    default_message = "Server process failed to start."


class DownloadFailure(PanelError):
    code = "download_failure"
    status_code = 502
    default_message = "Download failed."


class InstallerFailure(PanelError):
    code = "installer_failure"
    status_code = 500
    default_message = "Installer failed."


class InvalidUpload(PanelError):
    code = "invalid_upload"
    default_message = "Invalid upload."


class FileNotFound(PanelError):
    code = "not_found"
    status_code = 404
    default_message = "Not found"
