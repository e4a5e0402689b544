"""Error taxonomy for the documentation pipeline

Every error that reaches the caller is a PipelineError subclass carrying the
HTTP status it maps to. Transport failures inside the fetcher and durable
cache failures never surface here.
"""


class PipelineError(Exception):
    """Base class for errors surfaced to the caller"""

    status_code: int = 500
    is_timeout: bool = False

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_response(self) -> dict[str, str | bool]:
        """JSON body returned to the caller"""
        body: dict[str, str | bool] = {"error": self.message}
        if self.is_timeout:
            body["isTimeout"] = True
        return body


class InvalidReferenceError(PipelineError):
    """Raised when the repository reference is not a URL or owner/repo"""

    status_code = 400

    def __init__(self, value: str = ""):
        self.value = value
        super().__init__(
            "Invalid GitHub repository URL format. "
            "Please use 'username/repository' or a complete GitHub URL."
        )


class MissingRepoUrlError(InvalidReferenceError):
    """Raised when the request carries no repository reference"""

    def __init__(self):
        PipelineError.__init__(self, "Missing repository URL.")
        self.value = ""


class MissingCredentialError(PipelineError):
    """Raised when a required API credential is not configured"""

    status_code = 500

    def __init__(self, credential: str):
        self.credential = credential
        super().__init__(f"{credential} not configured on the server.")


class NoFilesFoundError(PipelineError):
    """Raised when the repository listing is empty"""

    status_code = 404

    def __init__(self, repo: str):
        self.repo = repo
        super().__init__("No files found in the repository.")


class EmptyContextError(PipelineError):
    """Raised when no file content could be assembled"""

    status_code = 500

    def __init__(self, repo: str):
        self.repo = repo
        super().__init__("Could not retrieve content from the repository.")


class GenerationFailedError(PipelineError):
    """Raised when the model call errors or returns nothing"""

    status_code = 500

    def __init__(
        self, message: str = "Failed to generate documentation.", cause: Exception | None = None
    ):
        self.cause = cause
        super().__init__(message)


class GenerationTimeoutError(PipelineError):
    """Raised when the model call exceeds its deadline"""

    status_code = 504
    is_timeout = True

    def __init__(self, timeout_seconds: float):
        self.timeout_seconds = timeout_seconds
        super().__init__(
            f"Documentation generation timed out after {timeout_seconds:g}s. "
            "Try enabling quick mode or including fewer files."
        )


class OverallTimeoutError(PipelineError):
    """Raised when the whole request exceeds its deadline"""

    status_code = 504
    is_timeout = True

    def __init__(self, timeout_seconds: float):
        self.timeout_seconds = timeout_seconds
        super().__init__(
            f"Request timed out after {timeout_seconds:g}s. "
            "Try enabling quick mode or narrowing the context options."
        )
