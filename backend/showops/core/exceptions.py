class ShowOpsError(Exception):
    """Base exception for the phase engine."""

    pass


class ProjectNotFoundError(ShowOpsError):
    """Raised when a referenced project id does not exist."""

    def __init__(self, project_id):
        self.project_id = project_id
        super().__init__(f"Project {project_id} not found")


class ConfigurationValidationError(ShowOpsError):
    """Raised when a phase configuration override is malformed.

    ``errors`` maps field name to a human-readable message.
    """

    def __init__(self, errors: dict[str, str]):
        self.errors = errors
        detail = "; ".join(f"{field}: {message}" for field, message in errors.items())
        super().__init__(f"Invalid phase configuration ({detail})")


class ConcurrencyConflictError(ShowOpsError):
    """Raised when an optimistic phase write lost a race."""

    def __init__(self, project_id, expected_version):
        self.project_id = project_id
        self.expected_version = expected_version
        super().__init__(f"Phase of project {project_id} changed since {expected_version}")


class CollaboratorUnavailableError(ShowOpsError):
    """Raised when a dependency (readiness counts, timecard signal) cannot be read."""

    def __init__(self, collaborator: str, cause: Exception | None = None):
        self.collaborator = collaborator
        self.cause = cause
        message = f"{collaborator} unavailable"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class InvalidReadinessCategoryError(ShowOpsError):
    """Raised when a finalize action names an unknown readiness category."""

    def __init__(self, category: str):
        self.category = category
        super().__init__(f"Unknown readiness category '{category}'")
