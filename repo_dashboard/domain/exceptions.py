class DashboardException(Exception):
    """Base exception for all dashboard-related errors."""
    pass

class InvalidReferenceError(DashboardException):
    """Raised when a repository reference cannot be parsed into owner/name."""
    def __init__(self, value: str, message: str = "Please enter a valid GitHub repository URL or owner/repo format."):
        self.value = value
        super().__init__(message)

class UpstreamError(DashboardException):
    """Raised when the GitHub REST API answers with a non-success status."""
    def __init__(self, status: int, message: str):
        self.status = status
        self.message = message
        super().__init__(f"GitHub API request failed ({status}): {message}")

class PersistenceError(DashboardException):
    """Raised when a database operation fails."""
    pass
