"""Search module exceptions."""


class SearchError(Exception):
    """Base exception for search operations."""

    def __init__(self, message: str = "Search failed"):
        self.message = message
        super().__init__(self.message)


class ProfileFetchError(SearchError):
    """Raised when the people-search webhook cannot deliver results."""

    def __init__(self, message: str = "Failed to fetch profiles"):
        super().__init__(message)


class WebhookNetworkError(ProfileFetchError):
    """Raised when the webhook is unreachable (connection, DNS, timeout)."""

    def __init__(self, message: str = "Search service unreachable"):
        super().__init__(message)


class WebhookStatusError(ProfileFetchError):
    """Raised when the webhook answers with a non-success status."""

    def __init__(self, status_code: int, body: str = ""):
        self.status_code = status_code
        self.body = body
        super().__init__(f"Search service returned HTTP {status_code}")


class TemplateNotFoundError(SearchError):
    """Raised when a search template does not exist."""

    def __init__(self, template_id: str):
        self.template_id = template_id
        super().__init__(f"Template {template_id} not found")
