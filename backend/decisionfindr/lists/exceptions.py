class ListError(Exception):
    """Base prospect list error."""

    pass


class ListNotFoundError(ListError):
    """Raised when a prospect list id does not exist for the user."""

    def __init__(self, list_id: str) -> None:
        self.list_id = list_id
        super().__init__(f"Prospect list {list_id} not found")
