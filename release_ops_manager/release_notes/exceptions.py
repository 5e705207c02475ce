"""Contains exceptions raised while building release notes."""


class UnknownParentError(Exception):
    """Raised when a ticket references a parent that is absent from the ticket set."""

    def __init__(self, ticket_id: str, parent_id: str) -> None:
        """Initializes the exception with the ticket and its missing parent."""
        super().__init__(f"ticket {ticket_id} has unknown parent {parent_id}")
        self.ticket_id = ticket_id
        self.parent_id = parent_id
