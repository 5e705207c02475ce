"""Contains exceptions raised while talking to git engines and resolving refs."""


class EngineError(Exception):
    """Raised when a git engine or task tracker call fails."""

    pass


class EmptyRefError(Exception):
    """Raised when a commit ref expression evaluates to an empty string."""

    def __init__(self, side: str, expression: str) -> None:
        """Initializes the exception with the side of the range and its expression."""
        super().__init__(f"'{side}' expression {expression!r} evaluated to an empty ref")
        self.side = side
        self.expression = expression
