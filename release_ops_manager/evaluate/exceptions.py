"""Contains exceptions raised while composing and evaluating template expressions."""


class TemplateParseError(Exception):
    """Raised when an expression cannot be parsed or calls an undefined function."""

    def __init__(self, message: str) -> None:
        """Initializes the exception with the parser message."""
        super().__init__(f"parse expression: {message}")


class TemplateExecutionError(Exception):
    """Raised when a parsed expression fails while rendering."""

    def __init__(self, message: str) -> None:
        """Initializes the exception with the rendering failure message."""
        super().__init__(f"execute expression: {message}")


class AddonCollisionError(Exception):
    """Raised when two function providers define a function with the same name."""

    def __init__(self, function_name: str, addon: str, defined_by: str) -> None:
        """Initializes the exception with the function name and both owners."""
        super().__init__(f"addon {addon}: function {function_name} already defined by addon {defined_by}")
        self.function_name = function_name
        self.addon = addon
        self.defined_by = defined_by
