"""Release notes categorization, rendering and ticket trees."""

from .builder import BuildRequest, NotesBuilder, sort_prs
from .config import CategoryConfig, NotesConfig, load_notes_config
from .exceptions import UnknownParentError
from .tickets import LoadedTree, NotesEvalAddon, TicketNode, build_tickets_tree, load_tickets_tree

__all__ = [
    "BuildRequest",
    "CategoryConfig",
    "LoadedTree",
    "NotesBuilder",
    "NotesConfig",
    "NotesEvalAddon",
    "TicketNode",
    "UnknownParentError",
    "build_tickets_tree",
    "load_notes_config",
    "load_tickets_tree",
    "sort_prs",
]
