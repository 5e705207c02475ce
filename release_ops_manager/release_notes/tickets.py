"""Builds parent/child forests of tracker tickets and attaches changes to them."""

import re
from dataclasses import dataclass, field
from typing import Any

import structlog

from release_ops_manager.evaluate.addons import Addon, FuncMap
from release_ops_manager.git.models import Commit, PullRequest
from release_ops_manager.task.abc import Tracker
from release_ops_manager.task.models import Ticket

from .exceptions import UnknownParentError

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


@dataclass
class TicketNode:
    """A ticket with its child tickets and the changes that mention it.

    The parent is only known through `ticket.parent_id`.
    """

    ticket: Ticket
    children: list["TicketNode"] = field(default_factory=list)
    prs: list[PullRequest] = field(default_factory=list)
    commits: list[Commit] = field(default_factory=list)


@dataclass
class LoadedTree:
    """Ticket forest together with the changes that did not mention any ticket."""

    roots: list[TicketNode] = field(default_factory=list)
    unattached_prs: list[PullRequest] = field(default_factory=list)
    unattached_commits: list[Commit] = field(default_factory=list)


def _sort_nodes(nodes: list[TicketNode]) -> None:
    nodes.sort(key=lambda node: node.ticket.id)
    for node in nodes:
        _sort_nodes(node.children)


def build_tickets_tree(tickets: list[Ticket]) -> list[TicketNode]:
    """Link tickets under their parents and return the roots, sorted by ID at every level.

    Raises:
        UnknownParentError: If a ticket references a parent missing from `tickets`.
    """
    nodes: dict[str, TicketNode] = {}
    for ticket in tickets:
        nodes.setdefault(ticket.id, TicketNode(ticket=ticket))

    roots: list[TicketNode] = []
    for node in nodes.values():
        parent_id = node.ticket.parent_id
        if not parent_id:
            roots.append(node)
            continue
        parent = nodes.get(parent_id)
        if parent is None:
            raise UnknownParentError(node.ticket.id, parent_id)
        parent.children.append(node)

    _sort_nodes(roots)
    return roots


def _attach(nodes: list[TicketNode], prs: dict[str, list[PullRequest]], commits: dict[str, list[Commit]]) -> None:
    for node in nodes:
        node.prs.extend(prs.get(node.ticket.id, []))
        node.commits.extend(commits.get(node.ticket.id, []))
        _attach(node.children, prs, commits)


async def load_tickets_tree(
    tracker: Tracker,
    id_regexp: str,
    load_parents: bool,
    prs: list[PullRequest] | None = None,
    commits: list[Commit] | None = None,
) -> LoadedTree:
    """Load the tickets mentioned by pull request titles and commit messages as a tree.

    The first capture group of `id_regexp` is the ticket ID. A change may
    mention several tickets and is attached to each of them. Changes that
    mention none end up in the unattached lists of the result.

    When `load_parents` is false, parents outside the loaded set are not
    fetched and their children become roots.
    """
    rx = re.compile(id_regexp)
    if rx.groups < 1:
        raise ValueError(f"ticket ID regexp {id_regexp!r} must have a capture group")

    result = LoadedTree()
    ticket_prs: dict[str, list[PullRequest]] = {}
    ticket_commits: dict[str, list[Commit]] = {}

    for pr in prs or []:
        ids = list(dict.fromkeys(match.group(1) for match in rx.finditer(pr.title)))
        if not ids:
            result.unattached_prs.append(pr)
        for ticket_id in ids:
            ticket_prs.setdefault(ticket_id, []).append(pr)

    for commit in commits or []:
        ids = list(dict.fromkeys(match.group(1) for match in rx.finditer(commit.message)))
        if not ids:
            result.unattached_commits.append(commit)
        for ticket_id in ids:
            ticket_commits.setdefault(ticket_id, []).append(commit)

    ids = list(dict.fromkeys([*ticket_prs, *ticket_commits]))
    tickets: list[Ticket] = await tracker.list(ids, load_parents) if ids else []

    if not load_parents:
        loaded = {ticket.id for ticket in tickets}
        tickets = [t if not t.parent_id or t.parent_id in loaded else t.model_copy(update={"parent_id": ""}) for t in tickets]

    result.roots = build_tickets_tree(tickets)
    _attach(result.roots, ticket_prs, ticket_commits)
    logger.debug(
        "Loaded tickets tree",
        tickets=len(tickets),
        roots=len(result.roots),
        unattached_prs=len(result.unattached_prs),
        unattached_commits=len(result.unattached_commits),
    )
    return result


def brackets(text: str) -> str:
    """Wrap non-empty text in square brackets."""
    return f"[{text}]" if text else ""


class NotesEvalAddon(Addon):
    """Addon with ticket tree helpers for release notes templates."""

    def __init__(self, tracker: Tracker) -> None:
        """Initialize the addon with the tracker used to load tickets."""
        self.tracker = tracker

    def __str__(self) -> str:
        return "release-notes"

    async def funcs(self) -> FuncMap:
        return {
            "buildTicketsTree": build_tickets_tree,
            "loadTicketsTree": self.load_tickets_tree,
            "brackets": brackets,
            "log": self.log,
        }

    async def load_tickets_tree(
        self,
        id_regexp: str,
        load_parents: bool,
        prs: list[PullRequest] | None = None,
        commits: list[Commit] | None = None,
    ) -> LoadedTree:
        return await load_tickets_tree(self.tracker, id_regexp, load_parents, prs, commits)

    def log(self, message: str, **fields: Any) -> str:
        """Log `message` from a template; renders as an empty string."""
        logger.info(message, **fields)
        return ""
