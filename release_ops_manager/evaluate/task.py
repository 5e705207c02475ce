"""Addon exposing task tracker lookups to template expressions."""

from typing import Any

from release_ops_manager.task.abc import Tracker
from release_ops_manager.task.models import TaskUser, Ticket

from .addons import Addon, FuncMap


def list_task_users(nodes: list[Any]) -> list[TaskUser]:
    """Collect authors, assignees and watchers of every ticket in a tree, unique by username."""
    users: dict[str, TaskUser] = {}
    stack = list(nodes)
    while stack:
        node = stack.pop()
        ticket: Ticket = node.ticket
        for user in (ticket.author, ticket.assignee, *ticket.watchers):
            if user.username:
                users.setdefault(user.username, user)
        stack.extend(node.children)
    return [users[username] for username in sorted(users)]


def md_task_link(ticket: Ticket) -> str:
    """Render a markdown link to the ticket, or its bare ID when it has no URL."""
    if not ticket.url:
        return ticket.id
    return f"[{ticket.id}]({ticket.url})"


class TaskAddon(Addon):
    """Addon listing and fetching tickets from the task tracker."""

    def __init__(self, tracker: Tracker) -> None:
        """Initialize the addon with the tracker to query."""
        self.tracker = tracker

    def __str__(self) -> str:
        return "task"

    async def funcs(self) -> FuncMap:
        return {
            "getTicket": self.tracker.get,
            "listTickets": self.list_tickets,
            "listTaskUsers": list_task_users,
            "mdTaskLink": md_task_link,
        }

    async def list_tickets(self, ids: list[str], load_parents: bool = False) -> list[Ticket]:
        """List tickets by IDs, with their ancestors when `load_parents` is set."""
        return await self.tracker.list(ids, load_parents)
