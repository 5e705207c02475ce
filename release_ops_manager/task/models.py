"""Pydantic models for data returned by task trackers."""

from datetime import datetime

from pydantic import BaseModel, Field


class TaskUser(BaseModel):
    """Pydantic model for a task tracker user."""

    username: str = ""
    email: str = ""


class Ticket(BaseModel):
    """Pydantic model for a task tracker ticket.

    The parent is referenced only by `parent_id`; tickets never hold a
    reference to their parent object.
    """

    id: str
    parent_id: str = ""
    name: str = ""
    body: str = ""
    url: str = ""
    closed_at: datetime | None = None
    author: TaskUser = Field(default_factory=TaskUser)
    assignee: TaskUser = Field(default_factory=TaskUser)
    type: str = ""
    flagged: bool = False
    watchers: list[TaskUser] = Field(default_factory=list)
    watches_count: int = 0
