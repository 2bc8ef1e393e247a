"""
Wire models for the Jira Cloud ``/rest/api/3/search/jql`` response.

Only the fields requested by the sync client are modelled; anything
else Jira sends is ignored.
"""

from typing import List, Optional
from pydantic import BaseModel, Field


class JiraNamed(BaseModel):
    """Status, priority and issue type all arrive as ``{"name": ...}``."""
    name: str


class JiraUser(BaseModel):
    display_name: str = Field(alias="displayName")


class JiraProject(BaseModel):
    key: str


class JiraIssueFields(BaseModel):
    summary: str
    status: JiraNamed
    priority: JiraNamed
    issuetype: JiraNamed
    assignee: Optional[JiraUser] = None
    reporter: Optional[JiraUser] = None
    created: str
    updated: str
    resolutiondate: Optional[str] = None
    labels: List[str] = Field(default_factory=list)
    project: JiraProject


class JiraIssue(BaseModel):
    key: str
    fields: JiraIssueFields


class JiraSearchResponse(BaseModel):
    issues: List[JiraIssue] = Field(default_factory=list)
    next_page_token: Optional[str] = Field(default=None, alias="nextPageToken")
