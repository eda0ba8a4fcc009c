"""Proposal summary model and the projection from raw rfcbot feed records."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime

GITHUB_URL = "https://github.com"

_FRACTION_RE = re.compile(r"(\.\d{6})\d+")


def parse_timestamp(value) -> datetime:
    """Parse a naive ISO-8601 timestamp as emitted by the feed.

    rfcbot emits nanosecond fractions; datetime only holds microseconds, so
    extra digits are truncated. A trailing "Z" is dropped and the result is
    kept naive, since every feed timestamp is UTC.
    """
    if isinstance(value, datetime):
        return value
    text = _FRACTION_RE.sub(r"\1", str(value).strip())
    if text.endswith("Z"):
        text = text[:-1]
    return datetime.fromisoformat(text)


@dataclass(frozen=True)
class ProposalSummary:
    """Compact, renderable view of one FCP proposal.

    ``updated_at`` is the only content-version marker: the ledger compares it
    against what was last delivered to decide whether an edit is due.
    """

    id: int
    title: str
    repo: str
    issue_number: int
    is_pull_request: bool
    created_at: datetime
    updated_at: datetime
    tags: list[str] = field(default_factory=list)
    approved: list[str] = field(default_factory=list)
    pending: list[str] = field(default_factory=list)

    @property
    def issue_url(self) -> str:
        kind = "pull" if self.is_pull_request else "issues"
        return f"{GITHUB_URL}/{self.repo}/{kind}/{self.issue_number}"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "tags": list(self.tags),
            "title": self.title,
            "repo": self.repo,
            "issue": self.issue_number,
            "is_pr": self.is_pull_request,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "approved": list(self.approved),
            "pending": list(self.pending),
        }

    @classmethod
    def from_dict(cls, d: dict) -> ProposalSummary:
        return cls(
            id=int(d["id"]),
            tags=list(d.get("tags") or []),
            title=d.get("title", ""),
            repo=d.get("repo", ""),
            issue_number=int(d.get("issue", 0)),
            is_pull_request=bool(d.get("is_pr", False)),
            created_at=parse_timestamp(d["created_at"]),
            updated_at=parse_timestamp(d["updated_at"]),
            approved=list(d.get("approved") or []),
            pending=list(d.get("pending") or []),
        )


def project(raw: dict) -> ProposalSummary:
    """Map one raw feed record to a ProposalSummary.

    Trusts the record's shape (fetch_proposals checks it); project_records
    turns value errors into FeedError. Each review is a
    ``[user, approved]`` pair; reviewers keep their feed order within the
    approved and pending lists.
    """
    fcp = raw["fcp"]
    issue = raw["issue"]

    approved: list[str] = []
    pending: list[str] = []
    for reviewer, has_approved in raw.get("reviews") or []:
        login = reviewer["login"] if isinstance(reviewer, dict) else str(reviewer)
        (approved if has_approved else pending).append(login)

    return ProposalSummary(
        id=int(fcp["id"]),
        tags=list(issue.get("labels") or []),
        title=issue.get("title", ""),
        repo=issue.get("repository", ""),
        issue_number=int(issue.get("number", 0)),
        is_pull_request=bool(issue.get("is_pull_request", False)),
        created_at=parse_timestamp(issue["created_at"]),
        updated_at=parse_timestamp(issue["updated_at"]),
        approved=approved,
        pending=pending,
    )
