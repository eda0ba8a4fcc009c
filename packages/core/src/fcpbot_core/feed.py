"""rfcbot feed client."""

from __future__ import annotations

import logging

import requests

from fcpbot_core.models import ProposalSummary, project

logger = logging.getLogger(__name__)

DEFAULT_FEED_URL = "https://rfcbot.rs/api/all"


class FeedError(Exception):
    """Raised when the feed cannot be fetched or does not have the expected shape."""


def _check_record(index: int, record) -> None:
    if not isinstance(record, dict):
        raise FeedError(f"Feed record {index} is not an object")
    fcp = record.get("fcp")
    issue = record.get("issue")
    if not isinstance(fcp, dict) or "id" not in fcp:
        raise FeedError(f"Feed record {index} has no fcp.id")
    if not isinstance(issue, dict):
        raise FeedError(f"Feed record {index} has no issue")
    for key in ("number", "title", "repository", "created_at", "updated_at"):
        if key not in issue:
            raise FeedError(f"Feed record {index} (fcp {fcp['id']}) is missing issue.{key}")
    reviews = record.get("reviews", [])
    if not isinstance(reviews, list) or any(not isinstance(r, (list, tuple)) or len(r) != 2 for r in reviews):
        raise FeedError(f"Feed record {index} (fcp {fcp['id']}) has malformed reviews")


def fetch_proposals(
    url: str = DEFAULT_FEED_URL,
    session: requests.Session | None = None,
    timeout: float = 30,
) -> list[dict]:
    """Fetch every open FCP from the feed and return the raw records.

    Any failure (network, HTTP status, JSON, shape) raises FeedError: a
    partial or malformed feed must not drive message edits.
    """
    try:
        if session is None:
            with requests.Session() as http:
                response = http.get(url, timeout=timeout)
        else:
            response = session.get(url, timeout=timeout)
        response.raise_for_status()
        data = response.json()
    except requests.exceptions.RequestException as e:
        raise FeedError(f"Cannot fetch {url}: {e}") from e
    except ValueError as e:
        raise FeedError(f"Feed at {url} did not return JSON: {e}") from e

    if not isinstance(data, list):
        raise FeedError(f"Feed at {url} returned {type(data).__name__}, expected a list")
    for i, record in enumerate(data):
        _check_record(i, record)

    logger.info("Fetched %d proposal(s) from %s", len(data), url)
    return data


def project_records(records: list[dict]) -> list[ProposalSummary]:
    """Project every raw record up front so a bad value fails the whole cycle."""
    proposals = []
    for i, record in enumerate(records):
        try:
            proposals.append(project(record))
        except (KeyError, TypeError, ValueError) as e:
            raise FeedError(f"Feed record {i} (fcp {record['fcp']['id']}) has an invalid value: {e!r}") from e
    return proposals
