"""Render a proposal summary into Telegram text plus formatting entities.

The message is built as a list of fragments, each a chunk of text with an
optional style. Concatenating the chunks gives the message text; every styled
chunk becomes one entity whose offset and length are counted in UTF-16 code
units, which is how the Bot API addresses text.

Rendering is pure and deterministic. The sync engine depends on that: two
renders of an unchanged proposal must be identical.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

from fcpbot_core.models import GITHUB_URL

if TYPE_CHECKING:
    from fcpbot_core.models import ProposalSummary

# Bump whenever the output layout changes; delivered messages whose recorded
# format differs are edited even when the proposal itself has not changed.
MSG_FORMAT = 1

SEPARATOR = "--------"
PENDING_MARKER = "\u23f3"  # hourglass
APPROVED_MARKER = "\u2705"  # check mark
VERSION_MARKER = "\u200b"  # zero-width space


@dataclass(frozen=True)
class Style:
    entity_type = ""

    def entity_fields(self) -> dict:
        return {}


@dataclass(frozen=True)
class Bold(Style):
    entity_type = "bold"


@dataclass(frozen=True)
class Link(Style):
    entity_type = "url"


@dataclass(frozen=True)
class Hashtag(Style):
    entity_type = "hashtag"


@dataclass(frozen=True)
class TextLink(Style):
    url: str = ""
    entity_type = "text_link"

    def entity_fields(self) -> dict:
        return {"url": self.url}


Fragment = tuple[str, Optional[Style]]


@dataclass(frozen=True)
class FormatSpan:
    style: Style
    offset: int
    length: int

    def to_entity(self) -> dict:
        """Return the span as a Bot API MessageEntity."""
        entity = {"type": self.style.entity_type, "offset": self.offset, "length": self.length}
        entity.update(self.style.entity_fields())
        return entity


@dataclass(frozen=True)
class RenderedMessage:
    text: str
    spans: list[FormatSpan] = field(default_factory=list)

    def entities(self) -> list[dict]:
        return [span.to_entity() for span in self.spans]


def utf16_len(text: str) -> int:
    """Length of text in UTF-16 code units (astral characters count twice)."""
    return len(text.encode("utf-16-le")) // 2


def partition_tags(tags: list[str]) -> tuple[list[str], list[str], list[str]]:
    """Split labels into sorted (type, category, other) buckets.

    Type labels start with "T-". Category labels have a one-letter prefix and
    a dash ("A-diagnostics", "I-unsound"). Everything else, including
    single-character labels, is "other".
    """
    type_tags, category_tags, other_tags = [], [], []
    for tag in tags:
        if tag.startswith("T-"):
            type_tags.append(tag)
        elif len(tag) >= 2 and tag[1] == "-" and tag[0] != "T":
            category_tags.append(tag)
        else:
            other_tags.append(tag)
    return sorted(type_tags), sorted(category_tags), sorted(other_tags)


def hashtag(tag: str) -> str:
    return "#" + tag.replace("-", "_")


def _joined(items: list[Fragment]) -> list[Fragment]:
    """Interleave single-space fragments between items."""
    out: list[Fragment] = []
    for i, item in enumerate(items):
        if i:
            out.append((" ", None))
        out.append(item)
    return out


def fragments(summary: ProposalSummary, format_version: int = MSG_FORMAT) -> list[Fragment]:
    out: list[Fragment] = [
        (summary.title, Bold()),
        ("\n", None),
        (summary.issue_url, Link()),
        ("\n\n", None),
    ]

    for bucket in partition_tags(summary.tags):
        if bucket:
            out.extend(_joined([(hashtag(tag), Hashtag()) for tag in bucket]))
            out.append(("\n", None))

    out.append((f"{SEPARATOR}\n{PENDING_MARKER} ", None))
    out.extend(_joined([(f"@{login}", TextLink(url=f"{GITHUB_URL}/{login}")) for login in summary.pending]))

    out.append((f"\n{APPROVED_MARKER} ", None))
    out.extend(_joined([(f"@{login}", None) for login in summary.approved]))

    out.append(("\n", None))
    out.append((VERSION_MARKER * format_version, None))
    return out


def render(summary: ProposalSummary, format_version: int = MSG_FORMAT) -> RenderedMessage:
    """Render summary into message text and its formatting spans."""
    chunks: list[str] = []
    spans: list[FormatSpan] = []
    offset = 0

    for text, style in fragments(summary, format_version):
        chunks.append(text)
        length = utf16_len(text)
        if style is not None:
            spans.append(FormatSpan(style=style, offset=offset, length=length))
        offset += length

    return RenderedMessage(text="".join(chunks), spans=spans)
