"""
Text processing for agents: cleaning assistant replies for display and
sanitizing user-supplied agent names and instructions before they are stored.
"""

import re

from bs4 import BeautifulSoup

# 【114:0†source.txt】 file-search markers and [1]-style references; each span
# closes at the nearest closing bracket on the same line.
_CITATION_RE = re.compile(r"【.*?】|\[.*?\]")
_SPEAKER_LABEL = "Assistant:"

_UNSAFE_TAGS = ["script", "style", "iframe", "object", "embed"]
_UNSAFE_NAME_RE = re.compile(r'[/\\?<>:*|"\x00-\x1f\x80-\x9f]')
_RESERVED_NAME_RE = re.compile(r"^\.+$")


def strip_citations(text: str | None) -> str:
    """
    Remove citation spans from an assistant reply and trim it.

    >>> strip_citations("I studied at X【114:0†ref.txt】, see [1].")
    'I studied at X, see .'
    """
    if not text:
        return ""
    return _CITATION_RE.sub("", text).strip()


def strip_speaker_label(text: str | None) -> str:
    """Drop the first "Assistant:" label the model sometimes echoes."""
    if not text:
        return ""
    return text.replace(_SPEAKER_LABEL, "", 1)


def sanitize_agent_name(name: str, prefix: str = "") -> str:
    """
    Turn a display name into a safe assistant name: spaces become dashes,
    filesystem-unsafe characters are dropped, result is lowercased.
    `prefix` is prepended unless the name already carries it.
    """
    safe = _UNSAFE_NAME_RE.sub("", (name or "").strip().replace(" ", "-"))
    if _RESERVED_NAME_RE.match(safe):
        safe = ""
    safe = safe[:255].lower()
    if prefix and not safe.startswith(prefix.lower()):
        safe = f"{prefix} {safe}"
    return safe


def sanitize_instructions(text: str) -> str:
    """
    Drop script-like elements with their content and keep the text of the rest.
    A bare "<" or ">" in prose is text, not markup, and survives.
    """
    if not text:
        return ""
    soup = BeautifulSoup(text, "html.parser")
    for tag in soup(_UNSAFE_TAGS):
        tag.decompose()
    return soup.get_text().strip()
