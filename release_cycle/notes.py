"""Release block editing.

A release block is the region of a document (usually the readme) between
two marker lines. It records the coordinates of the latest release and any
free-form notes:

    <!-- release:begin -->
    Latest release: `com.example:app:1.4.2`

    Fixes the frobnicator.
    <!-- release:end -->

``upsert`` replaces the block in place when the markers exist and appends
it otherwise, so running it any number of times gives the same document.
"""

from __future__ import annotations

from typing import NamedTuple

from .errors import MalformedDocument


class Markers(NamedTuple):
    begin: str
    end: str


def render_block(group: str, artifact: str, version: str, notes: str = "") -> str:
    """Render the text that goes between the markers.

    Starts and ends with a newline so the markers stay on their own lines.
    An empty group is left out of the coordinates.

    Examples:
        render_block("com.example", "app", "1.0.0")
            → "\\nLatest release: `com.example:app:1.0.0`\\n"
    """
    coordinates = ":".join(part for part in (group, artifact, version) if part)
    lines = [f"Latest release: `{coordinates}`"]
    if notes.strip():
        lines.append("")
        lines.append(notes.strip())
    return "\n" + "\n".join(lines) + "\n"


def upsert(contents: str, markers: Markers, block: str) -> str:
    """Insert or replace the release block in ``contents``.

    The first begin marker and the first end marker after it delimit the
    block. Everything strictly between them is replaced with ``block``; the
    markers themselves are kept. Without a begin marker the whole block,
    markers included, is appended after a blank line.

    Args:
        contents: Current document text.
        markers: Begin/end marker strings, matched literally.
        block: New text to place between the markers.

    Returns:
        The updated document.

    Raises:
        MalformedDocument: If a begin marker has no end marker after it.
    """
    start = contents.find(markers.begin)
    if start == -1:
        return _append(contents, markers, block)

    body_start = start + len(markers.begin)
    end = contents.find(markers.end, body_start)
    if end == -1:
        raise MalformedDocument(
            f"found '{markers.begin}' without a following '{markers.end}'",
            operation="update release block",
        )

    return contents[:body_start] + block + contents[end:]


def _append(contents: str, markers: Markers, block: str) -> str:
    if contents and not contents.endswith("\n\n"):
        # Terminate the last line, then leave one blank line
        contents += "\n" if contents.endswith("\n") else "\n\n"
    return f"{contents}{markers.begin}{block}{markers.end}\n"
