"""Split long bot replies into Telegram-sized messages.

Replies are assembled from blocks joined by a blank line (one holder, one
token, one narrative paragraph). Splitting only ever happens between blocks,
so a block is never cut in half unless it alone is larger than the limit.
"""

from __future__ import annotations

TELEGRAM_MESSAGE_LIMIT = 4096
BLOCK_SEPARATOR = "\n\n"
CONTINUATION_MARKER = "...continued\n\n"


def split_message(
    text: str,
    limit: int = TELEGRAM_MESSAGE_LIMIT,
    separator: str = BLOCK_SEPARATOR,
    marker: str = CONTINUATION_MARKER,
) -> list[str]:
    """Greedily pack blocks into pieces.

    ``"".join(split_message(text))`` is always ``text``: every piece but the
    last keeps its trailing separator. The first piece may use the whole
    ``limit``; later pieces leave room for ``marker``. A single block bigger
    than its budget is returned as its own piece.
    """
    if limit <= len(marker):
        raise ValueError("limit must be larger than the continuation marker")
    if not text:
        return []

    groups: list[list[str]] = []
    current: list[str] = []
    size = 0
    for unit in text.split(separator):
        budget = limit if not groups else limit - len(marker)
        grown = size + len(separator) + len(unit) if current else len(unit)
        if current and grown > budget:
            groups.append(current)
            current = [unit]
            size = len(unit)
        else:
            current.append(unit)
            size = grown
    groups.append(current)

    pieces = [separator.join(group) for group in groups]
    return [piece + separator for piece in pieces[:-1]] + [pieces[-1]]


def frame_chunks(pieces: list[str], marker: str = CONTINUATION_MARKER) -> list[str]:
    """Turn raw pieces into sendable text: trimmed, continuation-marked, no blanks."""
    framed: list[str] = []
    for piece in pieces:
        body = piece.strip()
        if not body:
            continue
        framed.append(body if not framed else marker + body)
    return framed


def hard_split(text: str, limit: int = TELEGRAM_MESSAGE_LIMIT) -> list[str]:
    """Last resort for an oversized block: cut at the last newline before ``limit``."""
    parts: list[str] = []
    while len(text) > limit:
        cut = text.rfind("\n", 0, limit)
        if cut <= 0:
            cut = limit
        parts.append(text[:cut])
        text = text[cut:].lstrip("\n")
    if text:
        parts.append(text)
    return parts


def chunk_message(
    text: str, limit: int = TELEGRAM_MESSAGE_LIMIT, marker: str = CONTINUATION_MARKER
) -> list[str]:
    """Everything the transport should send, in order, each within ``limit``.

    Fragments of a hard-split block are marked like any other continuation.
    """
    out: list[str] = []
    for index, chunk in enumerate(frame_chunks(split_message(text, limit, marker=marker), marker)):
        if len(chunk) <= limit:
            out.append(chunk)
            continue
        body = chunk[len(marker):] if index else chunk
        for fragment in hard_split(body, limit - len(marker)):
            out.append(marker + fragment if out else fragment)
    return out
