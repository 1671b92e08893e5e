from __future__ import annotations

import re
from typing import List, Optional, Tuple

import yaml

from .config import (
    FENCE_OPEN,
    FRONTMATTER_MARKERS,
    ORG_PREFIX_RE,
    SLUG_RE,
)


def slugify(s: str) -> str:
    return re.sub(r"-{2,}", "-", SLUG_RE.sub("-", s.lower()).strip("-"))


def derive_slug(identifier: str) -> str:
    """Slug for a mesh identifier: drop one organizational prefix, then slugify.

    ``"Guide - Getting Started"`` -> ``"getting-started"``.
    """
    s = slugify(ORG_PREFIX_RE.sub("", identifier, count=1))
    return s or "page"


def _norm_text(s: str) -> str:
    return s.replace('\r\n', '\n').replace('\r', '\n').lstrip('\ufeff')


def split_frontmatter(text: str) -> Tuple[Optional[str], str]:
    """Split a leading ``---``/``+++`` block off ``text``.

    The marker must be the very first line and the block must be closed by
    the same marker; otherwise nothing is split off.
    """
    lines = text.splitlines(keepends=True)
    if not lines:
        return None, text
    marker = lines[0].strip()
    if marker not in FRONTMATTER_MARKERS or lines[0].lstrip() != lines[0]:
        return None, text

    for i in range(1, len(lines)):
        if lines[i].strip() == marker:
            return "".join(lines[1:i]), "".join(lines[i + 1 :])
    return None, text


def yaml_frontmatter_block(fields: List[Tuple[str, Optional[str]]]) -> str:
    """Render ``fields`` as ``key: "value"`` lines between ``---`` markers.

    Keys keep their given order and ``None`` values are left out. Forcing the
    double-quoted style makes PyYAML escape control and line-break
    characters, and an unbounded width keeps every value on one line.
    """
    lines = ["---"]
    for k, v in fields:
        if v is None:
            continue
        quoted = yaml.safe_dump(
            v, default_style='"', allow_unicode=True, width=float("inf")
        ).rstrip("\n")
        lines.append(f"{k}: {quoted}")
    lines.append("---")
    return "\n".join(lines) + "\n"


def iter_fenced_lines(lines: List[str]):
    """Yield ``(index, line, kind)`` for each line.

    ``kind`` is ``"open"``/``"close"`` for fence lines, ``"code"`` inside a
    fenced block and ``"text"`` elsewhere. An unclosed fence runs to the end.
    """
    open_fence: Optional[str] = None
    for i, line in enumerate(lines):
        m = FENCE_OPEN.match(line)
        if open_fence is None:
            if m and not (m.group("fence")[0] == "`" and "`" in m.group("info")):
                open_fence = m.group("fence")
                yield i, line, "open"
            else:
                yield i, line, "text"
            continue
        if (
            m
            and m.group("fence")[0] == open_fence[0]
            and len(m.group("fence")) >= len(open_fence)
            and not m.group("info").strip()
        ):
            open_fence = None
            yield i, line, "close"
        else:
            yield i, line, "code"
