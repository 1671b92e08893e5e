from __future__ import annotations

import re
from typing import TYPE_CHECKING, Callable, Optional, Tuple

from .config import (
    FENCE_LANGUAGE_MAP,
    FENCE_OPEN,
    H1_LINE,
    MD_LINK_IMG,
    WIKI_EMBED,
    WIKI_LINK,
)
from .utils import (
    _norm_text,
    iter_fenced_lines,
    split_frontmatter,
    yaml_frontmatter_block,
)

if TYPE_CHECKING:
    from .links import LinkMap

INLINE_CODE = re.compile(r"(`+)[^`\n].*?(?<!`)\1(?!`)")
LEADING_BLANK_LINES = re.compile(r"\A(?:[ \t]*\n)+")


def map_noncode(md: str, fn: Callable[[str], str]) -> str:
    """Apply ``fn`` to every line outside fenced code blocks."""
    lines = md.split("\n")
    return "\n".join(
        fn(line) if kind == "text" else line
        for _, line, kind in iter_fenced_lines(lines)
    )


def map_noncode_noninline(md: str, fn: Callable[[str], str]) -> str:
    """Like ``map_noncode`` but also leaves inline code spans alone."""

    def _line(line: str) -> str:
        parts, last = [], 0
        for m in INLINE_CODE.finditer(line):
            parts.append(fn(line[last : m.start()]))
            parts.append(m.group(0))
            last = m.end()
        parts.append(fn(line[last:]))
        return "".join(parts)

    return map_noncode(md, _line)


def find_h1(md: str) -> Optional[Tuple[int, str]]:
    """Return ``(line index, text)`` of the first level-1 heading outside code."""
    for i, line, kind in iter_fenced_lines(md.split("\n")):
        if kind != "text":
            continue
        m = H1_LINE.match(line)
        if m:
            return i, m.group("text").strip()
    return None


def strip_inline_markup(s: str) -> str:
    s = WIKI_EMBED.sub("", s)
    s = WIKI_LINK.sub(
        lambda m: (m.group("display") or m.group("target")).strip(), s
    )
    s = MD_LINK_IMG.sub(lambda m: "" if m.group(1) else m.group("alt"), s)
    s = re.sub(r"`([^`]*)`", r"\1", s)
    s = re.sub(r"(\*\*|__)(.+?)\1", r"\2", s)
    s = re.sub(r"~~(.+?)~~", r"\1", s)
    s = re.sub(r"==(.+?)==", r"\1", s)
    s = re.sub(r"\*(?!\s)(.+?)(?<!\s)\*", r"\1", s)
    s = re.sub(r"(?<!\w)_(?!\s)(.+?)(?<!\s)_(?!\w)", r"\1", s)
    return re.sub(r"\s+", " ", s).strip()


# ---------- Pipeline steps


def strip_frontmatter(md: str) -> str:
    _, body = split_frontmatter(md)
    return body


def strip_title_heading(md: str) -> str:
    """Drop the first H1 line and the blank line right after it, if any."""
    h1 = find_h1(md)
    if h1 is None:
        return md
    lines = md.split("\n")
    i = h1[0]
    end = i + 1
    if end < len(lines) and not lines[end].strip():
        end += 1
    del lines[i:end]
    return "\n".join(lines)


def rewrite_wiki_links(md: str, link_map: LinkMap) -> str:
    """``[[Target|Alias]]`` -> ``[Alias](url)``; embeds (``![[...]]``) are kept."""

    def _repl(m):
        target = m.group("target")
        display = (m.group("display") or "").strip() or target.strip()
        return f"[{display}]({link_map.resolve(target)})"

    # Links inside fenced or inline code stay literal.
    return map_noncode_noninline(md, lambda s: WIKI_LINK.sub(_repl, s))


def normalize_fence_languages(md: str) -> str:
    """Swap the language of opening fences found in ``FENCE_LANGUAGE_MAP``."""
    lines = md.split("\n")
    for i, line, kind in iter_fenced_lines(lines):
        if kind != "open":
            continue
        m = FENCE_OPEN.match(line)
        info = m.group("info")
        lm = re.match(r"(?P<pad>\s*)(?P<lang>\S+)", info)
        if not lm:
            continue
        mapped = FENCE_LANGUAGE_MAP.get(lm.group("lang").lower())
        if mapped is None:
            continue
        lines[i] = (
            m.group("indent")
            + m.group("fence")
            + lm.group("pad")
            + mapped
            + info[lm.end():]
        )
    return "\n".join(lines)


def transform_document(
    raw_text: str,
    title: str,
    description: Optional[str],
    link_map: LinkMap,
) -> str:
    """Turn one mesh note into a site document.

    Order matters: frontmatter and the title heading go first so neither is
    link-rewritten; the title and description come back as a fresh
    frontmatter block.
    """
    md = _norm_text(raw_text)
    md = strip_frontmatter(md)
    md = strip_title_heading(md)
    md = rewrite_wiki_links(md, link_map)
    md = normalize_fence_languages(md)

    meta = yaml_frontmatter_block(
        [("title", title), ("description", description or None)]
    )
    body = LEADING_BLANK_LINES.sub("", md).rstrip()
    if not body:
        return meta
    return f"{meta}\n{body}\n"
