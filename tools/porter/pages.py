from __future__ import annotations

import pathlib
import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .config import DESCRIPTION_MAX_LEN, ELLIPSIS, SOURCE_EXT
from .manifest import ConfigurationError, Manifest, PageRef, Section
from .markdown_processing import find_h1, strip_inline_markup
from .utils import _norm_text, derive_slug, split_frontmatter


@dataclass(frozen=True)
class ResolvedPage:
    identifier: str
    source: pathlib.Path
    file_name: str
    title: str
    slug: str
    description: Optional[str] = None
    # Note text as read while resolving; the transform works from this copy.
    text: str = field(default="", repr=False, compare=False)


@dataclass(frozen=True)
class ResolvedSection:
    section: Section
    pages: Tuple[ResolvedPage, ...]

    @property
    def id(self) -> str:
        return self.section.id

    @property
    def title(self) -> str:
        return self.section.title


@dataclass(frozen=True)
class ResolvedSite:
    manifest: Manifest
    index: ResolvedPage
    sections: Tuple[ResolvedSection, ...]
    skipped: Tuple[str, ...] = ()


# Lines that end the search for a description.
_BLOCK_START = re.compile(r"^\s*(?:#{1,6}(?:\s|$)|[-*+]\s|\d+[.)]\s|\||```|~~~)")


def file_stem(identifier: str) -> str:
    return pathlib.PurePosixPath(identifier).name


def truncate(s: str, limit: int = DESCRIPTION_MAX_LEN) -> str:
    if len(s) <= limit:
        return s
    return s[: limit - len(ELLIPSIS)].rstrip() + ELLIPSIS


def extract_description(body: str) -> Optional[str]:
    """First line of prose after the H1 (or from the top when there is none).

    Stops without a result at a heading, list item, table row or code fence.
    """
    lines = body.split("\n")
    h1 = find_h1(body)
    start = h1[0] + 1 if h1 else 0
    for line in lines[start:]:
        if not line.strip():
            continue
        if _BLOCK_START.match(line):
            return None
        text = strip_inline_markup(line)
        return truncate(text) if text else None
    return None


def read_source(path: pathlib.Path) -> Tuple[str, str]:
    """Raw note text and its normalized body without frontmatter."""
    raw = path.read_text(encoding="utf-8")
    _, body = split_frontmatter(_norm_text(raw))
    return raw, body


def resolve_page(ref: PageRef, mesh_dir: pathlib.Path) -> Optional[ResolvedPage]:
    """Resolve one reference against the mesh; ``None`` when its note is missing."""
    file_name = file_stem(ref.identifier)
    source = mesh_dir / f"{ref.identifier}{SOURCE_EXT}"
    if not source.is_file():
        return None

    raw, body = read_source(source)
    h1 = find_h1(body)
    title = ref.title or (h1[1] if h1 else None) or ref.identifier
    description = ref.description
    if description is None:
        description = extract_description(body)

    return ResolvedPage(
        identifier=ref.identifier,
        source=source,
        file_name=file_name,
        title=title,
        slug=ref.slug or derive_slug(file_name),
        description=description,
        text=raw,
    )


def resolve_manifest(manifest: Manifest, mesh_dir: pathlib.Path) -> ResolvedSite:
    """Resolve the index and every section page, in manifest order.

    A missing index note is fatal; a missing section note is reported and
    left out. File names must be unique across the site and slugs unique
    within a section, otherwise links could not be resolved unambiguously.
    """
    index = resolve_page(manifest.index, mesh_dir)
    if index is None:
        raise ConfigurationError(
            f"index page source missing: "
            f"{mesh_dir / (manifest.index.identifier + SOURCE_EXT)}"
        )

    owners = {index.file_name: "index"}
    skipped: List[str] = []
    sections: List[ResolvedSection] = []
    for section in manifest.sections:
        pages: List[ResolvedPage] = []
        slugs = set()
        for ref in section.pages:
            page = resolve_page(ref, mesh_dir)
            if page is None:
                print(
                    f"! missing source for {ref.identifier!r} in section "
                    f"{section.id}, skipping"
                )
                skipped.append(ref.identifier)
                continue
            if page.file_name in owners:
                raise ConfigurationError(
                    f"page {page.file_name!r} listed twice "
                    f"({owners[page.file_name]} and {section.id})"
                )
            if page.slug in slugs:
                raise ConfigurationError(
                    f"duplicate slug {page.slug!r} in section {section.id}"
                )
            owners[page.file_name] = section.id
            slugs.add(page.slug)
            pages.append(page)
        sections.append(ResolvedSection(section=section, pages=tuple(pages)))

    return ResolvedSite(
        manifest=manifest,
        index=index,
        sections=tuple(sections),
        skipped=tuple(skipped),
    )
