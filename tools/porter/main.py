#!/usr/bin/env python3
"""
Port a mesh of wiki-linked notes into a Fumadocs content tree.

- Mesh/<docs config> declares site id, title, base path, index and sections
- Index      -> sites/<site>/content/docs/index.mdx
- Pages      -> sites/<site>/content/docs/<section>/<slug>.mdx
- Navigation -> meta.json in the docs root and in every section directory

Two phases:
- every page is resolved and given its URL before any note is rewritten,
  so a note may link to pages declared after it
- each note is then transformed on its own: frontmatter and title heading
  stripped, [[wiki-links]] rewritten, fence languages normalized, a fresh
  title/description frontmatter block prepended

The output tree is wiped and rebuilt on every run; the same mesh always
yields the same bytes.
"""

from __future__ import annotations

import argparse
import pathlib
import sys
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .config import DEFAULT_MESH_DIR, DEFAULT_OUTPUT_ROOT, INDEX_NAME, OUTPUT_SUBDIR
from .links import LinkMap, build_link_map
from .manifest import ConfigurationError, load_manifest
from .markdown_processing import transform_document
from .pages import ResolvedPage, ResolvedSite, resolve_manifest
from .writer import (
    ensure_dir,
    reset_dir,
    root_pages,
    write_document,
    write_meta,
)


@dataclass(frozen=True)
class PortReport:
    out_dir: pathlib.Path
    written: int
    skipped: Tuple[str, ...]


def output_dir_for(output_root: pathlib.Path, site: str) -> pathlib.Path:
    return output_root.joinpath(site, *OUTPUT_SUBDIR)


def render_page(page: ResolvedPage, link_map: LinkMap) -> str:
    return transform_document(
        page.text,
        page.title,
        page.description,
        link_map,
    )


def write_site(
    site: ResolvedSite, link_map: LinkMap, out_dir: pathlib.Path
) -> int:
    reset_dir(out_dir)
    manifest = site.manifest

    write_document(out_dir, INDEX_NAME, render_page(site.index, link_map))
    written = 1
    print(f"✓ wrote {INDEX_NAME}")

    for section in site.sections:
        section_dir = out_dir / section.id
        ensure_dir(section_dir)
        slugs: List[str] = []
        for page in section.pages:
            write_document(section_dir, page.slug, render_page(page, link_map))
            slugs.append(page.slug)
            written += 1
            print(f"✓ wrote {section.id}/{page.slug}")
        write_meta(section_dir, section.title, slugs)

    write_meta(
        out_dir, manifest.title, root_pages([s.id for s in site.sections])
    )
    return written


def port(
    source: pathlib.Path,
    output_root: pathlib.Path = DEFAULT_OUTPUT_ROOT,
    mesh_dir_name: str = DEFAULT_MESH_DIR,
) -> PortReport:
    """Run the whole port; raises ``ConfigurationError`` on fatal problems."""
    manifest = load_manifest(source, mesh_dir_name)
    site = resolve_manifest(manifest, source / mesh_dir_name)
    # Every URL is known before the first note is rewritten.
    link_map = build_link_map(site)

    out_dir = output_dir_for(output_root, manifest.site)
    written = write_site(site, link_map, out_dir)
    return PortReport(out_dir=out_dir, written=written, skipped=site.skipped)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="port-docs",
        description="Port a wiki-linked note mesh into a Fumadocs content tree.",
    )
    parser.add_argument(
        "--source", type=pathlib.Path, help="corpus root containing the mesh"
    )
    parser.add_argument(
        "--output",
        type=pathlib.Path,
        default=DEFAULT_OUTPUT_ROOT,
        help=f"sites root to write into (default: {DEFAULT_OUTPUT_ROOT})",
    )
    parser.add_argument(
        "--mesh",
        default=DEFAULT_MESH_DIR,
        help=f"mesh directory name under the source (default: {DEFAULT_MESH_DIR})",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.source is None:
        parser.print_usage(sys.stderr)
        sys.exit(1)

    try:
        report = port(args.source.expanduser(), args.output, args.mesh)
    except ConfigurationError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(1)

    print(f"✓ ported {report.written} pages into {report.out_dir}")
    if report.skipped:
        print(f"- skipped {len(report.skipped)} missing: {', '.join(report.skipped)}")


if __name__ == "__main__":
    main()
