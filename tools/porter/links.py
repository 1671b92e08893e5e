from __future__ import annotations

from types import MappingProxyType
from typing import Dict, Iterator, Mapping

from .config import SOURCE_EXT
from .pages import ResolvedSite, file_stem
from .utils import derive_slug, slugify


def join_url(base: str, *parts: str) -> str:
    path = "/".join(p.strip("/") for p in parts if p.strip("/"))
    if not path:
        return base or "/"
    return f"{base.rstrip('/')}/{path}"


class LinkMap(Mapping[str, str]):
    """Read-only ``file name -> URL`` table for one site.

    ``resolve`` never fails: targets that are not in the table get a URL
    guessed from their slug, so the same text always maps to the same URL.
    """

    def __init__(self, urls: Mapping[str, str], base_path: str = "/"):
        self._urls = MappingProxyType(dict(urls))
        self.base_path = base_path

    def __getitem__(self, key: str) -> str:
        return self._urls[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._urls)

    def __len__(self) -> int:
        return len(self._urls)

    def __repr__(self) -> str:
        return f"LinkMap({dict(self._urls)!r}, base_path={self.base_path!r})"

    def lookup(self, target: str) -> str:
        page = target.strip()
        if page.lower().endswith(SOURCE_EXT):
            page = page[: -len(SOURCE_EXT)].rstrip()
            candidates = [target.strip(), page]
        else:
            candidates = [page]
        candidates += [file_stem(c) for c in candidates]
        for key in candidates:
            if key in self._urls:
                return self._urls[key]
        return join_url(self.base_path, derive_slug(page))

    def resolve(self, target: str) -> str:
        """URL for the text inside ``[[...]]`` (alias already removed)."""
        page, sep, heading = target.strip().partition("#")
        anchor = f"#{slugify(heading)}" if sep and slugify(heading) else ""
        if not page.strip():
            return anchor or self.base_path
        return self.lookup(page) + anchor


def build_link_map(site: ResolvedSite) -> LinkMap:
    """Map every resolved page to its canonical URL before any rewriting."""
    base = site.manifest.base_path
    urls: Dict[str, str] = {site.index.file_name: base}
    for section in site.sections:
        for page in section.pages:
            urls[page.file_name] = join_url(base, section.id, page.slug)
    return LinkMap(urls, base_path=base)
