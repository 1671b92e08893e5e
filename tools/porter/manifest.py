from __future__ import annotations

import json
import pathlib
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

import yaml

from .config import (
    CONFIG_BLOCK,
    CONFIG_CANDIDATES,
    DEFAULT_BASE_PATH,
    DEFAULT_MESH_DIR,
    SAFE_DIR_NAME,
    SOURCE_EXT,
    WIKI_LINK,
)
from .utils import _norm_text, split_frontmatter


class ConfigurationError(Exception):
    """Fatal problem with the corpus or its docs config; the run aborts."""


@dataclass(frozen=True)
class PageRef:
    identifier: str
    title: Optional[str] = None
    description: Optional[str] = None
    slug: Optional[str] = None


@dataclass(frozen=True)
class Section:
    id: str
    title: str
    pages: Tuple[PageRef, ...]


@dataclass(frozen=True)
class Manifest:
    site: str
    title: str
    index: PageRef
    sections: Tuple[Section, ...]
    base_path: str = DEFAULT_BASE_PATH


def find_config(mesh_dir: pathlib.Path) -> pathlib.Path:
    for name in CONFIG_CANDIDATES:
        p = mesh_dir / name
        if p.is_file():
            return p
    raise ConfigurationError(
        f"docs config missing: none of {', '.join(CONFIG_CANDIDATES)} "
        f"found in {mesh_dir}"
    )


def parse_config_text(text: str, suffix: str) -> Dict[str, Any]:
    """Parse raw config text according to the file suffix.

    Markdown configs carry the structure in their first ``json``/``yaml``
    fenced block; any frontmatter on the note is ignored.
    """
    text = _norm_text(text)
    suffix = suffix.lower()
    lang = "json" if suffix == ".json" else "yaml"
    if suffix == ".md":
        _, body = split_frontmatter(text)
        m = CONFIG_BLOCK.search(body)
        if not m:
            raise ConfigurationError(
                "no ```json or ```yaml block found in docs config note"
            )
        lang = m.group("lang").lower()
        text = m.group("body")

    try:
        if lang == "json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigurationError(f"docs config is not valid {lang}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError("docs config must be a mapping at top level")
    return data


# ---------- Schema migration


def normalize_identifier(raw: str) -> str:
    """``"[[Name|Alias]]"``, ``"Name.md"`` and ``"Name"`` all become ``"Name"``."""
    s = raw.strip()
    m = WIKI_LINK.fullmatch(s)
    if m:
        s = m.group("target").strip()
    if s.lower().endswith(SOURCE_EXT):
        s = s[: -len(SOURCE_EXT)].rstrip()
    return s


def _first(raw: Dict[str, Any], *keys: str) -> Any:
    for k in keys:
        if raw.get(k) is not None:
            return raw[k]
    return None


def _optional_str(value: Any, where: str) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigurationError(f"{where} must be a string")
    return value


def _page_ref(raw: Any, where: str) -> PageRef:
    if isinstance(raw, str):
        ident = normalize_identifier(raw)
        overrides: Dict[str, Any] = {}
    elif isinstance(raw, dict):
        ref = _first(raw, "file", "page", "ref")
        if not isinstance(ref, str):
            raise ConfigurationError(f"{where} needs a 'file' string")
        ident = normalize_identifier(ref)
        overrides = raw
    else:
        raise ConfigurationError(f"{where} must be a string or an object")

    if not ident:
        raise ConfigurationError(f"{where} has an empty page reference")
    slug = _optional_str(overrides.get("slug"), f"{where}.slug")
    if slug is not None and not SAFE_DIR_NAME.match(slug):
        raise ConfigurationError(f"{where}.slug {slug!r} is not a valid slug")
    return PageRef(
        identifier=ident,
        title=_optional_str(overrides.get("title"), f"{where}.title"),
        description=_optional_str(
            overrides.get("description"), f"{where}.description"
        ),
        slug=slug,
    )


def _required_str(raw: Dict[str, Any], where: str, *keys: str) -> str:
    value = _first(raw, *keys)
    if not isinstance(value, str) or not value.strip():
        raise ConfigurationError(f"{where} requires a non-empty '{keys[0]}'")
    return value.strip()


def normalize_base_path(raw: Optional[str]) -> str:
    s = (raw or DEFAULT_BASE_PATH).strip()
    s = "/" + s.strip("/")
    return s


def normalize_manifest(raw: Dict[str, Any]) -> Manifest:
    """Migrate any accepted historical config shape into a ``Manifest``."""
    site = _required_str(raw, "docs config", "site", "siteId", "id")
    if not SAFE_DIR_NAME.match(site):
        raise ConfigurationError(
            f"site id {site!r} is not usable as a directory name"
        )
    title = _required_str(raw, "docs config", "title", "name")

    if raw.get("index") is None:
        raise ConfigurationError("docs config requires an 'index' page")
    index = _page_ref(raw["index"], "index")

    raw_sections = raw.get("sections")
    if not isinstance(raw_sections, list):
        raise ConfigurationError("docs config requires a 'sections' list")

    sections = []
    seen = set()
    for i, s in enumerate(raw_sections):
        where = f"sections[{i}]"
        if not isinstance(s, dict):
            raise ConfigurationError(f"{where} must be an object")
        sid = _required_str(s, where, "id")
        if not SAFE_DIR_NAME.match(sid):
            raise ConfigurationError(
                f"{where} id {sid!r} is not usable as a directory name"
            )
        if sid in seen:
            raise ConfigurationError(f"duplicate section id {sid!r}")
        seen.add(sid)
        stitle = _required_str(s, where, "title")
        pages = s.get("pages")
        if not isinstance(pages, list):
            raise ConfigurationError(f"{where} requires a 'pages' list")
        sections.append(
            Section(
                id=sid,
                title=stitle,
                pages=tuple(
                    _page_ref(p, f"{where}.pages[{j}]")
                    for j, p in enumerate(pages)
                ),
            )
        )

    base_path = _optional_str(
        _first(raw, "basePath", "base_path"), "basePath"
    )
    return Manifest(
        site=site,
        title=title,
        index=index,
        sections=tuple(sections),
        base_path=normalize_base_path(base_path),
    )


def load_manifest(
    source: pathlib.Path, mesh_dir_name: str = DEFAULT_MESH_DIR
) -> Manifest:
    if not source.is_dir():
        raise ConfigurationError(f"source corpus not found: {source}")
    mesh_dir = source / mesh_dir_name
    if not mesh_dir.is_dir():
        raise ConfigurationError(f"mesh directory not found: {mesh_dir}")

    config_path = find_config(mesh_dir)
    try:
        text = config_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigurationError(f"{config_path}: cannot read docs config: {e}") from e
    try:
        data = parse_config_text(text, config_path.suffix)
        return normalize_manifest(data)
    except ConfigurationError as e:
        raise ConfigurationError(f"{config_path}: {e}") from e
