#!/usr/bin/env python3
from __future__ import annotations

import pathlib
import re

# ---------- Paths

# Relative to the working directory the porter is invoked from.
DEFAULT_OUTPUT_ROOT = pathlib.Path("sites")
OUTPUT_SUBDIR = ("content", "docs")

# ---------- Corpus layout

DEFAULT_MESH_DIR = "Mesh"
CONFIG_CANDIDATES = (
    "docs.config.json",
    "docs.config.yml",
    "docs.config.yaml",
    "Docs Config.md",
)
SOURCE_EXT = ".md"

# ---------- Output

DOC_EXT = ".mdx"
META_FILENAME = "meta.json"
INDEX_NAME = "index"

# ---------- Config

DEFAULT_BASE_PATH = "/"
DESCRIPTION_MAX_LEN = 160
ELLIPSIS = "..."
FRONTMATTER_MARKERS = ("---", "+++")

# Leading "Word - " prefixes that group notes in the mesh but carry no
# meaning in a URL.
ORG_PREFIXES = ("guide", "reference", "concept", "tutorial", "docs")

# Fence info strings the site highlighter does not know.
FENCE_LANGUAGE_MAP = {
    "dataview": "text",
    "dataviewjs": "text",
    "tasks": "text",
    "query": "text",
    "base": "text",
    "excalidraw": "text",
}

# Some shared regexes

WIKI_LINK = re.compile(
    r"(?<!!)\[\[(?P<target>[^\]|\n]+?)(?:\|(?P<display>[^\]\n]+))?\]\]"
)
WIKI_EMBED = re.compile(r"!\[\[[^\]\n]*\]\]")
MD_LINK_IMG = re.compile(
    r'(!?)\[(?P<alt>[^\]]*)\]\((?P<url>[^)\s]+)(?:\s+"[^"]*")?\)'
)
H1_LINE = re.compile(r"^ {0,3}#[ \t]+(?P<text>.+?)(?:[ \t]+#+)?[ \t]*$")
FENCE_OPEN = re.compile(
    r"^(?P<indent> {0,3})(?P<fence>`{3,}|~{3,})(?P<info>.*)$"
)
CONFIG_BLOCK = re.compile(
    r"^(?P<fence>`{3,}|~{3,})[ \t]*(?P<lang>json|ya?ml)[ \t]*\n"
    r"(?P<body>.*?)^(?P=fence)[ \t]*$",
    re.MULTILINE | re.DOTALL | re.IGNORECASE,
)
ORG_PREFIX_RE = re.compile(
    r"^\s*(?:" + "|".join(ORG_PREFIXES) + r")\s+-\s+", re.IGNORECASE
)
SAFE_DIR_NAME = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")
SLUG_RE = re.compile(r"[^a-z0-9-]+")
