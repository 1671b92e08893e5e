from __future__ import annotations

import json
import pathlib
import shutil
from typing import List

from .config import DOC_EXT, INDEX_NAME, META_FILENAME


def ensure_dir(p: pathlib.Path) -> None:
    p.mkdir(parents=True, exist_ok=True)


def reset_dir(p: pathlib.Path) -> None:
    """Delete ``p`` entirely and recreate it empty."""
    if p.exists():
        print(f"- clearing {p}")
        shutil.rmtree(p)
    ensure_dir(p)


def write_text(path: pathlib.Path, text: str) -> None:
    ensure_dir(path.parent)
    with path.open("w", encoding="utf-8", newline="\n") as f:
        f.write(text)


def write_document(
    out_dir: pathlib.Path, name: str, text: str
) -> pathlib.Path:
    path = out_dir / f"{name}{DOC_EXT}"
    write_text(path, text)
    return path


def write_meta(out_dir: pathlib.Path, title: str, pages: List[str]) -> pathlib.Path:
    """Write the ``meta.json`` navigation descriptor for one directory."""
    path = out_dir / META_FILENAME
    data = {"title": title, "pages": list(pages)}
    write_text(path, json.dumps(data, indent=2, ensure_ascii=False) + "\n")
    return path


def root_pages(section_ids: List[str]) -> List[str]:
    return [INDEX_NAME, *section_ids]
