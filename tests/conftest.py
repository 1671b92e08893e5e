import json
import pathlib

import pytest


def _write(path: pathlib.Path, text: str) -> pathlib.Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


@pytest.fixture
def make_corpus(tmp_path):
    """Build a corpus under tmp_path/corpus and return its root.

    ``notes`` maps identifiers to note bodies; ``config`` is written as
    Mesh/docs.config.json unless ``config_name``/``config_text`` say otherwise.
    """

    def _make(notes=None, config=None, config_name="docs.config.json", config_text=None):
        root = tmp_path / "corpus"
        mesh = root / "Mesh"
        mesh.mkdir(parents=True, exist_ok=True)
        for ident, body in (notes or {}).items():
            _write(mesh / f"{ident}.md", body)
        if config_text is None and config is not None:
            config_text = json.dumps(config, indent=2)
        if config_text is not None:
            _write(mesh / config_name, config_text)
        return root

    return _make


@pytest.fixture
def guide_config():
    return {
        "site": "flint",
        "title": "Flint Docs",
        "index": "Intro",
        "sections": [
            {"id": "guide", "title": "Guide", "pages": ["Setup", "Advanced"]},
        ],
    }


@pytest.fixture
def guide_notes():
    return {
        "Intro": "# Welcome\n\nStart with [[Setup]].\n",
        "Setup": "# Setup\n\nInstall the CLI first.\n\nSee [[Advanced|power features]].\n",
        "Advanced": "# Advanced\n\nBack to [[Setup]] or [[Intro]].\n",
    }
