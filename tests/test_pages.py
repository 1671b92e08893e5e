"""Tests for resolving manifest references to mesh notes."""

import pytest

from porter.manifest import ConfigurationError, Manifest, PageRef, Section
from porter.pages import (
    extract_description,
    resolve_manifest,
    resolve_page,
    truncate,
)


def _mesh(tmp_path, notes):
    mesh = tmp_path / "Mesh"
    mesh.mkdir()
    for ident, body in notes.items():
        (mesh / f"{ident}.md").write_text(body, encoding="utf-8")
    return mesh


def _manifest(sections, index="Intro"):
    return Manifest(
        site="flint",
        title="Flint Docs",
        index=PageRef(index),
        sections=tuple(sections),
    )


class TestResolvePage:
    def test_title_from_first_h1(self, tmp_path):
        mesh = _mesh(tmp_path, {"Setup": "---\ntags: [x]\n---\n## Sub\n# Real Title\n"})
        page = resolve_page(PageRef("Setup"), mesh)
        assert page.title == "Real Title"

    def test_title_override_wins(self, tmp_path):
        mesh = _mesh(tmp_path, {"Setup": "# Heading\n"})
        page = resolve_page(PageRef("Setup", title="Custom"), mesh)
        assert page.title == "Custom"

    def test_title_falls_back_to_identifier(self, tmp_path):
        mesh = _mesh(tmp_path, {"Guide - Setup": "No heading here.\n"})
        page = resolve_page(PageRef("Guide - Setup"), mesh)
        assert page.title == "Guide - Setup"

    def test_heading_inside_code_ignored(self, tmp_path):
        mesh = _mesh(tmp_path, {"Setup": "```bash\n# not a title\n```\n"})
        assert resolve_page(PageRef("Setup"), mesh).title == "Setup"

    def test_slug_derived_from_identifier(self, tmp_path):
        mesh = _mesh(tmp_path, {"Guide - Getting Started": "# Hi\n"})
        page = resolve_page(PageRef("Guide - Getting Started"), mesh)
        assert page.slug == "getting-started"
        assert page.file_name == "Guide - Getting Started"

    def test_slug_override(self, tmp_path):
        mesh = _mesh(tmp_path, {"Setup": "# Hi\n"})
        assert resolve_page(PageRef("Setup", slug="install"), mesh).slug == "install"

    def test_description_override(self, tmp_path):
        mesh = _mesh(tmp_path, {"Setup": "# Hi\n\nBody text.\n"})
        page = resolve_page(PageRef("Setup", description="Given"), mesh)
        assert page.description == "Given"

    def test_missing_source_returns_none(self, tmp_path):
        mesh = _mesh(tmp_path, {})
        assert resolve_page(PageRef("Ghost"), mesh) is None

    def test_keeps_raw_note_text(self, tmp_path):
        raw = "---\ntags: [a]\n---\n# Hi\n\nBody.\n"
        mesh = _mesh(tmp_path, {"Setup": raw})
        page = resolve_page(PageRef("Setup"), mesh)
        assert page.text == raw
        assert page.title == "Hi"


class TestExtractDescription:
    def test_first_paragraph_line_after_title(self):
        body = "# Title\n\nFirst line here.\nSecond line.\n"
        assert extract_description(body) == "First line here."

    def test_strips_inline_markup(self):
        body = "# T\n\nUse **bold**, *em*, `code`, [[Setup|the setup]] and [docs](https://x.y).\n"
        assert extract_description(body) == "Use bold, em, code, the setup and docs."

    def test_keeps_snake_case(self):
        assert extract_description("# T\n\nSet max_retries to 3.\n") == "Set max_retries to 3."

    def test_drops_embeds_and_images(self):
        body = "# T\n\n![[diagram.png]] ![alt](img.png) Overview.\n"
        assert extract_description(body) == "Overview."

    @pytest.mark.parametrize(
        "block",
        ["## Next", "- item", "* item", "1. step", "| a | b |", "```js", "~~~"],
    )
    def test_stops_at_block_marker(self, block):
        assert extract_description(f"# T\n\n{block}\n\nLater prose.\n") is None

    def test_no_heading_uses_top_of_body(self):
        assert extract_description("\nJust prose.\n") == "Just prose."

    def test_tag_line_is_prose(self):
        assert extract_description("# T\n\n#draft notes\n") == "#draft notes"

    def test_empty_body(self):
        assert extract_description("# T\n") is None

    def test_truncated(self):
        body = "# T\n\n" + "word " * 60 + "\n"
        desc = extract_description(body)
        assert len(desc) <= 160
        assert desc.endswith("...")


class TestTruncate:
    def test_short_untouched(self):
        assert truncate("abc", 160) == "abc"

    def test_exact_limit_untouched(self):
        assert truncate("a" * 160) == "a" * 160

    def test_long_gets_ellipsis(self):
        assert truncate("a" * 161) == "a" * 157 + "..."


class TestResolveManifest:
    def test_resolves_in_order(self, tmp_path):
        mesh = _mesh(tmp_path, {"Intro": "# Intro\n", "B": "# B\n", "A": "# A\n"})
        site = resolve_manifest(
            _manifest([Section("guide", "Guide", (PageRef("B"), PageRef("A")))]),
            mesh,
        )
        assert site.index.file_name == "Intro"
        assert [p.slug for p in site.sections[0].pages] == ["b", "a"]
        assert site.skipped == ()

    def test_missing_index_is_fatal(self, tmp_path):
        mesh = _mesh(tmp_path, {"Setup": "# Setup\n"})
        with pytest.raises(ConfigurationError, match="Intro.md"):
            resolve_manifest(
                _manifest([Section("guide", "Guide", (PageRef("Setup"),))]), mesh
            )

    def test_missing_section_page_is_skipped(self, tmp_path, capsys):
        mesh = _mesh(tmp_path, {"Intro": "# Intro\n", "Setup": "# Setup\n"})
        site = resolve_manifest(
            _manifest(
                [Section("guide", "Guide", (PageRef("Ghost"), PageRef("Setup")))]
            ),
            mesh,
        )
        assert [p.file_name for p in site.sections[0].pages] == ["Setup"]
        assert site.skipped == ("Ghost",)
        assert "! missing source for 'Ghost'" in capsys.readouterr().out

    def test_duplicate_file_name_rejected(self, tmp_path):
        mesh = _mesh(tmp_path, {"Intro": "# Intro\n", "Setup": "# Setup\n"})
        sections = [
            Section("a", "A", (PageRef("Setup"),)),
            Section("b", "B", (PageRef("Setup"),)),
        ]
        with pytest.raises(ConfigurationError, match="listed twice"):
            resolve_manifest(_manifest(sections), mesh)

    def test_index_listed_in_section_rejected(self, tmp_path):
        mesh = _mesh(tmp_path, {"Intro": "# Intro\n"})
        with pytest.raises(ConfigurationError, match="listed twice"):
            resolve_manifest(
                _manifest([Section("a", "A", (PageRef("Intro"),))]), mesh
            )

    def test_duplicate_slug_in_section_rejected(self, tmp_path):
        mesh = _mesh(
            tmp_path,
            {"Intro": "# I\n", "Guide - Setup": "# S\n", "Setup": "# S\n"},
        )
        section = Section("guide", "Guide", (PageRef("Guide - Setup"), PageRef("Setup")))
        with pytest.raises(ConfigurationError, match="duplicate slug 'setup'"):
            resolve_manifest(_manifest([section]), mesh)

    def test_same_slug_in_different_sections_allowed(self, tmp_path):
        mesh = _mesh(
            tmp_path,
            {"Intro": "# I\n", "Guide - Setup": "# S\n", "Reference - Setup": "# S\n"},
        )
        sections = [
            Section("guide", "Guide", (PageRef("Guide - Setup"),)),
            Section("ref", "Reference", (PageRef("Reference - Setup"),)),
        ]
        site = resolve_manifest(_manifest(sections), mesh)
        assert [s.pages[0].slug for s in site.sections] == ["setup", "setup"]
