from __future__ import annotations

from pathlib import Path

import pytest

from ghostpost.services import renderer as renderer_module
from ghostpost.services.renderer import ContentRenderer, basic_markdown_to_html
from ghostpost.vault import LocalVault, ReferenceResolver, VaultFile

NOTE = VaultFile("notes/post.md")


class RecordingNotifier:
    def __init__(self) -> None:
        self.messages: list[str] = []

    def notify(self, message: str, *, level: int = 20) -> None:
        self.messages.append(message)


@pytest.fixture()
def vault(tmp_path: Path) -> LocalVault:
    root = tmp_path / "MyVault"
    notes = root / "notes"
    notes.mkdir(parents=True)
    (notes / "post.md").write_text("# Post", encoding="utf-8")
    (notes / "Other Note.md").write_text("---\ntitle: x\n---\nInlined **text**", encoding="utf-8")
    (notes / "a.md").write_text("A says ![[b]]", encoding="utf-8")
    (notes / "b.md").write_text("B says ![[a]]", encoding="utf-8")
    (notes / "photo.png").write_bytes(b"PNG")
    (notes / "data.bin").write_bytes(b"\xff\xfe\x00\x81")
    return LocalVault(root)


def _renderer(vault: LocalVault, **kwargs) -> ContentRenderer:
    return ContentRenderer(ReferenceResolver(vault), vault, **kwargs)


class TestExpand:
    def test_wiki_links_become_site_links(self, vault: LocalVault) -> None:
        text = "See [[My Page|the page]] and [[Other Note]]"
        assert _renderer(vault).expand(text, NOTE) == "See [the page](/my-page) and [Other Note](/other-note)"

    def test_wiki_link_conversion_can_be_disabled(self, vault: LocalVault) -> None:
        text = "See [[My Page|the page]]"
        assert _renderer(vault, convert_wiki_links=False).expand(text, NOTE) == text

    def test_note_embed_is_inlined_without_front_matter(self, vault: LocalVault) -> None:
        result = _renderer(vault).expand("Before\n\n![[Other Note]]\n\nAfter", NOTE)
        assert "Inlined **text**" in result
        assert "title: x" not in result
        assert result.startswith("Before")
        assert result.endswith("After")

    def test_inlined_note_body_goes_through_image_hook(self, vault: LocalVault) -> None:
        (vault.root / "notes" / "Gallery.md").write_text("---\ntitle: g\n---\n![[photo.png]]", encoding="utf-8")
        vault.refresh()
        seen: list[tuple[str, str]] = []

        def rewrite(body: str, source: VaultFile) -> str:
            seen.append((body, source.path))
            return body.replace("![[photo.png]]", "![g](https://cdn.example.com/photo.png)")

        html = _renderer(vault).render("Intro\n\n![[Gallery]]", NOTE, embedded_images=rewrite)

        assert seen == [("![[photo.png]]", "notes/Gallery.md")]
        assert "![[" not in html
        assert 'src="https://cdn.example.com/photo.png"' in html

    def test_missing_embed_gets_marker(self, vault: LocalVault) -> None:
        assert _renderer(vault).expand("![[Nope]]", NOTE) == "*[Error processing: Nope]*"

    def test_cyclic_embeds_stop_with_marker(self, vault: LocalVault) -> None:
        result = _renderer(vault).expand("![[a]]", NOTE, visited={NOTE.path})
        assert "A says" in result
        assert "B says" in result
        assert "*[Circular embed: a]*" in result

    def test_image_embeds_are_left_alone(self, vault: LocalVault) -> None:
        assert _renderer(vault).expand("![[photo.png]]", NOTE) == "![[photo.png]]"

    def test_unreadable_embed_reports_and_continues(self, vault: LocalVault) -> None:
        notifier = RecordingNotifier()
        result = _renderer(vault, notifier=notifier).expand("x ![[data.bin]] y", NOTE)
        assert result == "x *[Error processing: data.bin]* y"
        assert notifier.messages == ["Failed to inline embed: data.bin"]


class TestRender:
    def test_markdown_is_rendered(self, vault: LocalVault) -> None:
        html = _renderer(vault).render("# Title\n\nHello **world**", NOTE)
        assert "<h1>Title</h1>" in html
        assert "<strong>world</strong>" in html

    def test_self_embed_is_circular(self, vault: LocalVault) -> None:
        html = _renderer(vault).render("![[post]]", NOTE)
        assert "Circular embed: post" in html

    def test_source_footer(self, vault: LocalVault) -> None:
        html = _renderer(vault, add_source_link=True).render("Body", NOTE)
        assert "<em>Originally published from MyVault vault</em>" in html

    def test_standalone_markdown_image_becomes_image_card(self, vault: LocalVault) -> None:
        html = _renderer(vault).render("![A cat](cat.png)", NOTE)
        assert '<figure class="kg-card kg-image-card">' in html
        assert "<figcaption>A cat</figcaption>" in html
        assert "<p>" not in html

    @pytest.mark.parametrize(
        ("url", "embed"),
        [
            ("https://www.youtube.com/watch?v=dQw4w9WgXcQ", "https://www.youtube.com/embed/dQw4w9WgXcQ"),
            ("https://youtu.be/dQw4w9WgXcQ", "https://www.youtube.com/embed/dQw4w9WgXcQ"),
            ("https://www.youtube.com/shorts/abcdef123", "https://www.youtube.com/embed/abcdef123"),
            ("https://vimeo.com/123456789", "https://player.vimeo.com/video/123456789"),
        ],
    )
    def test_bare_video_url_becomes_embed_card(self, vault: LocalVault, url: str, embed: str) -> None:
        html = _renderer(vault).render(url, NOTE)
        assert '<figure class="kg-card kg-embed-card">' in html
        assert f'src="{embed}"' in html
        assert "<p>" not in html

    def test_other_bare_urls_are_only_linked(self, vault: LocalVault) -> None:
        html = _renderer(vault).render("https://example.com/page", NOTE)
        assert '<a href="https://example.com/page">https://example.com/page</a>' in html
        assert "iframe" not in html

    def test_bare_url_in_sentence_drops_trailing_punctuation(self, vault: LocalVault) -> None:
        html = _renderer(vault).render("Visit https://example.com/docs.", NOTE)
        assert '<a href="https://example.com/docs">https://example.com/docs</a>.' in html

    def test_falls_back_to_basic_converter(self, vault: LocalVault, monkeypatch: pytest.MonkeyPatch) -> None:
        def broken(*args, **kwargs):
            raise RuntimeError("renderer exploded")

        monkeypatch.setattr(renderer_module, "markdown", broken)
        html = _renderer(vault).render("# Title\n\nSome **bold**", NOTE)
        assert "<h1>Title</h1>" in html
        assert "<strong>bold</strong>" in html


class TestPostProcess:
    def test_paragraph_with_only_image(self, vault: LocalVault) -> None:
        html = _renderer(vault).post_process('<p><img alt="A cat" src="cat.png"/></p>')
        assert html == (
            '<figure class="kg-card kg-image-card"><img alt="A cat" src="cat.png"/>'
            "<figcaption>A cat</figcaption></figure>"
        )

    def test_image_without_alt_has_no_caption(self, vault: LocalVault) -> None:
        html = _renderer(vault).post_process('<p><img src="cat.png"/></p>')
        assert html == '<figure class="kg-card kg-image-card"><img src="cat.png"/></figure>'

    def test_inline_image_is_not_wrapped(self, vault: LocalVault) -> None:
        source = '<p>Look <img alt="x" src="x.png"/> here</p>'
        assert _renderer(vault).post_process(source) == source

    def test_image_alone_on_its_line(self, vault: LocalVault) -> None:
        html = _renderer(vault).post_process('<h2>x</h2>\n<img alt="b" src="a.png"/>\n<p>t</p>')
        assert '<figure class="kg-card kg-image-card"><img alt="b" src="a.png"/>' in html

    def test_existing_figures_are_kept(self, vault: LocalVault) -> None:
        source = '<figure><img alt="c" src="u"/><figcaption>c</figcaption></figure>'
        assert _renderer(vault).post_process(source) == source


def test_basic_converter_subset() -> None:
    html = basic_markdown_to_html(
        "# Title\n\nSome **bold** and *soft* with ![alt](a.png) and [link](https://x.y)\n\n```\ncode <b>\n```"
    )
    assert "<h1>Title</h1>" in html
    assert "<strong>bold</strong>" in html
    assert "<em>soft</em>" in html
    assert '<img src="a.png" alt="alt" />' in html
    assert '<a href="https://x.y">link</a>' in html
    assert "<pre><code>code &lt;b&gt;\n</code></pre>" in html
