"""Turn a processed note body into the HTML sent to Ghost."""

from __future__ import annotations

import html
import logging
import re
import xml.etree.ElementTree as etree
from typing import Callable

from bs4 import BeautifulSoup, NavigableString, Tag
from markdown import markdown
from markdown.extensions import Extension
from markdown.inlinepatterns import InlineProcessor
from markdown.util import AtomicString

from ghostpost.platforms import Notifier
from ghostpost.services.front_matter import split_front_matter
from ghostpost.utils import LogNotifier, is_image_extension
from ghostpost.vault import FileGraph, ReferenceResolver, VaultFile

LOGGER = logging.getLogger(__name__)

# Rewrites the image references of an inlined note body.
EmbeddedImages = Callable[[str, VaultFile], str]

WIKI_LINK_PATTERN = re.compile(r"(?<!!)\[\[([^\]]+?)\]\]")
EMBED_PATTERN = re.compile(r"!\[\[([^\]]+?)\]\]")
BARE_URL_PATTERN = r"(?<![\w\"'=/<])(https?://[^\s<>\"'\]]+)"

IMAGE_CARD_CLASS = "kg-card kg-image-card"
EMBED_CARD_CLASS = "kg-card kg-embed-card"

_YOUTUBE_PATTERNS = (
    re.compile(r"youtube\.com/watch\?v=([a-zA-Z0-9_-]{6,})"),
    re.compile(r"youtu\.be/([a-zA-Z0-9_-]{6,})"),
    re.compile(r"youtube\.com/shorts/([a-zA-Z0-9_-]{6,})"),
)
_VIMEO_PATTERN = re.compile(r"vimeo\.com/(?:video/)?([0-9]+)")
_TRAILING_PUNCTUATION = ".,;:!?"


def wiki_link_slug(target: str) -> str:
    return re.sub(r"\s+", "-", target.strip().lower())


def source_footer(vault_name: str) -> str:
    return f"\n\n---\n*Originally published from {vault_name} vault*"


class BareUrlInlineProcessor(InlineProcessor):
    """Links ``http(s)://`` URLs that appear in plain text."""

    ANCESTOR_EXCLUDES = ("a",)

    def handleMatch(self, m, data):
        url = m.group(1).rstrip(_TRAILING_PUNCTUATION)
        while url.endswith(")") and url.count(")") > url.count("("):
            url = url[:-1].rstrip(_TRAILING_PUNCTUATION)
        element = etree.Element("a")
        element.set("href", url)
        element.text = AtomicString(url)
        return element, m.start(1), m.start(1) + len(url)


class BareUrlExtension(Extension):
    def extendMarkdown(self, md):
        md.inlinePatterns.register(BareUrlInlineProcessor(BARE_URL_PATTERN, md), "bare_url", 85)


def basic_markdown_to_html(text: str) -> str:
    """Small markdown subset used when the full renderer fails."""
    stash: list[str] = []

    def keep(fragment: str) -> str:
        stash.append(fragment)
        return f"\x00{len(stash) - 1}\x00"

    text = re.sub(
        r"```[\w-]*\n?(.*?)```",
        lambda m: keep(f"<pre><code>{html.escape(m.group(1))}</code></pre>"),
        text,
        flags=re.DOTALL,
    )
    text = re.sub(r"`([^`\n]+)`", lambda m: keep(f"<code>{html.escape(m.group(1))}</code>"), text)
    for level in range(6, 0, -1):
        text = re.sub(
            rf"^{'#' * level} (.*)$",
            lambda m, level=level: keep(f"<h{level}>{m.group(1).strip()}</h{level}>"),
            text,
            flags=re.MULTILINE,
        )
    text = re.sub(r"\*\*(.+?)\*\*", r"<strong>\1</strong>", text)
    text = re.sub(r"\*(.+?)\*", r"<em>\1</em>", text)
    text = re.sub(r"!\[([^\]]*)\]\(([^)]+)\)", r'<img src="\2" alt="\1" />', text)
    text = re.sub(r"\[([^\]]+)\]\(([^)]+)\)", r'<a href="\2">\1</a>', text)

    blocks: list[str] = []
    for block in re.split(r"\n{2,}", text.strip()):
        block = block.strip()
        if not block:
            continue
        if re.fullmatch(r"\x00\d+\x00", block):
            blocks.append(block)
        else:
            blocks.append("<p>" + block.replace("\n", "<br>") + "</p>")
    output = "\n".join(blocks)
    return re.sub(r"\x00(\d+)\x00", lambda m: stash[int(m.group(1))], output)


class ContentRenderer:
    """Expands wiki-links and note embeds, renders markdown and adds Ghost cards."""

    def __init__(
        self,
        resolver: ReferenceResolver,
        graph: FileGraph,
        *,
        convert_wiki_links: bool = True,
        add_source_link: bool = False,
        notifier: Notifier | None = None,
    ) -> None:
        self._resolver = resolver
        self._graph = graph
        self._convert_wiki_links = convert_wiki_links
        self._add_source_link = add_source_link
        self._notifier = notifier or LogNotifier()

    def render(
        self,
        body: str,
        note: VaultFile | None = None,
        *,
        embedded_images: EmbeddedImages | None = None,
    ) -> str:
        """
        Builds the final post HTML.

        Args:
            body: Markdown body with images already rewritten.
            note: The note being published; anchors relative link resolution.
            embedded_images: Applied to the body of every inlined note before it
                is expanded, so its images go through the same upload as the
                main body. Without it they are left as written.

        Returns:
            HTML with image and video cards applied.
        """
        visited = {note.path} if note is not None else set()
        expanded = self.expand(body, note, visited=visited, embedded_images=embedded_images)
        if self._add_source_link and self._graph.name:
            expanded += source_footer(self._graph.name)
        return self.post_process(self.to_html(expanded))

    def expand(
        self,
        text: str,
        note: VaultFile | None,
        *,
        visited: set[str] | None = None,
        embedded_images: EmbeddedImages | None = None,
    ) -> str:
        """Convert wiki-links and inline embedded notes, recursively."""
        visited = set() if visited is None else visited
        if self._convert_wiki_links:
            text = WIKI_LINK_PATTERN.sub(self._wiki_link, text)

        def inline(match: re.Match[str]) -> str:
            return self._inline_embed(match, note, visited, embedded_images)

        return EMBED_PATTERN.sub(inline, text)

    def to_html(self, markdown_text: str) -> str:
        try:
            return markdown(markdown_text, extensions=["extra", BareUrlExtension()])
        except Exception:
            LOGGER.exception("Markdown conversion failed, falling back to basic converter")
            return basic_markdown_to_html(markdown_text)

    def post_process(self, html_text: str) -> str:
        soup = BeautifulSoup(html_text, "html.parser")
        self._wrap_images(soup)
        self._embed_videos(soup)
        return str(soup)

    @staticmethod
    def _wiki_link(match: re.Match[str]) -> str:
        target, _, display = match.group(1).partition("|")
        target = target.strip()
        display = display.strip() or target
        return f"[{display}](/{wiki_link_slug(target)})"

    def _inline_embed(
        self,
        match: re.Match[str],
        note: VaultFile | None,
        visited: set[str],
        embedded_images: EmbeddedImages | None,
    ) -> str:
        target = match.group(1).partition("|")[0].split("#", 1)[0].strip()
        file = self._resolver.resolve(target, note) if target else None
        if file is None:
            LOGGER.warning("Embedded note not found: %s", target)
            return f"*[Error processing: {target}]*"
        if is_image_extension(file.extension):
            return match.group(0)
        if file.path in visited:
            LOGGER.warning("Skipping circular embed of %s", file.path)
            return f"*[Circular embed: {target}]*"

        try:
            raw = self._graph.read_text(file)
        except (OSError, UnicodeDecodeError) as exc:
            LOGGER.error("Failed to inline embed %s: %s", target, exc)
            self._notifier.notify(f"Failed to inline embed: {target}", level=logging.WARNING)
            return f"*[Error processing: {target}]*"

        body = split_front_matter(raw).body
        if embedded_images is not None:
            body = embedded_images(body, file)
        inner = self.expand(body, file, visited=visited | {file.path}, embedded_images=embedded_images)
        return f"\n\n{inner}\n\n"

    @staticmethod
    def _wrap_images(soup: BeautifulSoup) -> None:
        for img in list(soup.find_all("img")):
            parent = img.parent
            if parent is None or parent.name in ("figure", "a"):
                continue
            if parent.name == "p" and _only_child(parent) is img:
                _wrap_in_card(soup, img, replacing=parent)
            elif parent is soup and _alone_on_line(img):
                _wrap_in_card(soup, img, replacing=img)

    @staticmethod
    def _embed_videos(soup: BeautifulSoup) -> None:
        for paragraph in list(soup.find_all("p")):
            link = _only_child(paragraph)
            if not isinstance(link, Tag) or link.name != "a":
                continue
            url = link.get("href", "")
            if not url.startswith(("http://", "https://")) or link.get_text() != url:
                continue
            iframe = _video_iframe(soup, url)
            if iframe is None:
                continue
            figure = soup.new_tag("figure", attrs={"class": EMBED_CARD_CLASS})
            figure.append(iframe)
            paragraph.replace_with(figure)


def _only_child(tag: Tag):
    children = [
        child for child in tag.children if not (isinstance(child, NavigableString) and not child.strip())
    ]
    return children[0] if len(children) == 1 else None


def _alone_on_line(tag: Tag) -> bool:
    before = tag.previous_sibling
    after = tag.next_sibling
    before_ok = before is None or (isinstance(before, NavigableString) and before.endswith("\n"))
    after_ok = after is None or (isinstance(after, NavigableString) and after.startswith("\n"))
    return before_ok and after_ok


def _wrap_in_card(soup: BeautifulSoup, img: Tag, *, replacing: Tag) -> None:
    figure = soup.new_tag("figure", attrs={"class": IMAGE_CARD_CLASS})
    alt = img.get("alt", "")
    replacing.replace_with(figure)
    figure.append(img.extract())
    if alt:
        caption = soup.new_tag("figcaption")
        caption.string = alt
        figure.append(caption)


def _video_iframe(soup: BeautifulSoup, url: str) -> Tag | None:
    for pattern in _YOUTUBE_PATTERNS:
        found = pattern.search(url)
        if found:
            return soup.new_tag(
                "iframe",
                attrs={
                    "width": "560",
                    "height": "315",
                    "src": f"https://www.youtube.com/embed/{found.group(1)}",
                    "frameborder": "0",
                    "allow": "accelerometer; autoplay; clipboard-write; encrypted-media; gyroscope; "
                    "picture-in-picture; web-share",
                    "allowfullscreen": "",
                },
            )
    found = _VIMEO_PATTERN.search(url)
    if found:
        return soup.new_tag(
            "iframe",
            attrs={
                "src": f"https://player.vimeo.com/video/{found.group(1)}",
                "width": "640",
                "height": "360",
                "frameborder": "0",
                "allow": "autoplay; fullscreen; picture-in-picture",
                "allowfullscreen": "",
            },
        )
    return None
