"""Light Markdown-to-markup converter for chat messages and source excerpts.

Handles: bold, italic, inline code, ordered and unordered lists, paragraphs
with single-newline line breaks.
Does NOT handle: headings, tables, blockquotes, links, images, nested lists.

Conversion happens in two steps. ``segment`` formats each line's inline spans
and groups the lines into blocks (paragraphs and lists). A renderer then turns
the blocks into HTML (``render_html``) or Rich console markup
(``render_rich``). Inline spans are carried between the two steps as private
noncharacter marks so the segmenter never sees dialect-specific tags.

The HTML renderer does not escape the input text unless asked to
(``escape=True``). Callers that inject the result into a page must either opt
in or trust their input.
"""

from __future__ import annotations

import enum
import html
import re
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, TypeAlias

from rich.markup import escape as rich_escape

if TYPE_CHECKING:
    from collections.abc import Callable

# Span marks (Unicode noncharacters, never valid in interchanged text)
STRONG_OPEN = "\ufdd0"
STRONG_CLOSE = "\ufdd1"
EM_OPEN = "\ufdd2"
EM_CLOSE = "\ufdd3"
CODE_OPEN = "\ufdd4"
CODE_CLOSE = "\ufdd5"

# Input characters that collide with the marks are stored as _LITERAL plus a
# stand-in six code points higher, and restored when rendering
_LITERAL = "\ufddf"
_RESERVED = re.compile("[\ufdd0-\ufdd5\ufddf]")
_RESTORE = re.compile("\ufddf(.)")
_MARK_SPLIT = re.compile("([\ufdd0-\ufdd5])")

_PLAIN = "[^\ufdd0-\ufdd5]"
_NO_STAR = "[^*\ufdd0-\ufdd5]"
_NO_UNDERSCORE = "[^_\ufdd0-\ufdd5]"
_INTRAWORD = r"(?<=\w)_(?=\w)"
_STRONG_FLAT = f"\ufdd0{_PLAIN}*\ufdd1"
_EM_FLAT = f"\ufdd2{_PLAIN}*\ufdd3"
_STRONG_ANY = f"\ufdd0(?:{_PLAIN}|{_EM_FLAT})*\ufdd1"
_EM_ANY = f"\ufdd2(?:{_PLAIN}|{_STRONG_FLAT})*\ufdd3"

# Bold: **text** or __text__; the body never runs past the next double delimiter
_STRONG = re.compile(
    rf"\*\*((?:{_NO_STAR}|\*(?!\*))+?)\*\*"
    rf"|(?<!\w)__((?:{_NO_UNDERSCORE}|_(?!_))+?)__(?!\w)"
)
# Italic: *text* or _text_, may wrap whole bold spans but never half of one.
# The body stops at the next delimiter; only intraword underscores are skipped.
_EM = re.compile(
    rf"(?<!\*)\*(?![\s*])((?:{_NO_STAR}|{_STRONG_FLAT})+?)(?<![\s*])\*(?!\*)"
    rf"|(?<!\w)_(?![\s_])((?:{_NO_UNDERSCORE}|{_INTRAWORD}|{_STRONG_FLAT})+?)(?<![\s_])_(?!\w)"
)
# Inline code: `code`, may wrap whole spans but never cross one
_CODE = re.compile(rf"`((?:[^`\ufdd0-\ufdd5]|{_STRONG_ANY}|{_EM_ANY})+?)`")

_ORDERED_ITEM = re.compile(r"^\s*[0-9]+\.\s(.*)")
_UNORDERED_ITEM = re.compile(r"^\s*[*-]\s(.*)")


def _wrap(opening: str, closing: str) -> Callable[[re.Match[str]], str]:
    def _sub(match: re.Match[str]) -> str:
        inner = next(g for g in match.groups() if g is not None)
        return f"{opening}{inner}{closing}"

    return _sub


def _protect(match: re.Match[str]) -> str:
    char = match.group()
    return _LITERAL + (char if char == _LITERAL else chr(ord(char) + 6))


def _restore(match: re.Match[str]) -> str:
    char = match.group(1)
    return char if char == _LITERAL else chr(ord(char) - 6)


def format_inline(line: str) -> str:
    """Apply inline Markdown formatting to a single line.

    Returns the line with strong, emphasis and code spans delimited by the
    span marks. Unmatched delimiters are left as literal characters. Input
    characters that collide with the marks are kept in a protected form that
    the renderers turn back into the original text.
    """
    line = _RESERVED.sub(_protect, line)
    line = _STRONG.sub(_wrap(STRONG_OPEN, STRONG_CLOSE), line)
    line = _EM.sub(_wrap(EM_OPEN, EM_CLOSE), line)
    return _CODE.sub(_wrap(CODE_OPEN, CODE_CLOSE), line)


class ListKind(enum.Enum):
    """Bullet style of a list block."""

    ORDERED = "ol"
    UNORDERED = "ul"


@dataclass(frozen=True)
class Paragraph:
    """Consecutive non-blank text lines, rendered with line breaks between them."""

    lines: tuple[str, ...]


@dataclass(frozen=True)
class ListBlock:
    """Consecutive list items of one bullet style."""

    kind: ListKind
    items: tuple[str, ...]


Block: TypeAlias = Paragraph | ListBlock


@dataclass(frozen=True)
class _Segmenter:
    """Open-block state threaded through the lines of one conversion.

    A paragraph and a list are never open at the same time.
    """

    list_kind: ListKind | None = None
    items: tuple[str, ...] = ()
    paragraph: tuple[str, ...] = ()

    def feed(self, line: str) -> tuple[_Segmenter, tuple[Block, ...]]:
        """Consume one formatted line; return the next state and the blocks it closed."""
        if match := _ORDERED_ITEM.match(line):
            return self._add_item(ListKind.ORDERED, match.group(1))
        if match := _UNORDERED_ITEM.match(line):
            return self._add_item(ListKind.UNORDERED, match.group(1))
        if not line.strip():
            return _Segmenter(), self.finish()
        return self._add_text(line)

    def finish(self) -> tuple[Block, ...]:
        """Flush the open paragraph, then close the open list."""
        blocks: list[Block] = []
        if self.paragraph:
            blocks.append(Paragraph(self.paragraph))
        if self.list_kind is not None:
            blocks.append(ListBlock(self.list_kind, self.items))
        return tuple(blocks)

    def _add_item(self, kind: ListKind, content: str) -> tuple[_Segmenter, tuple[Block, ...]]:
        if self.list_kind is kind:
            return replace(self, items=(*self.items, content)), ()
        return _Segmenter(list_kind=kind, items=(content,)), self.finish()

    def _add_text(self, line: str) -> tuple[_Segmenter, tuple[Block, ...]]:
        if self.list_kind is not None:
            return _Segmenter(paragraph=(line,)), self.finish()
        return replace(self, paragraph=(*self.paragraph, line)), ()


def _split_lines(text: str) -> list[str]:
    return [line.removesuffix("\r") for line in text.split("\n")]


def segment(text: str) -> tuple[Block, ...]:
    """Split text into paragraph and list blocks, in input order."""
    if not text:
        return ()
    blocks: list[Block] = []
    state = _Segmenter()
    for line in _split_lines(text):
        state, closed = state.feed(format_inline(line))
        blocks.extend(closed)
    blocks.extend(state.finish())
    return tuple(blocks)


# === HTML ===


@dataclass(frozen=True)
class HtmlClasses:
    """CSS classes put on the emitted HTML elements; empty means no class attribute."""

    paragraph: str = "my-2"
    ordered_list: str = "list-decimal list-inside my-2 pl-5 space-y-1"
    unordered_list: str = "list-disc list-inside my-2 pl-5 space-y-1"
    code: str = "bg-gem-mist/50 px-1 py-0.5 rounded-sm font-mono text-sm"


def _class_attr(css_class: str) -> str:
    return f' class="{css_class}"' if css_class else ""


def _render_spans(content: str, tags: dict[str, str], escape: Callable[[str], str]) -> str:
    """Replace span marks with tags, escaping the literal text between them."""
    parts = _MARK_SPLIT.split(content)
    return "".join(
        tags[part] if part in tags else escape(_RESTORE.sub(_restore, part))
        for part in parts
        if part
    )


def render_html(
    blocks: tuple[Block, ...],
    classes: HtmlClasses | None = None,
    *,
    escape: bool = False,
) -> str:
    """Render blocks as HTML fragments concatenated in order."""
    classes = classes or HtmlClasses()
    tags = {
        STRONG_OPEN: "<strong>",
        STRONG_CLOSE: "</strong>",
        EM_OPEN: "<em>",
        EM_CLOSE: "</em>",
        CODE_OPEN: f"<code{_class_attr(classes.code)}>",
        CODE_CLOSE: "</code>",
    }

    def _text(part: str) -> str:
        return html.escape(part, quote=False) if escape else part

    out: list[str] = []
    for block in blocks:
        if isinstance(block, Paragraph):
            body = "<br/>".join(_render_spans(line, tags, _text) for line in block.lines)
            out.append(f"<p{_class_attr(classes.paragraph)}>{body}</p>")
        else:
            tag = block.kind.value
            css = (
                classes.ordered_list
                if block.kind is ListKind.ORDERED
                else classes.unordered_list
            )
            items = "".join(f"<li>{_render_spans(item, tags, _text)}</li>" for item in block.items)
            out.append(f"<{tag}{_class_attr(css)}>{items}</{tag}>")
    return "".join(out)


def markdown_to_html(
    text: str,
    classes: HtmlClasses | None = None,
    *,
    escape: bool = False,
) -> str:
    """Convert a Markdown-subset string to HTML."""
    return render_html(segment(text), classes, escape=escape)


# === Rich console markup ===

_RICH_TAGS = {
    STRONG_OPEN: "[bold]",
    STRONG_CLOSE: "[/bold]",
    EM_OPEN: "[italic]",
    EM_CLOSE: "[/italic]",
    CODE_OPEN: "[bold cyan]",
    CODE_CLOSE: "[/bold cyan]",
}


def _rich_spans(content: str) -> str:
    return _render_spans(content, _RICH_TAGS, rich_escape)


def render_rich(blocks: tuple[Block, ...]) -> str:
    """Render blocks as Rich console markup, one blank line between blocks."""
    out: list[str] = []
    for block in blocks:
        if isinstance(block, Paragraph):
            lines = [_rich_spans(line) for line in block.lines]
        elif block.kind is ListKind.ORDERED:
            lines = [f"  {n}. {_rich_spans(item)}" for n, item in enumerate(block.items, start=1)]
        else:
            lines = [f"  • {_rich_spans(item)}" for item in block.items]
        out.append("\n".join(lines))
    return "\n\n".join(out)


def markdown_to_rich(text: str) -> str:
    """Convert a Markdown-subset string to Rich console markup."""
    return render_rich(segment(text))
