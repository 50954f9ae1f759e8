from __future__ import annotations

import functools
import re
from typing import IO, Any, Match, Optional, cast

import markdown
from lxml import etree

from richdoc.convert.html import STRIPPED_ELEMENTS, convert_html, fetch_text, html_parser
from richdoc.documents.model import Document
from richdoc.file_utils.encoding import read_txt_file
from richdoc.utils import exactly_one

LANGUAGE_CLASS = re.compile(r"(?:^|\s)language-(\S+)")


def _preprocess_markdown_code_blocks(text: str) -> str:
    """Pre-process code blocks so that processing instructions can be properly escaped.

    The markdown library can fail to properly escape processing instructions like <?xml>, <?php>,
    etc. in code blocks. This function adds minimal indentation to the processing instruction line
    to force markdown to treat it as text content rather than XML.
    """
    code_block_pattern = r"```\s*\n([ \t]{0,3})?(<\?[a-zA-Z][^>]*\?>.*?)\n?```"

    def indent_processing_instruction(match: Match[str]) -> str:
        content = match.group(2)
        if content.lstrip().startswith("<?"):
            content = "    " + content.lstrip()
        return f"```\n{content}\n```"

    return re.sub(code_block_pattern, indent_processing_instruction, text, flags=re.DOTALL)


def render_markdown(text: str, breaks: bool = False) -> str:
    """HTML for the Markdown `text`; with `breaks`, every newline in a paragraph is a `<br>`."""
    extensions = ["fenced_code", "tables"]
    if breaks:
        extensions.append("nl2br")
    return markdown.markdown(_preprocess_markdown_code_blocks(text), extensions=extensions)


def parse_markdown_html(html_text: str, atomic_images: bool = False) -> etree._Element:
    """Parse HTML rendered from Markdown, moving code-block details to where they convert.

    A fenced code block renders as `<pre><code class="language-xyz">...\\n</code></pre>`. The
    language becomes a `data-language` attribute on the `<pre>` and the newline the renderer puts
    after the last line of code is removed.

    `![](src)` renders with an empty `alt` attribute, which is dropped. With `atomic_images`, a
    paragraph holding nothing but an image becomes a `<figure>`, so the image gets its own
    atomic block.
    """
    root = etree.fromstring(f"<html><body>{html_text}</body></html>", html_parser)
    etree.strip_elements(root, STRIPPED_ELEMENTS, with_tail=False)
    for img in root.iter("img"):
        if img.get("alt") == "":
            del img.attrib["alt"]
    if atomic_images:
        for p in list(root.iter("p")):
            if _holds_only_an_image(p):
                p.tag = "figure"
    for pre in root.iter("pre"):
        code = pre.find("code")
        if code is None:
            continue
        if match := LANGUAGE_CLASS.search(code.get("class", "")):
            pre.set("data-language", match.group(1))
        if len(code) == 0 and code.text and code.text.endswith("\n"):
            code.text = code.text[:-1]
        elif len(code) and code[-1].tail and code[-1].tail.endswith("\n"):
            code[-1].tail = code[-1].tail[:-1]

    body = root.find(".//body")
    return etree.Element("body") if body is None else body


def _holds_only_an_image(p: etree._Element) -> bool:
    if len(p) != 1 or p[0].tag != "img":
        return False
    return not (p.text or "").strip() and not (p[0].tail or "").strip()


def convert_markdown(
    filename: Optional[str] = None,
    *,
    file: Optional[IO[bytes]] = None,
    text: Optional[str] = None,
    url: Optional[str] = None,
    encoding: Optional[str] = None,
    breaks: bool = False,
    atomic_images: bool = False,
    **kwargs: Any,
) -> Document:
    """Converts a Markdown document into a rich-text `Document`.

    Parameters
    ----------
    filename
        A string defining the target filename path.
    file
        A file-like object using "rb" mode --> open(filename, "rb").
    text
        The string representation of the markdown document.
    url
        The URL of a markdown document. The response must have a text/markdown content type.
    breaks
        Treat every newline inside a paragraph as a forced line break.
    atomic_images
        Give an image that stands alone in its paragraph an `atomic` block of its own.

    Any other keyword arguments are conversion options, see `ConversionOptions`.
    """
    if text is not None and text.strip() == "" and not file and not filename and not url:
        return convert_html(text="", **kwargs)

    exactly_one(filename=filename, file=file, text=text, url=url)

    if filename is not None:
        _, markdown_text = read_txt_file(filename=filename, encoding=encoding)
    elif file is not None:
        _, markdown_text = read_txt_file(file=file, encoding=encoding)
    elif url is not None:
        markdown_text = fetch_text(url, "text/markdown")
    else:
        markdown_text = cast(str, text)

    parser = (
        functools.partial(parse_markdown_html, atomic_images=True)
        if atomic_images
        else parse_markdown_html
    )
    return convert_html(
        text=render_markdown(markdown_text, breaks=breaks), parser=parser, **kwargs
    )
