"""Provides `convert_html()` and the lxml-backed `parse_html()` it uses by default."""

from __future__ import annotations

from typing import IO, Any, Callable, Optional, Union

import requests
from lxml import etree

from richdoc.convert.engine import convert
from richdoc.documents.model import Document
from richdoc.documents.nodes import ElementLike, ElementNode, nodes_from_lxml
from richdoc.file_utils.encoding import read_txt_file
from richdoc.utils import exactly_one, lazyproperty

html_parser = etree.HTMLParser(remove_comments=True)

# -- elements whose contents are never document content --
STRIPPED_ELEMENTS = ["link", "meta", "noscript", "script", "style", "template"]

HtmlParserFn = Callable[[str], Union[ElementLike, etree._Element]]


def parse_html(html_text: str) -> ElementNode:
    """Parse `html_text` with lxml and return its `<body>` adapted to the node interface.

    An empty `body` element is returned when the document has no body.
    """
    # NOTE: `lxml` will not parse a `str` that includes an XML encoding declaration; encoding the
    # str to UTF-8 bytes and parsing those works around that.
    try:
        root = etree.fromstring(html_text, html_parser)
    except ValueError:
        root = etree.fromstring(html_text.encode("utf-8"), html_parser)

    if root is None:
        return ElementNode("body")

    etree.strip_elements(root, STRIPPED_ELEMENTS, with_tail=False)

    body = root if root.tag == "body" else root.find(".//body")
    return ElementNode("body") if body is None else nodes_from_lxml(body)


def convert_html(
    filename: Optional[str] = None,
    *,
    file: Optional[IO[bytes]] = None,
    text: Optional[str] = None,
    url: Optional[str] = None,
    encoding: Optional[str] = None,
    headers: Optional[dict[str, str]] = None,
    ssl_verify: bool = True,
    parser: Optional[HtmlParserFn] = None,
    **kwargs: Any,
) -> Document:
    """Converts an HTML document into a rich-text `Document`.

    HTML source parameters
    ----------------------
    Exactly one of these must be given:

    filename
        A string defining the target filename path.
    file
        A file-like object using "rb" mode --> open(filename, "rb").
    text
        The string representation of the HTML document.
    url
        The URL of a webpage to convert. Only for URLs that return an HTML document.

    Other parameters
    ----------------
    encoding
        The encoding used to decode `filename` or `file`. Detected when not given.
    headers
        The HTTP headers to be used in the HTTP request when `url` is specified.
    ssl_verify
        Whether SSL verification is performed on the HTTP request when `url` is specified.
    parser
        Replaces `parse_html()`. Called with the HTML text; may return a node-interface element or
        an lxml element.

    Any other keyword arguments are conversion options, see `ConversionOptions`.
    """
    # -- whitespace-only text is a valid (empty) document, not a missing source --
    if text is not None and text.strip() == "" and not file and not filename and not url:
        return convert(ElementNode("body"), **kwargs)

    exactly_one(filename=filename, file=file, text=text, url=url)

    opts = HtmlSourceOptions(
        file_path=filename,
        file=file,
        text=text,
        url=url,
        encoding=encoding,
        headers=headers or {},
        ssl_verify=ssl_verify,
    )
    html_text = opts.html_text

    # -- the lxml parser rejects an empty str, nip that edge-case in the bud here --
    if not html_text.strip():
        return convert(ElementNode("body"), **kwargs)

    root = (parser or parse_html)(html_text)
    if isinstance(root, etree._Element):
        root = nodes_from_lxml(root)
    return convert(root, **kwargs)


class HtmlSourceOptions:
    """Encapsulates where the HTML comes from and how it is loaded."""

    content_type = "text/html"

    def __init__(
        self,
        *,
        file_path: Optional[str],
        file: Optional[IO[bytes]],
        text: Optional[str],
        url: Optional[str],
        encoding: Optional[str],
        headers: dict[str, str],
        ssl_verify: bool,
    ):
        self._file_path = file_path
        self._file = file
        self._text = text
        self._url = url
        self._encoding = encoding
        self._headers = headers
        self._ssl_verify = ssl_verify

    @lazyproperty
    def html_text(self) -> str:
        """The HTML document as a string, loaded from wherever the caller specified."""
        if self._file_path:
            return read_txt_file(filename=self._file_path, encoding=self._encoding)[1]

        if self._file:
            return read_txt_file(file=self._file, encoding=self._encoding)[1]

        if self._text is not None:
            return str(self._text)

        if self._url:
            return fetch_text(self._url, self.content_type, self._headers, self._ssl_verify)

        raise ValueError("Exactly one of filename, file, text, or url must be specified.")


def fetch_text(
    url: str, content_type: str, headers: Optional[dict[str, str]] = None, ssl_verify: bool = True
) -> str:
    """GET `url` and return the body, which must be of `content_type`."""
    response = requests.get(url, headers=headers or {}, verify=ssl_verify)
    if not response.ok:
        raise ValueError(f"Error status code on GET of provided URL: {response.status_code}")

    received_type = response.headers.get("Content-Type", "")
    if not received_type.startswith(content_type):
        raise ValueError(f"Expected content type {content_type}. Got {received_type}.")

    return response.text
