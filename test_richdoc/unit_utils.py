"""Utilities that ease unit-testing."""

from __future__ import annotations

import pathlib
from typing import Any, Union
from unittest.mock import Mock, patch

from pytest import FixtureRequest, LogCaptureFixture, MonkeyPatch  # noqa: PT013

from richdoc.documents.nodes import ElementNode, Node, TextNode

__all__ = (
    "FakeResponse",
    "FixtureRequest",
    "LogCaptureFixture",
    "Mock",
    "MonkeyPatch",
    "el",
    "example_doc_path",
    "example_doc_text",
    "function_mock",
)


def el(tag_name: str, *children: Union[Node, str], **attributes: str) -> ElementNode:
    """Build an `ElementNode`; `str` children become text nodes.

    A trailing underscore is dropped from an attribute name so reserved words can be used, e.g.
    `el("span", "Hello", class_="bold")`.
    """
    return ElementNode(
        tag_name,
        [(name.rstrip("_").replace("_", "-"), value) for name, value in attributes.items()],
        [TextNode(child) if isinstance(child, str) else child for child in children],
    )


def example_doc_path(file_name: str) -> str:
    """Resolve the absolute-path to `file_name` in the example-docs directory."""
    example_docs_dir = pathlib.Path(__file__).parent.parent / "example-docs"
    file_path = example_docs_dir / file_name
    return str(file_path.resolve())


def example_doc_text(file_name: str) -> str:
    """Contents of example-doc `file_name` as text (decoded as utf-8)."""
    with open(example_doc_path(file_name), encoding="utf-8") as f:
        return f.read()


class FakeResponse:
    def __init__(self, text: str, status_code: int, headers: dict[str, str] = {}):
        self.text = text
        self.status_code = status_code
        self.ok = status_code < 300
        self.headers = headers


# ------------------------------------------------------------------------------------------------
# MOCKING FIXTURES
# ------------------------------------------------------------------------------------------------
# These allow full-featured and type-safe mocks to be created simply by adding a unit-test
# fixture.
# ------------------------------------------------------------------------------------------------


def function_mock(
    request: FixtureRequest, q_function_name: str, autospec: bool = True, **kwargs: Any
) -> Mock:
    """Return mock patching function with qualified name `q_function_name`.

    Patch is reversed after calling test returns.
    """
    _patch = patch(q_function_name, autospec=autospec, **kwargs)
    request.addfinalizer(_patch.stop)
    return _patch.start()

