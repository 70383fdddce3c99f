"""Native doc comment parsing.

Reduces Google, NumPy and Sphinx docstrings, JSDoc/Javadoc blocks and Rust
doc comments to a ``ParsedDocumentation``. Parsing is lenient: anything
that does not fit the dialect's structure is ignored, never raised.
"""

from __future__ import annotations

import inspect
import re

from acpindex.bridge.models import ParsedDocumentation
from acpindex.cache.models import SourceFormat

_GOOGLE_HEADER_RE = re.compile(
    r"^(Args|Arguments|Parameters|Params|Returns|Return|Yields|Raises|Throws"
    r"|Examples?|Attributes?|Notes?):\s*$"
)
_GOOGLE_PARAM_RE = re.compile(r"^\*{0,2}(\w+)\s*(?:\(([^)]*)\))?\s*:\s*(.*)$")
_GOOGLE_RETURNS_RE = re.compile(r"^([\w\[\], .|]+):\s+(.*)$")

_NUMPY_HEADERS = frozenset(
    {
        "Parameters",
        "Other Parameters",
        "Returns",
        "Yields",
        "Raises",
        "Examples",
        "Example",
        "Notes",
        "Note",
        "Attributes",
        "See Also",
        "Warnings",
        "References",
    }
)
_NUMPY_UNDERLINE_RE = re.compile(r"^-{3,}\s*$")

_SPHINX_FIELD_RE = re.compile(r"^:(\w+)(?:\s+([^:]+?))?:\s*(.*)$")

_JSDOC_TAG_RE = re.compile(r"^@(\w+)\s*(.*)$")
_JSDOC_TYPE_RE = re.compile(r"^\{([^}]*)\}\s*(.*)$", re.DOTALL)

_RUST_HEADER_RE = re.compile(r"^#+\s*(\w+)\s*$")
_RUST_ARG_RE = re.compile(r"^[*-]\s*`?(\w+)`?\s*(?:-|:)\s*(.*)$")

_DOCSTRING_RE = re.compile(r"^[rRuUbB]{0,2}('{3}|\"{3})(.*)\1$", re.DOTALL)

_PARAM_SECTIONS = frozenset({"args", "arguments", "parameters", "params", "other parameters"})
_RETURN_SECTIONS = frozenset({"returns", "return", "yields"})
_RAISE_SECTIONS = frozenset({"raises", "throws"})
_EXAMPLE_SECTIONS = frozenset({"examples", "example"})


def clean_doc_comment(raw: str) -> str:
    """Strip comment delimiters from a doc comment and dedent it.

    Handles ``/** ... */`` blocks with leading ``*``, ``///`` and ``//!``
    line comments, ``//`` and ``#`` runs, and triple-quoted docstrings with
    or without a string prefix (``r\"\"\"``, ``u'''``).
    """
    text = raw.strip()
    if (m := _DOCSTRING_RE.match(text)) is not None:
        return inspect.cleandoc(m.group(2))

    if text.startswith("/**") or text.startswith("/*"):
        text = text.removeprefix("/**").removeprefix("/*").removesuffix("*/")
        lines = []
        for line in text.splitlines():
            stripped = line.strip()
            if stripped.startswith("*"):
                stripped = stripped[1:]
                if stripped.startswith(" "):
                    stripped = stripped[1:]
            lines.append(stripped.rstrip())
        return "\n".join(lines).strip()

    lines = []
    for line in text.splitlines():
        stripped = line.strip()
        for prefix in ("///", "//!", "//", "#"):
            if stripped.startswith(prefix):
                stripped = stripped[len(prefix) :]
                break
        if stripped.startswith(" "):
            stripped = stripped[1:]
        lines.append(stripped.rstrip())
    return "\n".join(lines).strip()


def _squash(text: str) -> str | None:
    squashed = " ".join(text.split())
    return squashed or None


def _summary(lines: list[str]) -> str | None:
    """First paragraph of ``lines``."""
    para: list[str] = []
    for line in lines:
        if not line.strip():
            if para:
                break
            continue
        para.append(line)
    return _squash(" ".join(para))


def _indent(line: str) -> int:
    return len(line) - len(line.lstrip())


def _split_type_desc(text: str) -> tuple[str | None, str | None]:
    """Split ``"type: description"`` when the part before the colon looks like a type."""
    m = _GOOGLE_RETURNS_RE.match(text)
    if m is not None:
        return m.group(1).strip(), _squash(m.group(2))
    return None, _squash(text)


def _items(body: list[str]) -> list[tuple[str, list[str]]]:
    """Group section lines into (head, continuation lines) by indentation."""
    items: list[tuple[str, list[str]]] = []
    base: int | None = None
    for line in body:
        if not line.strip():
            continue
        indent = _indent(line)
        if base is None:
            base = indent
        if indent <= base or not items:
            items.append((line.strip(), []))
        else:
            items[-1][1].append(line.strip())
    return items


# -- Google ------------------------------------------------------------------


def _google_sections(lines: list[str]) -> tuple[list[str], dict[str, list[str]]]:
    preamble: list[str] = []
    sections: dict[str, list[str]] = {}
    current: list[str] | None = None
    for line in lines:
        m = _GOOGLE_HEADER_RE.match(line.strip())
        if m is not None and _indent(line) == 0:
            current = sections.setdefault(m.group(1).lower(), [])
            continue
        if current is None:
            preamble.append(line)
        else:
            current.append(line)
    return preamble, sections


def _parse_google(lines: list[str]) -> ParsedDocumentation:
    preamble, sections = _google_sections(lines)
    doc = ParsedDocumentation(summary=_summary(preamble))

    for name, body in sections.items():
        if name in _PARAM_SECTIONS:
            for head, rest in _items(body):
                m = _GOOGLE_PARAM_RE.match(head)
                if m is None:
                    continue
                type_name = m.group(2).strip() if m.group(2) else None
                if type_name is not None:
                    type_name = type_name.removesuffix(", optional").strip() or None
                doc.params.append((m.group(1), type_name, _squash(" ".join([m.group(3), *rest]))))
        elif name in _RETURN_SECTIONS:
            text = " ".join(line.strip() for line in body if line.strip())
            if text:
                doc.returns = _split_type_desc(text)
        elif name in _RAISE_SECTIONS:
            for head, rest in _items(body):
                exc, _, desc = head.partition(":")
                doc.throws.append((exc.strip(), _squash(" ".join([desc, *rest]))))
        elif name in _EXAMPLE_SECTIONS:
            example = inspect.cleandoc("\n".join(body))
            if example:
                doc.examples.append(example)
    return doc


# -- NumPy -------------------------------------------------------------------


def _numpy_sections(lines: list[str]) -> tuple[list[str], dict[str, list[str]]]:
    preamble: list[str] = []
    sections: dict[str, list[str]] = {}
    current: list[str] | None = None
    i = 0
    while i < len(lines):
        line = lines[i]
        following = lines[i + 1] if i + 1 < len(lines) else ""
        if line.strip() in _NUMPY_HEADERS and _NUMPY_UNDERLINE_RE.match(following.strip()):
            current = sections.setdefault(line.strip().lower(), [])
            i += 2
            continue
        if current is None:
            preamble.append(line)
        else:
            current.append(line)
        i += 1
    return preamble, sections


def _parse_numpy(lines: list[str]) -> ParsedDocumentation:
    preamble, sections = _numpy_sections(lines)
    doc = ParsedDocumentation(summary=_summary(preamble))

    for name, body in sections.items():
        if name in _PARAM_SECTIONS:
            for head, rest in _items(body):
                param, sep, type_text = head.partition(":")
                type_name = type_text.strip().removesuffix(", optional").strip() if sep else None
                doc.params.append((param.strip(), type_name or None, _squash(" ".join(rest))))
        elif name in _RETURN_SECTIONS:
            items = _items(body)
            if items:
                head, rest = items[0]
                _, sep, type_text = head.partition(":")
                type_name = type_text.strip() if sep else head
                doc.returns = (type_name or None, _squash(" ".join(rest)))
        elif name in _RAISE_SECTIONS:
            for head, rest in _items(body):
                doc.throws.append((head, _squash(" ".join(rest))))
        elif name in _EXAMPLE_SECTIONS:
            example = inspect.cleandoc("\n".join(body))
            if example:
                doc.examples.append(example)
    return doc


# -- Sphinx ------------------------------------------------------------------


def _parse_sphinx(lines: list[str]) -> ParsedDocumentation:
    preamble: list[str] = []
    fields: list[tuple[str, str | None, list[str]]] = []
    for line in lines:
        m = _SPHINX_FIELD_RE.match(line.strip())
        if m is not None:
            fields.append((m.group(1), m.group(2), [m.group(3)]))
        elif fields and line.strip():
            fields[-1][2].append(line.strip())
        elif not fields:
            preamble.append(line)

    doc = ParsedDocumentation(summary=_summary(preamble))
    params: dict[str, tuple[str | None, str | None]] = {}
    types: dict[str, str] = {}
    return_desc: str | None = None
    return_type: str | None = None
    seen_returns = False

    for tag, arg, text_lines in fields:
        text = _squash(" ".join(text_lines))
        if tag in ("param", "parameter", "arg", "argument", "key", "keyword"):
            if arg is None:
                continue
            words = arg.split()
            params[words[-1]] = (" ".join(words[:-1]) or None, text)
        elif tag == "type" and arg is not None:
            types[arg.strip()] = text or ""
        elif tag in ("returns", "return"):
            return_desc = text
            seen_returns = True
        elif tag == "rtype":
            return_type = text
            seen_returns = True
        elif tag in ("raises", "raise", "except", "exception") and arg is not None:
            doc.throws.append((arg.strip(), text))

    for param, (inline_type, desc) in params.items():
        doc.params.append((param, inline_type or types.get(param) or None, desc))
    if seen_returns:
        doc.returns = (return_type, return_desc)
    return doc


# -- JSDoc / Javadoc ---------------------------------------------------------


def _jsdoc_param(rest: str) -> tuple[str, str | None, str | None] | None:
    type_name = None
    m = _JSDOC_TYPE_RE.match(rest)
    if m is not None:
        type_name, rest = m.group(1).strip() or None, m.group(2)
    words = rest.split(maxsplit=1)
    if not words:
        return None
    name = words[0]
    if name.startswith("["):
        name = name.strip("[]").partition("=")[0]
    desc = words[1] if len(words) > 1 else ""
    desc = desc.removeprefix("-").strip()
    return name, type_name, _squash(desc)


def _parse_jsdoc(lines: list[str]) -> ParsedDocumentation:
    preamble: list[str] = []
    tags: list[tuple[str, list[str]]] = []
    for line in lines:
        m = _JSDOC_TAG_RE.match(line.strip())
        if m is not None:
            tags.append((m.group(1), [m.group(2)]))
        elif tags:
            tags[-1][1].append(line)
        else:
            preamble.append(line)

    doc = ParsedDocumentation(summary=_summary(preamble))
    for tag, body in tags:
        text = " ".join(part.strip() for part in body)
        if tag in ("param", "arg", "argument"):
            param = _jsdoc_param(text)
            if param is not None:
                doc.params.append(param)
        elif tag in ("returns", "return"):
            m = _JSDOC_TYPE_RE.match(text)
            if m is not None:
                doc.returns = (m.group(1).strip() or None, _squash(m.group(2).removeprefix("-")))
            else:
                doc.returns = (None, _squash(text))
        elif tag in ("throws", "throw", "exception"):
            m = _JSDOC_TYPE_RE.match(text)
            if m is not None:
                doc.throws.append((m.group(1).strip(), _squash(m.group(2).removeprefix("-"))))
            else:
                exc, _, desc = text.partition(" ")
                if exc:
                    doc.throws.append((exc, _squash(desc)))
        elif tag == "example":
            example = "\n".join(body).strip()
            if example:
                doc.examples.append(example)
    return doc


# -- Rust --------------------------------------------------------------------


def _parse_rustdoc(lines: list[str]) -> ParsedDocumentation:
    preamble: list[str] = []
    sections: dict[str, list[str]] = {}
    current: list[str] | None = None
    in_code = False
    for line in lines:
        if line.strip().startswith("```"):
            in_code = not in_code
        m = None if in_code else _RUST_HEADER_RE.match(line.strip())
        if m is not None:
            current = sections.setdefault(m.group(1).lower(), [])
        elif current is None:
            preamble.append(line)
        else:
            current.append(line)

    doc = ParsedDocumentation(summary=_summary(preamble))
    for name, body in sections.items():
        if name in ("arguments", "argument"):
            for head, rest in _items(body):
                m = _RUST_ARG_RE.match(head)
                if m is not None:
                    doc.params.append((m.group(1), None, _squash(" ".join([m.group(2), *rest]))))
        elif name in ("returns", "return"):
            doc.returns = (None, _squash(" ".join(body)))
        elif name in ("errors", "error"):
            doc.throws.append(("Error", _squash(" ".join(body))))
        elif name in ("panics", "panic"):
            doc.throws.append(("panic", _squash(" ".join(body))))
        elif name in ("examples", "example"):
            example = "\n".join(body).strip()
            if example:
                doc.examples.append(example)
    return doc


def parse_native_doc(text: str, fmt: SourceFormat) -> ParsedDocumentation:
    """Parse a doc comment written in ``fmt``.

    ``text`` may still carry its comment delimiters. Formats without a
    structured dialect (godoc, plain type hints) yield only a summary.
    """
    lines = clean_doc_comment(text).splitlines()
    match fmt:
        case SourceFormat.DOCSTRING_GOOGLE:
            return _parse_google(lines)
        case SourceFormat.DOCSTRING_NUMPY:
            return _parse_numpy(lines)
        case SourceFormat.DOCSTRING_SPHINX:
            return _parse_sphinx(lines)
        case SourceFormat.JSDOC | SourceFormat.JAVADOC:
            return _parse_jsdoc(lines)
        case SourceFormat.RUSTDOC:
            return _parse_rustdoc(lines)
        case _:
            return ParsedDocumentation(summary=_summary(lines))
