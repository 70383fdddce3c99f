"""Tree-sitter symbol and call extraction.

Bundled grammars: Python, JavaScript and TypeScript (including TSX). Files
in other languages yield no symbols and no calls.

Extraction covers declarations visible at module or class level:

- Python: functions, async functions, classes and their methods
- JavaScript/TypeScript: function declarations, functions assigned to
  ``const``/``let``, classes, methods, interfaces, type aliases and enums

Nested function bodies are not searched for further declarations. Doc
comments are returned raw: the Python docstring literal, or the ``/** */``
block directly above a JavaScript/TypeScript declaration.
"""

from __future__ import annotations

import importlib
from typing import Any

import tree_sitter

from acpindex.cache.models import SymbolType, Visibility
from acpindex.core.languages import detect_language
from acpindex.index.extraction.protocol import CallEdge, ExtractedSymbol

# grammar key -> (module, language function)
_GRAMMARS: dict[str, tuple[str, str]] = {
    "python": ("tree_sitter_python", "language"),
    "javascript": ("tree_sitter_javascript", "language"),
    "typescript": ("tree_sitter_typescript", "language_typescript"),
    "tsx": ("tree_sitter_typescript", "language_tsx"),
}

_JS_DECLARATIONS: dict[str, SymbolType] = {
    "function_declaration": SymbolType.FUNCTION,
    "generator_function_declaration": SymbolType.FUNCTION,
    "class_declaration": SymbolType.CLASS,
    "abstract_class_declaration": SymbolType.CLASS,
    "interface_declaration": SymbolType.INTERFACE,
    "type_alias_declaration": SymbolType.TYPE,
    "enum_declaration": SymbolType.ENUM,
}
_JS_FUNCTION_VALUES = frozenset(
    {"arrow_function", "function_expression", "function", "generator_function"}
)
_JS_CLASSES = frozenset({"class_declaration", "abstract_class_declaration"})
_JS_VARIABLES = frozenset({"lexical_declaration", "variable_declaration"})

# Module-level statements whose bodies still hold module-level definitions
_PY_COMPOUND = frozenset(
    {
        "if_statement",
        "elif_clause",
        "else_clause",
        "try_statement",
        "except_clause",
        "except_group_clause",
        "finally_clause",
        "with_statement",
        "block",
    }
)


def _text(node: Any) -> str:
    return str(node.text.decode("utf-8", errors="replace"))


def _field_text(node: Any, name: str) -> str | None:
    child = node.child_by_field_name(name)
    return _text(child) if child is not None else None


def _has_token(node: Any, token: str) -> bool:
    return any(child.type == token for child in node.children)


def _grammar_key(file_path: str) -> str | None:
    language = detect_language(file_path)
    if language == "typescript" and file_path.lower().endswith(".tsx"):
        return "tsx"
    return language if language in _GRAMMARS else None


class TreeSitterExtractor:
    """Default ``SymbolExtractor`` built on tree-sitter.

    Parsers are created lazily per grammar and dropped on pickling, so an
    instance can be handed to worker processes.

    Usage::

        extractor = TreeSitterExtractor()
        symbols = extractor.extract("src/app.py", source)
        calls = extractor.extract_calls("src/app.py", source)
    """

    def __init__(self) -> None:
        self._parsers: dict[str, tree_sitter.Parser] = {}

    def __getstate__(self) -> dict[str, Any]:
        return {}

    def __setstate__(self, state: dict[str, Any]) -> None:
        self._parsers = {}

    def supports(self, file_path: str) -> bool:
        return _grammar_key(file_path) is not None

    def _parser(self, key: str) -> tree_sitter.Parser:
        parser = self._parsers.get(key)
        if parser is None:
            module_name, func_name = _GRAMMARS[key]
            module = importlib.import_module(module_name)
            parser = tree_sitter.Parser()
            parser.language = tree_sitter.Language(getattr(module, func_name)())
            self._parsers[key] = parser
        return parser

    def _parse(self, file_path: str, source: str) -> tuple[str, Any] | None:
        key = _grammar_key(file_path)
        if key is None:
            return None
        tree = self._parser(key).parse(source.encode("utf-8"))
        return key, tree.root_node

    # -- symbols -----------------------------------------------------------

    def extract(self, file_path: str, source: str) -> list[ExtractedSymbol]:
        parsed = self._parse(file_path, source)
        if parsed is None:
            return []
        key, root = parsed
        if key == "python":
            symbols = self._python_symbols(file_path, root)
        else:
            symbols = self._js_symbols(file_path, root)
        symbols.sort(key=lambda s: (s.start_line, s.name))
        return symbols

    def _python_symbols(self, file_path: str, root: Any) -> list[ExtractedSymbol]:
        symbols: list[ExtractedSymbol] = []
        # (node, enclosing class name)
        stack: list[tuple[Any, str | None]] = [(root, None)]
        while stack:
            node, container = stack.pop()
            for child in node.children:
                target = child
                if child.type == "decorated_definition":
                    target = child.child_by_field_name("definition")
                if target is None:
                    continue
                if target.type == "function_definition":
                    symbols.append(self._python_function(file_path, target, container))
                elif target.type == "class_definition":
                    name = _field_text(target, "name") or ""
                    symbols.append(
                        ExtractedSymbol(
                            name=name,
                            kind=SymbolType.CLASS,
                            start_line=target.start_point[0] + 1,
                            end_line=target.end_point[0] + 1,
                            qualified_name=f"{file_path}:{name}",
                            visibility=_python_visibility(name),
                            doc_comment=_python_docstring(target),
                            exported=_python_visibility(name) is Visibility.PUBLIC,
                        )
                    )
                    body = target.child_by_field_name("body")
                    if body is not None and container is None:
                        stack.append((body, name))
                elif child.type in _PY_COMPOUND and container is None:
                    stack.append((child, None))
        return symbols

    def _python_function(self, file_path: str, node: Any, container: str | None) -> ExtractedSymbol:
        name = _field_text(node, "name") or ""
        params = _field_text(node, "parameters") or "()"
        returns = _field_text(node, "return_type")
        signature = f"def {name}{params}" + (f" -> {returns}" if returns else "")
        visibility = _python_visibility(name)
        qualified = f"{container}.{name}" if container else name
        return ExtractedSymbol(
            name=name,
            kind=SymbolType.METHOD if container else SymbolType.FUNCTION,
            start_line=node.start_point[0] + 1,
            end_line=node.end_point[0] + 1,
            qualified_name=f"{file_path}:{qualified}",
            visibility=visibility,
            signature=signature,
            doc_comment=_python_docstring(node),
            is_async=_has_token(node, "async"),
            exported=visibility is Visibility.PUBLIC,
        )

    def _js_symbols(self, file_path: str, root: Any) -> list[ExtractedSymbol]:
        symbols: list[ExtractedSymbol] = []
        for child in root.children:
            exported = child.type == "export_statement"
            declarations = child.named_children if exported else [child]
            for node in declarations:
                if node.type in _JS_DECLARATIONS:
                    symbols.append(self._js_declaration(file_path, node, exported))
                    if node.type in _JS_CLASSES:
                        symbols.extend(self._js_methods(file_path, node, exported))
                elif node.type in _JS_VARIABLES:
                    symbols.extend(self._js_variable_functions(file_path, node, exported))
        return symbols

    def _js_declaration(self, file_path: str, node: Any, exported: bool) -> ExtractedSymbol:
        name = _field_text(node, "name") or "default"
        kind = _JS_DECLARATIONS[node.type]
        signature = None
        if kind is SymbolType.FUNCTION:
            signature = _js_signature(name, node)
        return ExtractedSymbol(
            name=name,
            kind=kind,
            start_line=node.start_point[0] + 1,
            end_line=node.end_point[0] + 1,
            qualified_name=f"{file_path}:{name}",
            signature=signature,
            doc_comment=_js_doc_comment(node),
            is_async=_has_token(node, "async"),
            exported=exported,
        )

    def _js_methods(self, file_path: str, class_node: Any, exported: bool) -> list[ExtractedSymbol]:
        class_name = _field_text(class_node, "name") or "default"
        body = class_node.child_by_field_name("body")
        if body is None:
            return []
        methods = []
        for node in body.named_children:
            if node.type not in ("method_definition", "abstract_method_signature"):
                continue
            name = _field_text(node, "name") or ""
            methods.append(
                ExtractedSymbol(
                    name=name,
                    kind=SymbolType.METHOD,
                    start_line=node.start_point[0] + 1,
                    end_line=node.end_point[0] + 1,
                    qualified_name=f"{file_path}:{class_name}.{name}",
                    visibility=_js_visibility(node, name),
                    signature=_js_signature(name, node),
                    doc_comment=_js_doc_comment(node),
                    is_async=_has_token(node, "async"),
                    exported=exported,
                )
            )
        return methods

    def _js_variable_functions(
        self, file_path: str, node: Any, exported: bool
    ) -> list[ExtractedSymbol]:
        functions = []
        for declarator in node.named_children:
            if declarator.type != "variable_declarator":
                continue
            value = declarator.child_by_field_name("value")
            if value is None or value.type not in _JS_FUNCTION_VALUES:
                continue
            name = _field_text(declarator, "name") or ""
            functions.append(
                ExtractedSymbol(
                    name=name,
                    kind=SymbolType.FUNCTION,
                    start_line=node.start_point[0] + 1,
                    end_line=node.end_point[0] + 1,
                    qualified_name=f"{file_path}:{name}",
                    signature=_js_signature(name, value),
                    doc_comment=_js_doc_comment(node),
                    is_async=_has_token(value, "async"),
                    exported=exported,
                )
            )
        return functions

    # -- calls -------------------------------------------------------------

    def extract_calls(self, file_path: str, source: str) -> list[CallEdge]:
        """Caller/callee name pairs for calls made inside named functions.

        Module-level calls have no caller and are skipped. Each pair is
        reported once, in source order.
        """
        parsed = self._parse(file_path, source)
        if parsed is None:
            return []
        key, root = parsed
        python = key == "python"

        edges: list[CallEdge] = []
        seen: set[tuple[str, str]] = set()
        stack: list[tuple[Any, str | None]] = [(root, None)]
        while stack:
            node, caller = stack.pop()
            scope = _enclosing_name(node, python) or caller
            if node.type in ("call", "call_expression") and scope is not None:
                callee = _callee_name(node.child_by_field_name("function"))
                if callee is not None and (scope, callee) not in seen:
                    seen.add((scope, callee))
                    edges.append(CallEdge(caller=scope, callee=callee))
            stack.extend((child, scope) for child in reversed(node.children))
        return edges


def _python_visibility(name: str) -> Visibility:
    if name.startswith("_") and not (name.startswith("__") and name.endswith("__")):
        return Visibility.PRIVATE
    return Visibility.PUBLIC


def _python_docstring(node: Any) -> str | None:
    body = node.child_by_field_name("body")
    if body is None or body.named_child_count == 0:
        return None
    first = body.named_children[0]
    if first.type == "expression_statement" and first.named_child_count > 0:
        string_node = first.named_children[0]
        if string_node.type == "string":
            return _text(string_node)
    return None


def _js_visibility(node: Any, name: str) -> Visibility:
    if name.startswith("#"):
        return Visibility.PRIVATE
    for child in node.children:
        if child.type == "accessibility_modifier":
            modifier = _text(child)
            if modifier == "private":
                return Visibility.PRIVATE
            if modifier == "protected":
                return Visibility.PROTECTED
    return Visibility.PUBLIC


def _js_signature(name: str, node: Any) -> str | None:
    params = _field_text(node, "parameters")
    if params is None:
        param = _field_text(node, "parameter")
        if param is None:
            return None
        params = f"({param})"
    return f"{name}{params}{_field_text(node, 'return_type') or ''}"


def _js_doc_comment(node: Any) -> str | None:
    """The ``/** */`` block ending on the line above the declaration."""
    outer = node
    if node.parent is not None and node.parent.type == "export_statement":
        outer = node.parent
    prev = outer.prev_named_sibling
    if prev is None or prev.type != "comment":
        return None
    text = _text(prev)
    if not text.startswith("/**") or prev.end_point[0] < outer.start_point[0] - 1:
        return None
    return text


def _enclosing_name(node: Any, python: bool) -> str | None:
    """Name this node introduces as a caller scope, if any."""
    if python:
        if node.type == "function_definition":
            return _field_text(node, "name")
        return None
    if node.type in ("function_declaration", "generator_function_declaration", "method_definition"):
        return _field_text(node, "name")
    if node.type == "variable_declarator":
        value = node.child_by_field_name("value")
        if value is not None and value.type in _JS_FUNCTION_VALUES:
            return _field_text(node, "name")
    return None


def _callee_name(node: Any) -> str | None:
    if node is None:
        return None
    if node.type == "identifier":
        return _text(node)
    if node.type == "attribute":
        return _field_text(node, "attribute")
    if node.type == "member_expression":
        return _field_text(node, "property")
    return None
