"""Source parser: tree-sitter TypeScript parsing and structural queries."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from tree_sitter import Language, Parser

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator
    from pathlib import Path

    from tree_sitter import Node as TSNode
    from tree_sitter import Tree

logger = logging.getLogger(__name__)


class NodeKind(str, enum.Enum):
    """tree-sitter node types the checkers look at."""

    COMMENT = "comment"
    IMPORT_STATEMENT = "import_statement"
    EXPORT_STATEMENT = "export_statement"
    LEXICAL_DECLARATION = "lexical_declaration"
    VARIABLE_DECLARATION = "variable_declaration"
    VARIABLE_DECLARATOR = "variable_declarator"
    ARRAY = "array"
    OBJECT = "object"
    PAIR = "pair"
    STRING = "string"
    TEMPLATE_STRING = "template_string"
    CALL_EXPRESSION = "call_expression"
    IMPORT = "import"
    IDENTIFIER = "identifier"
    PROPERTY_IDENTIFIER = "property_identifier"
    TYPE_IDENTIFIER = "type_identifier"
    SHORTHAND_PROPERTY_IDENTIFIER = "shorthand_property_identifier"


_DECLARATION_KINDS: frozenset[str] = frozenset(
    {NodeKind.LEXICAL_DECLARATION.value, NodeKind.VARIABLE_DECLARATION.value}
)

# Any node that names something; mirrors what the TypeScript compiler calls an Identifier.
_IDENTIFIER_KINDS: frozenset[str] = frozenset(
    {
        NodeKind.IDENTIFIER.value,
        NodeKind.PROPERTY_IDENTIFIER.value,
        NodeKind.TYPE_IDENTIFIER.value,
        NodeKind.SHORTHAND_PROPERTY_IDENTIFIER.value,
    }
)


@dataclass(frozen=True)
class SyntaxTree:
    """A parsed source file.  Owned by the checker that parsed it."""

    path: Path | None
    tree: Tree

    @property
    def root(self) -> TSNode:
        return self.tree.root_node


@dataclass(frozen=True)
class ExportedArray:
    """An ``export const <name> = [ ... ]`` declaration."""

    name: str
    node: TSNode  # the array literal
    line: int  # 1-based


@dataclass(frozen=True)
class ImportSpecifier:
    """A string-literal module reference found in a source file."""

    specifier: str
    line: int  # 1-based
    kind: str  # "static" | "re-export" | "deferred"


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

# Cache for loaded grammars, keyed by file extension.
_LANG_CACHE: dict[str, Language] = {}


def get_language(extension: str) -> Language:
    """Return the tree-sitter grammar for a TypeScript file extension.

    ``.tsx`` gets the TSX grammar; everything else is parsed as plain TypeScript.
    """
    key = ".tsx" if extension == ".tsx" else ".ts"
    if key in _LANG_CACHE:
        return _LANG_CACHE[key]

    import tree_sitter_typescript as tstypescript

    if key == ".tsx":
        language = Language(tstypescript.language_tsx())
    else:
        language = Language(tstypescript.language_typescript())
    _LANG_CACHE[key] = language
    return language


def clear_cache() -> None:
    """Clear the grammar cache (useful for testing)."""
    _LANG_CACHE.clear()


def parse_text(text: str, *, extension: str = ".ts", path: Path | None = None) -> SyntaxTree:
    """Parse TypeScript source text into a :class:`SyntaxTree`.

    Syntax errors are not raised; tree-sitter recovers and marks them with
    ``ERROR`` nodes, which the structural queries simply do not match.
    """
    parser = Parser(get_language(extension))
    tree = parser.parse(text.encode("utf-8"))
    if tree.root_node.has_error:
        logger.debug("Parse errors in %s", path or "<text>")
    return SyntaxTree(path=path, tree=tree)


def parse_source(file_path: Path) -> SyntaxTree:
    """Read and parse a source file.

    Raises
    ------
    OSError, UnicodeDecodeError
        When the file cannot be read.  Callers decide whether that is fatal
        or a reported violation.
    """
    content = file_path.read_text(encoding="utf-8")
    logger.debug("Parsing %s", file_path)
    return parse_text(content, extension=file_path.suffix, path=file_path)


# ---------------------------------------------------------------------------
# Traversal
# ---------------------------------------------------------------------------


def iter_nodes(node: TSNode) -> Iterator[TSNode]:
    """Yield *node* and all its descendants, depth-first, in source order."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))


def find_first(node: TSNode, predicate: Callable[[TSNode], bool]) -> TSNode | None:
    """Return the first node in *node*'s subtree matching *predicate*."""
    return next((n for n in iter_nodes(node) if predicate(n)), None)


def node_text(node: TSNode) -> str:
    """Safely decode tree-sitter node text."""
    return node.text.decode("utf-8") if node.text else ""


def line_of(node: TSNode) -> int:
    # tree-sitter rows are 0-based.
    return node.start_point.row + 1


def string_value(node: TSNode | None) -> str | None:
    """Return the contents of a string literal node, or ``None`` for anything else."""
    if node is None or node.type != NodeKind.STRING:
        return None
    text = node_text(node)
    return text[1:-1] if len(text) >= 2 else ""


# ---------------------------------------------------------------------------
# Literals and route objects
# ---------------------------------------------------------------------------


def array_elements(array: TSNode) -> list[TSNode]:
    """Return the element expressions of an array literal (comments excluded)."""
    return [child for child in array.named_children if child.type != NodeKind.COMMENT]


def property_name(key: TSNode | None) -> str | None:
    """Name of a ``key: value`` pair key: identifiers and string keys only."""
    if key is None:
        return None
    if key.type == NodeKind.PROPERTY_IDENTIFIER:
        return node_text(key)
    return string_value(key)


def _pairs(obj: TSNode) -> Iterator[tuple[str | None, TSNode | None]]:
    for child in obj.named_children:
        if child.type != NodeKind.PAIR:
            continue
        yield property_name(child.child_by_field_name("key")), child.child_by_field_name("value")


def get_property(obj: TSNode, name: str) -> TSNode | None:
    """Return the value node of property *name* in an object literal, if assigned."""
    for key, value in _pairs(obj):
        if key == name:
            return value
    return None


def has_property(obj: TSNode, name: str) -> bool:
    """Return True if the object literal assigns property *name* (``name: ...``)."""
    return any(key == name for key, _ in _pairs(obj))


def find_exported_arrays(root: TSNode) -> list[ExportedArray]:
    """Find every exported variable initialized directly with an array literal."""
    found: list[ExportedArray] = []
    for node in iter_nodes(root):
        if node.type != NodeKind.EXPORT_STATEMENT:
            continue
        declaration = node.child_by_field_name("declaration")
        if declaration is None or declaration.type not in _DECLARATION_KINDS:
            continue
        for declarator in declaration.named_children:
            if declarator.type != NodeKind.VARIABLE_DECLARATOR:
                continue
            name = declarator.child_by_field_name("name")
            value = declarator.child_by_field_name("value")
            if name is None or name.type != NodeKind.IDENTIFIER:
                continue
            if value is None or value.type != NodeKind.ARRAY:
                continue
            found.append(ExportedArray(name=node_text(name), node=value, line=line_of(value)))
    return found


def find_exported_array(root: TSNode, name: str) -> ExportedArray | None:
    """Return the exported array bound to *name*, if any."""
    return next((ex for ex in find_exported_arrays(root) if ex.name == name), None)


# ---------------------------------------------------------------------------
# Imports
# ---------------------------------------------------------------------------


def _deferred_import_argument(node: TSNode) -> TSNode | None:
    """Return the first argument of an ``import(...)`` call, or None."""
    if node.type != NodeKind.CALL_EXPRESSION:
        return None
    function = node.child_by_field_name("function")
    if function is None or function.type != NodeKind.IMPORT:
        return None
    arguments = node.child_by_field_name("arguments")
    if arguments is None:
        return None
    return next((a for a in arguments.named_children if a.type != NodeKind.COMMENT), None)


def iter_deferred_imports(node: TSNode) -> Iterator[str]:
    """Yield the string targets of every ``import('...')`` call under *node*."""
    for current in iter_nodes(node):
        value = string_value(_deferred_import_argument(current))
        if value is not None:
            yield value


def has_deferred_import(node: TSNode, predicate: Callable[[str], bool]) -> bool:
    """Return True once any deferred import under *node* satisfies *predicate*."""
    return any(predicate(target) for target in iter_deferred_imports(node))


def iter_import_specifiers(
    root: TSNode,
    *,
    include_deferred: bool = True,
) -> Iterator[ImportSpecifier]:
    """Yield every string-literal module reference in a file.

    Covers ``import ... from '...'``, side-effect imports, ``export ... from '...'``
    and, when *include_deferred* is set, ``import('...')`` calls.
    """
    for node in iter_nodes(root):
        if node.type == NodeKind.IMPORT_STATEMENT:
            value = string_value(node.child_by_field_name("source"))
            if value is not None:
                yield ImportSpecifier(value, line_of(node), "static")
        elif node.type == NodeKind.EXPORT_STATEMENT:
            value = string_value(node.child_by_field_name("source"))
            if value is not None:
                yield ImportSpecifier(value, line_of(node), "re-export")
        elif include_deferred:
            value = string_value(_deferred_import_argument(node))
            if value is not None:
                yield ImportSpecifier(value, line_of(node), "deferred")


def static_imports(root: TSNode) -> list[ImportSpecifier]:
    """Return only the static ``import`` declarations of a file."""
    return [
        imp
        for imp in iter_import_specifiers(root, include_deferred=False)
        if imp.kind == "static"
    ]


# ---------------------------------------------------------------------------
# Whole-file predicates
# ---------------------------------------------------------------------------


def contains_identifier(root: TSNode, name: str) -> bool:
    """Return True if any identifier-like node in the tree is spelled *name*."""
    match = find_first(root, lambda n: n.type in _IDENTIFIER_KINDS and node_text(n) == name)
    return match is not None


def contains_string_literal(root: TSNode, value: str) -> bool:
    """Return True if any string literal in the tree equals *value*."""
    return find_first(root, lambda n: string_value(n) == value) is not None


def iter_literal_contents(root: TSNode) -> Iterator[tuple[str, int]]:
    """Yield ``(contents, line)`` for every string and template literal."""
    for node in iter_nodes(root):
        if node.type == NodeKind.STRING:
            yield string_value(node) or "", line_of(node)
        elif node.type == NodeKind.TEMPLATE_STRING:
            yield node_text(node)[1:-1], line_of(node)
