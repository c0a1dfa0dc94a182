# similarity-ts - Find duplicated TypeScript code by structural comparison
# Copyright (C) 2025  Jonathan Louis
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

"""
JavaScript/TypeScript front-end using tree-sitter.

Extracts functions, arrow functions, methods, interfaces, type aliases,
object type literals and statement blocks.
"""

from typing import Iterator, List, Optional, Tuple

from .base import BaseExtractor, StatementSequence
from ..errors import SourceSyntaxError
from ..models import (
    FunctionDefinition,
    Property,
    TypeDefinition,
    TypeKind,
    TypeLiteralContext,
    TypeLiteralContextKind,
    TypeLiteralDefinition,
)
from ..tree import FlatTree


FUNCTION_TYPES = {
    "function_declaration",
    "generator_function_declaration",
    "function_expression",
    "function",
    "generator_function",
    "arrow_function",
    "method_definition",
}

CLASS_TYPES = {"class_declaration", "abstract_class_declaration", "class"}

OBJECT_TYPES = {"object_type", "interface_body"}

PARAMETER_TYPES = {"required_parameter", "optional_parameter"}

STATEMENT_CONTAINERS = {"program", "statement_block", "switch_case", "switch_default"}

# Never part of a comparable tree
SKIPPED_TYPES = {"comment", "hash_bang_line"}

ANONYMOUS = "<anonymous>"
TOP_LEVEL = "<top-level>"


class TreeSitterNode:
    """Adapts a tree-sitter node to the SyntaxNode protocol."""

    __slots__ = ("_node",)

    def __init__(self, node):
        self._node = node

    @property
    def kind(self) -> str:
        return self._node.type

    @property
    def children(self) -> List["TreeSitterNode"]:
        return [
            TreeSitterNode(child)
            for child in self._node.named_children
            if child.type not in SKIPPED_TYPES
        ]

    @property
    def value(self) -> Optional[str]:
        if self._node.named_child_count == 0:
            return _text(self._node)
        return None

    @property
    def start_line(self) -> int:
        return self._node.start_point[0] + 1

    @property
    def end_line(self) -> int:
        return self._node.end_point[0] + 1


class TypeScriptExtractor(BaseExtractor):
    """AST-aware JavaScript/TypeScript extractor."""

    def __init__(self, tsx: bool = False):
        self.tsx = tsx
        self._language = None

    def _ensure_language(self):
        """Lazy-load the tree-sitter grammar."""
        if self._language is not None:
            return

        try:
            import tree_sitter_typescript as tstypescript
            from tree_sitter import Language
        except ImportError as e:
            raise ImportError(
                "tree-sitter-typescript not installed. "
                "Install with: pip install tree-sitter-typescript"
            ) from e

        if self.tsx:
            self._language = Language(tstypescript.language_tsx())
        else:
            self._language = Language(tstypescript.language_typescript())

    def parse(self, content: str, file_path: str):
        """Parse and return the root node; reject sources with syntax errors."""
        self._ensure_language()
        from tree_sitter import Parser

        # Parsers are not shared between threads
        parser = Parser(self._language)
        tree = parser.parse(content.encode("utf-8"))
        root = tree.root_node

        if root.has_error:
            line, detail = _first_error(root)
            raise SourceSyntaxError(file_path, f"Parse errors: {detail}", line)

        return root

    # --- functions ---------------------------------------------------------

    def functions(self, root, file_path: str) -> List[FunctionDefinition]:
        functions = []
        for node in _walk(root):
            if node.type not in FUNCTION_TYPES:
                continue
            body = node.child_by_field_name("body")
            if body is None:
                continue

            if node.type == "method_definition":
                kind = "method"
            elif node.type == "arrow_function":
                kind = "arrow_function"
            else:
                kind = "function"

            functions.append(FunctionDefinition(
                file_path=file_path,
                name=_function_name(node),
                start_line=node.start_point[0] + 1,
                end_line=node.end_point[0] + 1,
                kind=kind,
                parameters=tuple(name for name, _ in _parameters(node)),
                class_name=_class_name(node) if kind == "method" else None,
                token_count=_count_tokens(node),
                body=FlatTree.from_node(TreeSitterNode(body)),
                body_text=_text(body),
            ))
        return functions

    # --- types -------------------------------------------------------------

    def types(self, root, file_path: str) -> List[TypeDefinition]:
        types = []
        for node in _walk(root):
            if node.type == "interface_declaration":
                body = node.child_by_field_name("body")
                types.append(TypeDefinition(
                    file_path=file_path,
                    name=_field_text(node, "name"),
                    kind=TypeKind.INTERFACE,
                    start_line=node.start_point[0] + 1,
                    end_line=node.end_point[0] + 1,
                    properties=_properties(body) if body is not None else (),
                    generics=_generics(node),
                    extends=_extends(node),
                ))
            elif node.type == "type_alias_declaration":
                value = node.child_by_field_name("value")
                is_object = value is not None and value.type in OBJECT_TYPES
                types.append(TypeDefinition(
                    file_path=file_path,
                    name=_field_text(node, "name"),
                    kind=TypeKind.TYPE_ALIAS,
                    start_line=node.start_point[0] + 1,
                    end_line=node.end_point[0] + 1,
                    properties=_properties(value) if is_object else (),
                    generics=_generics(node),
                ))
        return types

    def type_literals(self, root, file_path: str) -> List[TypeLiteralDefinition]:
        literals = []

        def add(object_type, name: str, context: TypeLiteralContext):
            properties = _properties(object_type)
            if not properties:
                return
            literals.append(TypeLiteralDefinition(
                file_path=file_path,
                name=name,
                context=context,
                start_line=object_type.start_point[0] + 1,
                end_line=object_type.end_point[0] + 1,
                properties=properties,
            ))

        for node in _walk(root):
            if node.type in FUNCTION_TYPES:
                function_name = _function_name(node)

                return_type = _annotated_object(node.child_by_field_name("return_type"))
                if return_type is not None:
                    if node.type == "arrow_function":
                        context_kind = TypeLiteralContextKind.ARROW_FUNCTION_RETURN
                    else:
                        context_kind = TypeLiteralContextKind.FUNCTION_RETURN
                    add(
                        return_type,
                        f"{function_name} (return)",
                        TypeLiteralContext(context_kind, function_name),
                    )

                for param_name, param in _parameters(node):
                    if param is None:
                        continue
                    param_type = _annotated_object(param.child_by_field_name("type"))
                    if param_type is not None:
                        add(
                            param_type,
                            f"{function_name}.{param_name}",
                            TypeLiteralContext(
                                TypeLiteralContextKind.FUNCTION_PARAMETER,
                                function_name,
                                param_name,
                            ),
                        )

            elif node.type == "variable_declarator":
                var_type = _annotated_object(node.child_by_field_name("type"))
                if var_type is not None:
                    name = _field_text(node, "name")
                    add(
                        var_type,
                        name,
                        TypeLiteralContext(TypeLiteralContextKind.VARIABLE_DECLARATION, name),
                    )

        literals.sort(key=lambda lit: lit.sort_key)
        return literals

    # --- statements --------------------------------------------------------

    def statement_sequences(self, root) -> List[StatementSequence]:
        sequences = []
        for node in _walk(root):
            if node.type not in STATEMENT_CONTAINERS:
                continue

            if node.type in ("switch_case", "switch_default"):
                statements = node.children_by_field_name("body")
            else:
                statements = node.named_children
            statements = [s for s in statements if s.type not in SKIPPED_TYPES]
            if not statements:
                continue

            sequences.append(StatementSequence(
                statements=[TreeSitterNode(s) for s in statements],
                function_name=_enclosing_function_name(node),
            ))
        return sequences


# --- helpers ---------------------------------------------------------------

def _walk(root) -> Iterator:
    """Preorder traversal over all named nodes."""
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.named_children))


def _text(node) -> str:
    return node.text.decode("utf-8", errors="replace")


def _field_text(node, field: str, default: str = ANONYMOUS) -> str:
    child = node.child_by_field_name(field)
    if child is None:
        return default
    return _text(child)


def _first_error(root) -> Tuple[Optional[int], str]:
    """Location and description of the first ERROR or MISSING node."""
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type == "ERROR":
            return node.start_point[0] + 1, f"unexpected syntax at line {node.start_point[0] + 1}"
        if node.is_missing:
            return node.start_point[0] + 1, f"missing '{node.type}' at line {node.start_point[0] + 1}"
        stack.extend(reversed(node.children))
    return None, "syntax error"


def _count_tokens(node) -> int:
    """Number of leaf tokens, punctuation and keywords included."""
    count = 0
    stack = [node]
    while stack:
        current = stack.pop()
        if current.child_count == 0:
            if current.type not in SKIPPED_TYPES:
                count += 1
        else:
            stack.extend(current.children)
    return count


def _function_name(node) -> str:
    name = node.child_by_field_name("name")
    if name is not None:
        return _text(name)

    parent = node.parent
    if parent is None:
        return ANONYMOUS
    if parent.type == "variable_declarator":
        return _field_text(parent, "name")
    if parent.type == "pair":
        return _field_text(parent, "key").strip("'\"")
    if parent.type == "assignment_expression":
        return _field_text(parent, "left")
    if parent.type in ("public_field_definition", "field_definition"):
        return _field_text(parent, "name", _field_text(parent, "property"))
    return ANONYMOUS


def _enclosing_function_name(node) -> str:
    current = node.parent
    while current is not None:
        if current.type in FUNCTION_TYPES:
            return _function_name(current)
        current = current.parent
    return TOP_LEVEL


def _class_name(node) -> Optional[str]:
    current = node.parent
    while current is not None:
        if current.type in CLASS_TYPES:
            name = current.child_by_field_name("name")
            return _text(name) if name is not None else None
        current = current.parent
    return None


def _parameters(node) -> List[Tuple[str, Optional[object]]]:
    """(name, parameter node) pairs; the node is None for bare identifiers."""
    single = node.child_by_field_name("parameter")
    if single is not None:
        return [(_text(single), None)]

    params = node.child_by_field_name("parameters")
    if params is None:
        return []

    result = []
    for param in params.named_children:
        if param.type in PARAMETER_TYPES:
            pattern = param.child_by_field_name("pattern")
            name = _text(pattern) if pattern is not None else _text(param)
            result.append((name, param))
        elif param.type not in SKIPPED_TYPES:
            result.append((_text(param), None))
    return result


def _annotated_object(annotation):
    """The object type inside a type annotation, if that is what it holds."""
    if annotation is None:
        return None
    if annotation.type in OBJECT_TYPES:
        return annotation
    for child in annotation.named_children:
        if child.type in OBJECT_TYPES:
            return child
    return None


def _normalize_type(text: str) -> str:
    return " ".join(text.split()).rstrip(";,").strip()


def _annotation_text(annotation, default: str = "any") -> str:
    if annotation is None:
        return default
    if annotation.named_child_count:
        return _normalize_type(_text(annotation.named_children[0]))
    return _normalize_type(_text(annotation).lstrip(":"))


def _has_token(node, token: str) -> bool:
    return any(child.type == token for child in node.children)


def _properties(body) -> Tuple[Property, ...]:
    properties = []
    for member in body.named_children:
        if member.type == "property_signature":
            properties.append(Property(
                name=_field_text(member, "name").strip("'\""),
                type_annotation=_annotation_text(member.child_by_field_name("type")),
                optional=_has_token(member, "?"),
                readonly=_has_token(member, "readonly"),
            ))
        elif member.type == "method_signature":
            params = member.child_by_field_name("parameters")
            returns = _annotation_text(member.child_by_field_name("return_type"), "void")
            params_text = _normalize_type(_text(params)) if params is not None else "()"
            properties.append(Property(
                name=_field_text(member, "name").strip("'\""),
                type_annotation=f"{params_text} => {returns}",
                optional=_has_token(member, "?"),
                readonly=False,
            ))
        elif member.type == "index_signature":
            key = member.child_by_field_name("name")
            key_type = member.child_by_field_name("index_type")
            if key is not None and key_type is not None:
                name = f"[{_text(key)}: {_normalize_type(_text(key_type))}]"
            else:
                name = "[index]"
            properties.append(Property(
                name=name,
                type_annotation=_annotation_text(member.child_by_field_name("type")),
                readonly=_has_token(member, "readonly"),
            ))
    return tuple(properties)


def _generics(node) -> Tuple[str, ...]:
    params = node.child_by_field_name("type_parameters")
    if params is None:
        return ()
    names = []
    for param in params.named_children:
        if param.type == "type_parameter":
            names.append(_field_text(param, "name", _text(param)))
    return tuple(names)


def _extends(node) -> Tuple[str, ...]:
    for child in node.named_children:
        if child.type in ("extends_type_clause", "extends_clause"):
            return tuple(_normalize_type(_text(t)) for t in child.named_children)
    return ()
