"""Java analysis using tree-sitter."""

import logging
import re
from dataclasses import dataclass, field, replace
from typing import Any, Iterable, List, Optional, Tuple

import tree_sitter_java as tsjava
from tree_sitter import Language, Parser

from ..errors import AnalysisError
from .analyzers import LanguageAnalyzer
from .models import (
    ClassInfo,
    DependencyRelation,
    FileAnalysis,
    MethodInfo,
    ParameterInfo,
    RelationType,
    SourceFile,
)

logger = logging.getLogger(__name__)

JAVA_LANGUAGE = Language(tsjava.language())

TYPE_DECLARATION_NODES = ["class_declaration", "interface_declaration"]
MEMBER_NODES = ("method_declaration", "constructor_declaration")
VISIBILITY_KEYWORDS = ("public", "protected", "private")

# Spring annotations that expose a member over HTTP
ENDPOINT_ANNOTATIONS = frozenset(
    {
        "GetMapping",
        "PostMapping",
        "PutMapping",
        "DeleteMapping",
        "PatchMapping",
        "RequestMapping",
    }
)
CONTROLLER_ANNOTATIONS = frozenset({"RestController", "Controller"})

# Lombok annotations that generate accessors
ACCESSOR_ANNOTATIONS = frozenset({"Data", "Getter", "Setter"})

# Field types never treated as injected collaborators
STANDARD_TYPES = frozenset(
    {
        "String",
        "Integer",
        "Long",
        "Double",
        "Float",
        "Boolean",
        "List",
        "Map",
        "Set",
        "Collection",
        "ArrayList",
        "HashMap",
        "HashSet",
        "Optional",
        "Stream",
        "Date",
        "LocalDate",
        "BigDecimal",
        "UUID",
        "Object",
    }
)

IMPORT_PATTERN = re.compile(r"import\s+(?:static\s+)?([^;]+);")
LEADING_TYPE_NAME = re.compile(r"^([A-Z][a-zA-Z0-9]*)")


@dataclass
class FieldDeclaration:
    """A field declared directly in a type body."""

    name: str
    type: str
    line: int
    annotations: List[str] = field(default_factory=list)


@dataclass
class TypeDeclaration:
    """Extraction result for one type before accessor synthesis."""

    class_info: ClassInfo
    annotations: List[str]
    fields: List[FieldDeclaration]


def _node_text(node: Any) -> str:
    return node.text.decode("utf-8")


def _line(node: Any) -> int:
    # Tree-sitter uses 0-based rows
    return node.start_point[0] + 1


def _find_nodes_by_type(node: Any, node_types: List[str]) -> List[Any]:
    """Find all nodes of specific types in document order.

    Walks with an explicit stack so deeply nested expressions do not
    exhaust the interpreter's recursion limit.
    """
    matches = []
    stack = [node]

    while stack:
        current = stack.pop()
        if current.type in node_types:
            matches.append(current)
        stack.extend(reversed(current.children))

    return matches


def _child_of_type(node: Any, node_type: str) -> Optional[Any]:
    for child in node.children:
        if child.type == node_type:
            return child
    return None


def _annotation_names(node: Any) -> List[str]:
    """Simple names of the annotations in a declaration's modifiers."""
    names = []
    modifiers = _child_of_type(node, "modifiers")
    if modifiers is None:
        return names

    for child in modifiers.children:
        if child.type in ("marker_annotation", "annotation"):
            name_node = child.child_by_field_name("name")
            if name_node is not None:
                names.append(_node_text(name_node).split(".")[-1])
    return names


def _keywords(node: Any) -> List[str]:
    modifiers = _child_of_type(node, "modifiers")
    if modifiers is None:
        return []
    return [child.type for child in modifiers.children if not child.is_named]


def _base_type_name(type_node: Any) -> Optional[str]:
    """Simple name of a type, ignoring generic arguments and qualifiers."""
    if type_node.type == "type_identifier":
        return _node_text(type_node)

    if type_node.type == "scoped_type_identifier":
        identifiers = [c for c in type_node.named_children if c.type == "type_identifier"]
        return _node_text(identifiers[-1]) if identifiers else None

    for child in type_node.named_children:
        name = _base_type_name(child)
        if name:
            return name
    return None


def _type_list_entries(node: Optional[Any]) -> List[Any]:
    """Type nodes listed in a super_interfaces or extends_interfaces clause."""
    if node is None:
        return []
    type_list = _child_of_type(node, "type_list")
    return list(type_list.named_children) if type_list is not None else []


def extract_type_name(type_text: str) -> str:
    """Leading capitalized identifier of a type as written, e.g. ``List`` for ``List<Foo>``."""
    match = LEADING_TYPE_NAME.match(type_text)
    return match.group(1) if match else type_text


def is_custom_type(type_name: str) -> bool:
    """Lexical guess whether a type belongs to the project rather than the JDK."""
    return (
        len(type_name) > 0
        and type_name not in STANDARD_TYPES
        and type_name[0] == type_name[0].upper()
        and type_name[0].isalpha()
    )


def _capitalize(name: str) -> str:
    return name[:1].upper() + name[1:]


def synthesize_accessors(declaration: TypeDeclaration) -> ClassInfo:
    """Add Lombok-generated getters and setters to a type's public surface.

    A marker on the type covers every field; a marker on a field covers that
    field only. Accessors the type already declares are left alone.

    Args:
        declaration: Extracted type with its annotations and fields

    Returns:
        ClassInfo including the generated accessors
    """
    class_info = declaration.class_info
    type_marked = any(a in ACCESSOR_ANNOTATIONS for a in declaration.annotations)
    existing = {m.name for m in class_info.public_methods}
    generated: List[MethodInfo] = []

    for field_decl in declaration.fields:
        if not type_marked and not any(a in ACCESSOR_ANNOTATIONS for a in field_decl.annotations):
            continue

        getter_name = "get" + _capitalize(field_decl.name)
        if getter_name not in existing:
            generated.append(
                MethodInfo(
                    name=getter_name,
                    signature=f"{field_decl.type} {getter_name}()",
                    line=field_decl.line,
                    return_type=field_decl.type,
                    parameters=[],
                )
            )
            existing.add(getter_name)

        setter_name = "set" + _capitalize(field_decl.name)
        if setter_name not in existing:
            generated.append(
                MethodInfo(
                    name=setter_name,
                    signature=f"void {setter_name}({field_decl.type} {field_decl.name})",
                    line=field_decl.line,
                    return_type="void",
                    parameters=[ParameterInfo(name=field_decl.name, type=field_decl.type)],
                )
            )
            existing.add(setter_name)

    if not generated:
        return class_info
    return replace(class_info, public_methods=class_info.public_methods + generated)


class JavaAnalyzer(LanguageAnalyzer):
    """Java-specific analysis of types, public methods and dependencies."""

    def __init__(self):
        super().__init__("java")
        self.parser = Parser()
        self.parser.language = JAVA_LANGUAGE

    def analyze(self, source_file: SourceFile) -> FileAnalysis:
        """Parse a Java file and extract its types and dependencies.

        Args:
            source_file: File to analyze

        Returns:
            FileAnalysis with classes, dependency edges, imports and exports

        Raises:
            AnalysisError: If the file cannot be processed
        """
        try:
            tree = self.parser.parse(source_file.content.encode("utf-8"))
            root_node = tree.root_node

            if root_node.has_error:
                logger.warning(f"Parse errors in {source_file.relative_path}")

            package_name = self._extract_package(root_node)
            declarations: List[TypeDeclaration] = []
            dependencies: List[DependencyRelation] = []

            for class_node in _find_nodes_by_type(root_node, TYPE_DECLARATION_NODES):
                declaration = self._extract_type(class_node, source_file.relative_path, package_name)
                if declaration is None:
                    continue

                declarations.append(declaration)
                dependencies.extend(
                    self._extract_class_dependencies(
                        class_node, declaration.class_info.name, declaration.fields
                    )
                )

            # Accessor synthesis runs over the extracted model, not the tree
            classes = [synthesize_accessors(d) for d in declarations]

            logger.debug(
                f"Extracted {len(classes)} types and {len(dependencies)} dependencies "
                f"from {source_file.relative_path}"
            )

            return FileAnalysis(
                classes=classes,
                dependencies=dependencies,
                imports=self._extract_imports(root_node),
                exports=[c.name for c in classes],
            )

        except Exception as e:
            raise AnalysisError(source_file.relative_path, str(e)) from e

    def _extract_package(self, root_node: Any) -> Optional[str]:
        package_node = _child_of_type(root_node, "package_declaration")
        if package_node is None:
            return None
        for child in package_node.named_children:
            if child.type in ("scoped_identifier", "identifier"):
                return _node_text(child)
        return None

    def _extract_imports(self, root_node: Any) -> List[str]:
        imports = []
        for import_node in _find_nodes_by_type(root_node, ["import_declaration"]):
            match = IMPORT_PATTERN.search(_node_text(import_node))
            if match:
                imports.append(re.sub(r"\s+", "", match.group(1)))
        return imports

    def _extract_type(
        self, class_node: Any, relative_path: str, package_name: Optional[str]
    ) -> Optional[TypeDeclaration]:
        """Build the declaration record for a class or interface node."""
        name_node = class_node.child_by_field_name("name")
        if name_node is None:
            return None

        annotations = _annotation_names(class_node)
        class_info = ClassInfo(
            name=_node_text(name_node),
            path=relative_path,
            package=package_name,
            public_methods=self._extract_public_methods(class_node, annotations),
            dependencies=[name for name, _, _ in self._supertypes(class_node)],
            dependents=[],
        )
        return TypeDeclaration(
            class_info=class_info,
            annotations=annotations,
            fields=self._extract_fields(class_node),
        )

    def _body_members(self, class_node: Any, node_types: Iterable[str]) -> List[Any]:
        body = class_node.child_by_field_name("body")
        if body is None:
            return []
        return [child for child in body.named_children if child.type in node_types]

    def _is_public_member(self, member: Any, is_interface: bool, in_controller: bool) -> bool:
        """Decide whether a method or constructor belongs to the public surface."""
        # Interface methods are implicitly public
        if is_interface:
            return True

        # Endpoint and controller annotations make a member externally callable
        if in_controller or any(a in ENDPOINT_ANNOTATIONS for a in _annotation_names(member)):
            return True

        keywords = _keywords(member)
        if "public" in keywords:
            return True

        # Constructors without a visibility keyword follow the default-constructor rule
        return member.type == "constructor_declaration" and not any(
            k in VISIBILITY_KEYWORDS for k in keywords
        )

    def _extract_public_methods(self, class_node: Any, annotations: List[str]) -> List[MethodInfo]:
        methods = []
        is_interface = class_node.type == "interface_declaration"
        in_controller = any(a in CONTROLLER_ANNOTATIONS for a in annotations)

        for member in self._body_members(class_node, MEMBER_NODES):
            if not self._is_public_member(member, is_interface, in_controller):
                continue

            name_node = member.child_by_field_name("name")
            if name_node is None:
                continue
            method_name = _node_text(name_node)

            if member.type == "constructor_declaration":
                return_type = ""
            else:
                type_node = member.child_by_field_name("type")
                return_type = _node_text(type_node) if type_node is not None else "void"

            parameters = self._extract_parameters(member)
            param_string = ", ".join(f"{p.type} {p.name}" for p in parameters)
            if return_type:
                signature = f"{return_type} {method_name}({param_string})"
            else:
                signature = f"{method_name}({param_string})"

            methods.append(
                MethodInfo(
                    name=method_name,
                    signature=signature,
                    line=_line(member),
                    return_type=return_type,
                    parameters=parameters,
                )
            )

        return methods

    def _extract_parameters(self, method_node: Any) -> List[ParameterInfo]:
        parameters = []
        params_node = method_node.child_by_field_name("parameters")
        if params_node is None:
            return parameters

        for param_node in params_node.named_children:
            if param_node.type != "formal_parameter":
                continue
            type_node = param_node.child_by_field_name("type")
            name_node = param_node.child_by_field_name("name")
            if type_node is not None and name_node is not None:
                parameters.append(
                    ParameterInfo(name=_node_text(name_node), type=_node_text(type_node))
                )

        return parameters

    def _extract_fields(self, class_node: Any) -> List[FieldDeclaration]:
        fields = []
        for field_node in self._body_members(class_node, ("field_declaration",)):
            type_node = field_node.child_by_field_name("type")
            if type_node is None:
                continue
            annotations = _annotation_names(field_node)

            for declarator in field_node.children_by_field_name("declarator"):
                name_node = declarator.child_by_field_name("name")
                if name_node is None:
                    continue
                fields.append(
                    FieldDeclaration(
                        name=_node_text(name_node),
                        type=_node_text(type_node),
                        line=_line(field_node),
                        annotations=annotations,
                    )
                )
        return fields

    def _supertypes(self, class_node: Any) -> List[Tuple[str, RelationType, Any]]:
        """(name, relation, node) triples for the supertypes a type declares."""
        supertypes = []

        superclass = _child_of_type(class_node, "superclass")
        if superclass is not None:
            for type_node in superclass.named_children:
                name = _base_type_name(type_node)
                if name:
                    supertypes.append((name, RelationType.EXTENDS, type_node))

        # Interfaces extending other interfaces
        for type_node in _type_list_entries(_child_of_type(class_node, "extends_interfaces")):
            name = _base_type_name(type_node)
            if name:
                supertypes.append((name, RelationType.EXTENDS, type_node))

        for type_node in _type_list_entries(_child_of_type(class_node, "super_interfaces")):
            name = _base_type_name(type_node)
            if name:
                supertypes.append((name, RelationType.IMPLEMENTS, type_node))

        return supertypes

    def _extract_class_dependencies(
        self, class_node: Any, class_name: str, fields: List[FieldDeclaration]
    ) -> List[DependencyRelation]:
        """Dependency edges of one type: injected fields first, then supertypes.

        The file is left empty; the index builder fills it in when merging.
        """
        dependencies = []

        seen = set()
        for field_decl in fields:
            # One edge per field declaration, even when it declares several names
            if (field_decl.line, field_decl.type) in seen:
                continue
            seen.add((field_decl.line, field_decl.type))
            type_name = extract_type_name(field_decl.type)
            if not is_custom_type(type_name):
                continue
            dependencies.append(
                DependencyRelation(
                    source=class_name,
                    target=type_name,
                    type=RelationType.FIELD_INJECTION,
                    file="",
                    line=field_decl.line,
                    usage=[f"Field at line {field_decl.line}"],
                )
            )

        for name, relation_type, type_node in self._supertypes(class_node):
            dependencies.append(
                DependencyRelation(
                    source=class_name,
                    target=name,
                    type=relation_type,
                    file="",
                    line=_line(type_node),
                )
            )

        return dependencies
