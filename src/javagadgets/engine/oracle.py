from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from javagadgets.engine import declarations
from javagadgets.engine.semantics import (
    BOOLEAN,
    BOXED_NAMES,
    CHAR,
    DOUBLE,
    FLOAT,
    INT,
    LONG,
    NULL,
    STRING,
    UNBOXED_NAMES,
    DeclaredMember,
    ResolvedType,
    binary_promotion,
    unary_promotion,
)
from javagadgets.engine.tree import EXPRESSION_KINDS, TYPE_DECLARATION_KINDS, NodeKind, NodeRef, SyntaxTree
from javagadgets.engine.trivia import significant_children

logger = logging.getLogger(__name__)

_ANNOTATION_RE = re.compile(r"@[\w.]+(\s*\([^)]*\))?")
_GENERIC_RE = re.compile(r"<.*>")

_COMPARISON_OPERATORS = frozenset({"==", "!=", "<", ">", "<=", ">=", "&&", "||"})
_SHIFT_OPERATORS = frozenset({"<<", ">>", ">>>"})
_BITWISE_OPERATORS = frozenset({"&", "|", "^"})

_JDK_CLASSES = frozenset({"String", "Object", "Math", "System", "Number", *BOXED_NAMES.values()})
_OBJECT = ResolvedType("Object")


def normalize_type_name(text: str) -> str:
    """Presentable type text: annotations and whitespace removed."""

    return "".join(_ANNOTATION_RE.sub("", text).split())


def simple_type_name(name: str) -> str:
    """`java.util.List<String>[]` -> `List`."""

    base = _GENERIC_RE.sub("", name).rstrip("[]")
    return base.rsplit(".", 1)[-1]


def literal_type(raw: str, text: str) -> ResolvedType | None:
    if raw in ("string_literal", "text_block"):
        return STRING
    if raw == "character_literal":
        return CHAR
    if raw in ("true", "false"):
        return BOOLEAN
    if raw == "null_literal":
        return NULL
    if raw.endswith("integer_literal"):
        return LONG if text[-1:] in ("l", "L") else INT
    if raw.endswith("floating_point_literal"):
        return FLOAT if text[-1:] in ("f", "F") else DOUBLE
    return None


def _jdk_method(owner: str, name: str) -> DeclaredMember | None:
    """The handful of JDK methods whose result types matter for boxing."""

    primitive = UNBOXED_NAMES.get(owner)
    owner = simple_type_name(owner)
    if primitive is not None:
        if name == "valueOf":
            return DeclaredMember(
                name, "method", ResolvedType(owner), owner, is_static=True, parameter_types=(ResolvedType(primitive),)
            )
        if name == f"parse{owner}" or (owner == "Integer" and name == "parseInt"):
            return DeclaredMember(name, "method", ResolvedType(primitive), owner, is_static=True, parameter_types=(STRING,))
        if name.endswith("Value") and name[: -len("Value")] in BOXED_NAMES:
            return DeclaredMember(name, "method", ResolvedType(name[: -len("Value")]), owner)
        if name == "compareTo":
            return DeclaredMember(name, "method", INT, owner, parameter_types=(ResolvedType(owner),))
    if owner == "String":
        if name in ("length", "hashCode"):
            return DeclaredMember(name, "method", INT, owner)
        if name == "charAt":
            return DeclaredMember(name, "method", CHAR, owner, parameter_types=(INT,))
        if name in ("isEmpty", "isBlank"):
            return DeclaredMember(name, "method", BOOLEAN, owner)
        if name in ("startsWith", "endsWith", "contains", "equalsIgnoreCase"):
            return DeclaredMember(name, "method", BOOLEAN, owner, parameter_types=(STRING,))
        if name in ("substring", "trim", "strip", "toUpperCase", "toLowerCase"):
            return DeclaredMember(name, "method", STRING, owner)
    if name == "equals":
        return DeclaredMember(name, "method", BOOLEAN, owner, parameter_types=(_OBJECT,))
    if name == "hashCode":
        return DeclaredMember(name, "method", INT, owner)
    if name == "toString":
        return DeclaredMember(name, "method", STRING, owner)
    return None


def _jdk_constructor(owner: str) -> DeclaredMember | None:
    primitive = UNBOXED_NAMES.get(owner)
    if primitive is None:
        return None
    owner = simple_type_name(owner)
    return DeclaredMember(owner, "constructor", ResolvedType(owner), owner, parameter_types=(ResolvedType(primitive),))


@dataclass(slots=True)
class _TypeInfo:
    name: str | None
    declaration: NodeRef
    body: NodeRef | None
    supertypes: list[str] = field(default_factory=list)
    fields: dict[str, DeclaredMember] = field(default_factory=dict)
    methods: dict[str, list[DeclaredMember]] = field(default_factory=dict)
    constructors: list[DeclaredMember] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class _Parameter:
    name: str
    type: ResolvedType | None
    declaration: NodeRef
    is_varargs: bool = False


class SourceOracle:
    """
    Resolves names and static types using only the declarations of one file.

    Anything it cannot see (other files, most of the JDK, generics) is
    reported as unknown, which the rules treat as "do not flag".
    """

    def __init__(self, tree: SyntaxTree) -> None:
        self._tree = tree
        self._types_by_declaration: dict[int, _TypeInfo] = {}
        self._types_by_name: dict[str, _TypeInfo] = {}
        self._static_types: dict[int, ResolvedType | None] = {}
        self._in_progress: set[int] = set()
        self._index_types()

    @property
    def tree(self) -> SyntaxTree:
        return self._tree

    # -- type index -------------------------------------------------------

    def _index_types(self) -> None:
        tree = self._tree
        for ref in tree.walk():
            kind = tree.kind(ref)
            if kind in TYPE_DECLARATION_KINDS:
                info = self._collect_type(ref, declarations.declaration_name(tree, ref))
            elif kind is NodeKind.CLASS_BODY and tree.kind(tree.parent(ref) or ref) is NodeKind.NEW_EXPRESSION:
                # anonymous class
                info = self._collect_type(tree.parent(ref) or ref, None, body=ref)
            else:
                continue
            self._types_by_declaration[info.declaration.index] = info
            if info.name is not None:
                self._types_by_name.setdefault(info.name, info)
        logger.debug("indexed %d type declaration(s)", len(self._types_by_declaration))

    def _collect_type(self, decl: NodeRef, name: str | None, body: NodeRef | None = None) -> _TypeInfo:
        tree = self._tree
        if body is None:
            body = tree.child(decl, "body")
        info = _TypeInfo(name=name, declaration=decl, body=body)

        for child in tree.children(decl):
            if tree.raw(child) in ("superclass", "super_interfaces", "extends_interfaces"):
                for leaf in tree.walk(child):
                    if tree.kind(leaf) is NodeKind.TYPE:
                        info.supertypes.append(simple_type_name(normalize_type_name(tree.text(leaf))))
        if body is not None and tree.kind(decl) is NodeKind.NEW_EXPRESSION:
            created = tree.child(decl, "type")
            if created is not None:
                info.supertypes.append(simple_type_name(normalize_type_name(tree.text(created))))

        if tree.kind(decl) is NodeKind.RECORD_DECLARATION:
            components = tree.child(decl, "parameters")
            if components is not None:
                for param in self._parameters(components):
                    info.fields[param.name] = DeclaredMember(
                        param.name, "field", param.type, name, is_final=True, declaration=param.declaration
                    )

        if body is None:
            return info
        for member in tree.children(body):
            kind = tree.kind(member)
            if kind is NodeKind.FIELD_DECLARATION:
                is_static = declarations.is_static(tree, member)
                is_final = declarations.is_final(tree, member)
                for declarator in tree.children_of_kind(member, NodeKind.VARIABLE_DECLARATOR):
                    field_name = declarations.declaration_name(tree, declarator)
                    if field_name is None:
                        continue
                    info.fields[field_name] = DeclaredMember(
                        field_name,
                        "field",
                        self.declared_type(declarator),
                        name,
                        is_static=is_static,
                        is_final=is_final,
                        declaration=declarator,
                    )
            elif kind is NodeKind.ENUM_CONSTANT:
                constant = declarations.declaration_name(tree, member)
                if constant is not None:
                    info.fields[constant] = DeclaredMember(
                        constant,
                        "field",
                        ResolvedType(name) if name else None,
                        name,
                        is_static=True,
                        is_final=True,
                        declaration=member,
                    )
            elif kind in (NodeKind.METHOD_DECLARATION, NodeKind.CONSTRUCTOR_DECLARATION):
                method_name = declarations.declaration_name(tree, member)
                if method_name is None:
                    continue
                params_node = tree.child(member, "parameters")
                params = self._parameters(params_node) if params_node is not None else []
                is_constructor = kind is NodeKind.CONSTRUCTOR_DECLARATION
                declared = DeclaredMember(
                    method_name,
                    "constructor" if is_constructor else "method",
                    ResolvedType(name) if is_constructor and name else self.declared_type(member),
                    name,
                    is_static=declarations.is_static(tree, member),
                    parameter_types=tuple(p.type or _OBJECT for p in params),
                    is_varargs=bool(params) and params[-1].is_varargs,
                    declaration=member,
                )
                if is_constructor:
                    info.constructors.append(declared)
                else:
                    info.methods.setdefault(method_name, []).append(declared)
        return info

    def _parameters(self, param_list: NodeRef) -> list[_Parameter]:
        tree = self._tree
        params: list[_Parameter] = []
        for param in tree.children_of_kind(param_list, NodeKind.PARAMETER):
            is_varargs = tree.raw(param) == "spread_parameter"
            name_node = tree.child(param, "name")
            if name_node is None:
                for declarator in tree.children_of_kind(param, NodeKind.VARIABLE_DECLARATOR):
                    name_node = tree.child(declarator, "name")
            if name_node is None:
                continue
            params.append(_Parameter(tree.text(name_node), self.declared_type(param), param, is_varargs))
        return params

    # -- declared types ---------------------------------------------------

    def declared_type(self, declaration: NodeRef) -> ResolvedType | None:
        """Type of a declarator, parameter, method (return type) or cast."""

        tree = self._tree
        kind = tree.kind(declaration)
        if kind is NodeKind.VARIABLE_DECLARATOR:
            owner = tree.parent(declaration)
            if owner is None:
                return None
            if tree.kind(owner) is NodeKind.PARAMETER:
                # the declarator of a varargs parameter
                return self.declared_type(owner)
            type_node = tree.child(owner, "type")
            if type_node is None:
                return None
            type_text = normalize_type_name(tree.text(type_node))
            if type_text == "var":
                value = tree.child(declaration, "value")
                return self.static_type_of(value) if value is not None else None
            return ResolvedType(type_text + self._dimensions(declaration))
        if kind is NodeKind.PARAMETER:
            type_node = tree.child(declaration, "type")
            if type_node is None:
                found = tree.children_of_kind(declaration, NodeKind.TYPE)
                type_node = found[0] if found else None
            if type_node is None:
                return None
            type_text = normalize_type_name(tree.text(type_node)) + self._dimensions(declaration)
            if tree.raw(declaration) == "spread_parameter":
                type_text += "[]"
            return ResolvedType(type_text)
        if kind in (NodeKind.METHOD_DECLARATION, NodeKind.TYPE_CAST):
            type_node = tree.child(declaration, "type")
            if type_node is None:
                return None
            return ResolvedType(normalize_type_name(tree.text(type_node)) + self._dimensions(declaration))
        if kind is NodeKind.ENUM_CONSTANT:
            enum = declarations.enclosing_type(tree, declaration)
            name = declarations.declaration_name(tree, enum) if enum is not None else None
            return ResolvedType(name) if name else None
        return None

    def _dimensions(self, ref: NodeRef) -> str:
        dims = self._tree.child(ref, "dimensions")
        if dims is None:
            return ""
        return "[]" * self._tree.text(dims).count("[")

    # -- name resolution --------------------------------------------------

    def resolve_reference(self, node: NodeRef) -> DeclaredMember | None:
        tree = self._tree
        kind = tree.kind(node)
        if kind is NodeKind.REFERENCE_EXPRESSION:
            return self._lookup_name(node, tree.text(node))
        if kind is NodeKind.IDENTIFIER:
            parent = tree.parent(node)
            if parent is not None and tree.role(node) == "name" and tree.kind(parent) is NodeKind.METHOD_CALL:
                return self.resolve_reference(parent)
            return None
        if kind is NodeKind.METHOD_CALL:
            return self._resolve_call(node)
        if kind is NodeKind.FIELD_ACCESS:
            return self._resolve_field_access(node)
        if kind is NodeKind.NEW_EXPRESSION:
            return self._resolve_constructor(node)
        if tree.raw(node) == "explicit_constructor_invocation":
            return self._resolve_explicit_constructor(node)
        return None

    def is_static_member(self, member: DeclaredMember) -> bool:
        return member.is_static

    def declaring_type(self, member: DeclaredMember) -> str | None:
        return member.declaring_type

    def _lookup_name(self, ref: NodeRef, name: str) -> DeclaredMember | None:
        variable = self._lookup_variable(ref, name)
        if variable is not None:
            return variable
        if name in self._types_by_name or name in _JDK_CLASSES:
            return DeclaredMember(name, "class", ResolvedType(name), is_static=True)
        return None

    def _lookup_variable(self, ref: NodeRef, name: str) -> DeclaredMember | None:
        tree = self._tree
        inner = ref
        for scope in tree.ancestors(ref):
            kind = tree.kind(scope)
            raw = tree.raw(scope)
            found: DeclaredMember | None = None
            if kind is NodeKind.BLOCK or raw == "switch_block_statement_group":
                found = self._local_before(scope, inner, name, tree.span(ref)[0])
            elif kind is NodeKind.FOR_STATEMENT:
                for init in tree.children_of_kind(scope, NodeKind.LOCAL_VARIABLE_DECLARATION):
                    found = found or self._declared_local(init, name)
            elif kind is NodeKind.FOREACH_STATEMENT:
                found = self._foreach_variable(scope, name)
            elif raw == "catch_clause":
                for param in tree.children_of_kind(scope, NodeKind.CATCH_PARAMETER):
                    found = found or self._catch_variable(param, name)
            elif raw == "try_with_resources_statement":
                found = self._resource_variable(scope, inner, name)
            elif kind is NodeKind.LAMBDA_EXPRESSION:
                found = self._lambda_parameter(scope, name)
            elif kind in (NodeKind.METHOD_DECLARATION, NodeKind.CONSTRUCTOR_DECLARATION):
                params = tree.child(scope, "parameters")
                if params is not None:
                    for param in self._parameters(params):
                        if param.name == name:
                            found = DeclaredMember(name, "parameter", param.type, declaration=param.declaration)
                            break
            elif kind in TYPE_DECLARATION_KINDS or kind is NodeKind.NEW_EXPRESSION:
                info = self._types_by_declaration.get(scope.index)
                if info is not None and (info.name is not None or inner == info.body):
                    found = self._find_field(info, name)
            if found is not None:
                return found
            inner = scope
        return None

    def _local_before(self, block: NodeRef, inner: NodeRef, name: str, offset: int) -> DeclaredMember | None:
        tree = self._tree
        children = tree.children(block)
        if inner not in children:
            return None
        for child in reversed(children[: children.index(inner) + 1]):
            if tree.kind(child) is NodeKind.LOCAL_VARIABLE_DECLARATION:
                found = self._declared_local(child, name, before=offset if child == inner else None)
                if found is not None:
                    return found
        return None

    def _declared_local(self, declaration: NodeRef, name: str, before: int | None = None) -> DeclaredMember | None:
        tree = self._tree
        is_final = "final" in declarations.explicit_modifiers(tree, declaration)
        for declarator in tree.children_of_kind(declaration, NodeKind.VARIABLE_DECLARATOR):
            if before is not None and tree.span(declarator)[1] > before:
                # `int a = 1, b = a;` sees `a` but never a later declarator
                break
            if declarations.declaration_name(tree, declarator) == name:
                return DeclaredMember(name, "local", self.declared_type(declarator), is_final=is_final, declaration=declarator)
        return None

    def _foreach_variable(self, loop: NodeRef, name: str) -> DeclaredMember | None:
        tree = self._tree
        name_node = tree.child(loop, "name")
        if name_node is None or tree.text(name_node) != name:
            return None
        type_node = tree.child(loop, "type")
        loop_type: ResolvedType | None = None
        if type_node is not None:
            text = normalize_type_name(tree.text(type_node))
            if text == "var":
                value = tree.child(loop, "value")
                iterated = self.static_type_of(value) if value is not None else None
                loop_type = iterated.component() if iterated is not None else None
            else:
                loop_type = ResolvedType(text)
        return DeclaredMember(name, "local", loop_type, declaration=name_node)

    def _catch_variable(self, param: NodeRef, name: str) -> DeclaredMember | None:
        tree = self._tree
        name_node = tree.child(param, "name")
        if name_node is None or tree.text(name_node) != name:
            return None
        types = [c for c in tree.children(param) if tree.raw(c) == "catch_type"]
        caught = ResolvedType(normalize_type_name(tree.text(types[0]))) if types else None
        return DeclaredMember(name, "local", caught, declaration=name_node)

    def _resource_variable(self, statement: NodeRef, inner: NodeRef, name: str) -> DeclaredMember | None:
        tree = self._tree
        for spec in tree.children(statement):
            if tree.raw(spec) != "resource_specification":
                continue
            for resource in tree.children(spec):
                if tree.raw(resource) != "resource" or resource == inner:
                    continue
                name_node = tree.child(resource, "name")
                type_node = tree.child(resource, "type")
                if name_node is not None and tree.text(name_node) == name:
                    declared = ResolvedType(normalize_type_name(tree.text(type_node))) if type_node is not None else None
                    return DeclaredMember(name, "local", declared, declaration=name_node)
        return None

    def _lambda_parameter(self, lambda_node: NodeRef, name: str) -> DeclaredMember | None:
        tree = self._tree
        params = tree.child(lambda_node, "parameters")
        if params is None:
            return None
        if tree.kind(params) is NodeKind.PARAMETER_LIST:
            for param in self._parameters(params):
                if param.name == name:
                    return DeclaredMember(name, "parameter", param.type, declaration=param.declaration)
            return None
        for leaf in tree.walk(params):
            if tree.kind(leaf) is NodeKind.IDENTIFIER and tree.text(leaf) == name:
                return DeclaredMember(name, "parameter", None, declaration=leaf)
        return None

    def _supertypes(self, info: _TypeInfo) -> list[_TypeInfo]:
        """`info` and its same-file supertypes, breadth first."""

        seen = {info.declaration.index}
        order = [info]
        pending = list(info.supertypes)
        while pending:
            parent = self._types_by_name.get(pending.pop(0))
            if parent is None or parent.declaration.index in seen:
                continue
            seen.add(parent.declaration.index)
            order.append(parent)
            pending.extend(parent.supertypes)
        return order

    def _find_field(self, info: _TypeInfo, name: str) -> DeclaredMember | None:
        for candidate in self._supertypes(info):
            member = candidate.fields.get(name)
            if member is not None:
                return member
        return None

    def _find_methods(self, info: _TypeInfo, name: str) -> list[DeclaredMember]:
        for candidate in self._supertypes(info):
            methods = candidate.methods.get(name)
            if methods:
                return methods
        return []

    def _enclosing_types(self, ref: NodeRef) -> list[_TypeInfo]:
        found: list[_TypeInfo] = []
        inner = ref
        for ancestor in self._tree.ancestors(ref):
            info = self._types_by_declaration.get(ancestor.index)
            # an anonymous class only encloses what is inside its body
            if info is not None and (info.name is not None or inner == info.body):
                found.append(info)
            inner = ancestor
        return found

    def _select(self, candidates: list[DeclaredMember], call: NodeRef) -> DeclaredMember | None:
        args = declarations.call_arguments(self._tree, call)
        fitting = [
            m
            for m in candidates
            if len(m.parameter_types) == len(args) or (m.is_varargs and len(args) >= len(m.parameter_types) - 1)
        ]
        if len(fitting) <= 1:
            return fitting[0] if fitting else None
        arg_types = [self.static_type_of(arg) for arg in args]

        def score(member: DeclaredMember) -> int:
            return sum(1 for param, arg in zip(member.parameter_types, arg_types) if arg is not None and param == arg)

        return max(fitting, key=score)

    def _resolve_call(self, call: NodeRef) -> DeclaredMember | None:
        tree = self._tree
        name_node = tree.child(call, "name")
        if name_node is None:
            return None
        name = tree.text(name_node)
        qualifier = tree.child(call, "object")
        if qualifier is None:
            for info in self._enclosing_types(call):
                methods = self._find_methods(info, name)
                if methods:
                    return self._select(methods, call)
            return None
        owner = self._qualifier_type(qualifier)
        if owner is None:
            return None
        info = self._types_by_name.get(simple_type_name(owner.name))
        if info is not None:
            methods = self._find_methods(info, name)
            if methods:
                return self._select(methods, call)
        if owner.is_array and name == "clone":
            return DeclaredMember(name, "method", owner, owner.name)
        return _jdk_method(owner.name, name)

    def _resolve_field_access(self, access: NodeRef) -> DeclaredMember | None:
        tree = self._tree
        field_node = tree.child(access, "field")
        qualifier = tree.child(access, "object")
        if field_node is None or qualifier is None:
            return None
        name = tree.text(field_node)
        owner = self._qualifier_type(qualifier)
        if owner is None:
            return None
        if owner.is_array and name == "length":
            return DeclaredMember(name, "field", INT, owner.name, is_final=True)
        info = self._types_by_name.get(simple_type_name(owner.name))
        if info is None:
            return None
        member = self._find_field(info, name)
        if member is None and name in self._types_by_name:
            return DeclaredMember(name, "class", ResolvedType(name), is_static=True)
        return member

    def _resolve_constructor(self, creation: NodeRef) -> DeclaredMember | None:
        tree = self._tree
        if tree.raw(creation) != "object_creation_expression":
            return None
        type_node = tree.child(creation, "type")
        if type_node is None:
            return None
        name = simple_type_name(normalize_type_name(tree.text(type_node)))
        info = self._types_by_name.get(name)
        if info is None:
            return _jdk_constructor(name)
        if not info.constructors:
            return DeclaredMember(name, "constructor", ResolvedType(name), name)
        return self._select(info.constructors, creation)

    def _resolve_explicit_constructor(self, invocation: NodeRef) -> DeclaredMember | None:
        enclosing = self._enclosing_types(invocation)
        if not enclosing:
            return None
        info: _TypeInfo | None = enclosing[0]
        if self._tree.text(self._tree.child(invocation, "constructor") or invocation).startswith("super"):
            info = self._types_by_name.get(enclosing[0].supertypes[0]) if enclosing[0].supertypes else None
        if info is None or not info.constructors:
            return None
        return self._select(info.constructors, invocation)

    def _qualifier_type(self, qualifier: NodeRef) -> ResolvedType | None:
        """Type named or produced by the qualifier of a member access."""

        tree = self._tree
        kind = tree.kind(qualifier)
        if kind is NodeKind.THIS_EXPRESSION:
            enclosing = self._enclosing_types(qualifier)
            if enclosing and enclosing[0].name:
                return ResolvedType(enclosing[0].name)
            return None
        if tree.raw(qualifier) == "super":
            enclosing = self._enclosing_types(qualifier)
            if enclosing and enclosing[0].supertypes:
                return ResolvedType(enclosing[0].supertypes[0])
            return None
        if kind in (NodeKind.REFERENCE_EXPRESSION, NodeKind.FIELD_ACCESS):
            member = self.resolve_reference(qualifier)
            return member.type if member is not None else None
        return self.static_type_of(qualifier)

    # -- static types -----------------------------------------------------

    def static_type_of(self, expression: NodeRef) -> ResolvedType | None:
        index = expression.index
        if index in self._static_types:
            return self._static_types[index]
        if index in self._in_progress:
            return None
        self._in_progress.add(index)
        try:
            result = self._compute_type(expression)
        finally:
            self._in_progress.discard(index)
        self._static_types[index] = result
        return result

    def _operand(self, expression: NodeRef) -> NodeRef | None:
        tree = self._tree
        for child in significant_children(tree, expression):
            if tree.kind(child) in EXPRESSION_KINDS:
                return child
        return None

    def _compute_type(self, expression: NodeRef) -> ResolvedType | None:
        tree = self._tree
        kind = tree.kind(expression)
        if kind is NodeKind.LITERAL:
            return literal_type(tree.raw(expression), tree.text(expression))
        if kind in (NodeKind.REFERENCE_EXPRESSION, NodeKind.FIELD_ACCESS, NodeKind.METHOD_CALL):
            member = self.resolve_reference(expression)
            if member is None or member.kind in ("class", "constructor"):
                return None
            return member.type
        if kind is NodeKind.PARENTHESIZED_EXPRESSION:
            inner = self._operand(expression)
            return self.static_type_of(inner) if inner is not None else None
        if kind is NodeKind.TYPE_CAST:
            return self.declared_type(expression)
        if kind is NodeKind.ASSIGNMENT_EXPRESSION:
            left = tree.child(expression, "left")
            return self.static_type_of(left) if left is not None else None
        if kind is NodeKind.BINARY_EXPRESSION:
            return self._binary_type(expression)
        if kind is NodeKind.PREFIX_EXPRESSION:
            operand = tree.child(expression, "operand") or self._operand(expression)
            operand_type = self.static_type_of(operand) if operand is not None else None
            if operand_type is None:
                return None
            operator = tree.text(tree.child(expression, "operator") or expression)
            if operator == "!":
                return BOOLEAN
            if operator in ("-", "+", "~"):
                return unary_promotion(operand_type)
            return operand_type
        if kind is NodeKind.POSTFIX_EXPRESSION:
            operand = self._operand(expression)
            return self.static_type_of(operand) if operand is not None else None
        if kind is NodeKind.CONDITIONAL_EXPRESSION:
            return self._conditional_type(expression)
        if kind is NodeKind.INSTANCEOF_EXPRESSION:
            return BOOLEAN
        if kind is NodeKind.NEW_EXPRESSION:
            type_node = tree.child(expression, "type")
            if type_node is None:
                return None
            name = normalize_type_name(tree.text(type_node))
            if tree.raw(expression) == "array_creation_expression":
                depth = sum(1 for c in tree.children(expression) if tree.raw(c) == "dimensions_expr")
                depth += sum(tree.text(c).count("[") for c in tree.children(expression) if tree.raw(c) == "dimensions")
                return ResolvedType(name + "[]" * depth)
            return ResolvedType(name)
        if kind is NodeKind.THIS_EXPRESSION:
            return self._qualifier_type(expression)
        if kind is NodeKind.ARRAY_ACCESS:
            array = tree.child(expression, "array")
            array_type = self.static_type_of(array) if array is not None else None
            return array_type.component() if array_type is not None else None
        if kind is NodeKind.CLASS_LITERAL:
            return ResolvedType("Class")
        return None

    def _binary_type(self, expression: NodeRef) -> ResolvedType | None:
        tree = self._tree
        operator_node = tree.child(expression, "operator")
        left = tree.child(expression, "left")
        right = tree.child(expression, "right")
        if operator_node is None or left is None or right is None:
            return None
        operator = tree.text(operator_node)
        if operator in _COMPARISON_OPERATORS:
            return BOOLEAN
        left_type = self.static_type_of(left)
        right_type = self.static_type_of(right)
        if left_type is None or right_type is None:
            return None
        if operator == "+" and STRING in (left_type, right_type):
            return STRING
        if operator in _SHIFT_OPERATORS:
            return unary_promotion(left_type)
        if operator in _BITWISE_OPERATORS and left_type.unboxed() == BOOLEAN and right_type.unboxed() == BOOLEAN:
            return BOOLEAN
        return binary_promotion(left_type, right_type)

    def _conditional_type(self, expression: NodeRef) -> ResolvedType | None:
        tree = self._tree
        consequence = tree.child(expression, "consequence")
        alternative = tree.child(expression, "alternative")
        if consequence is None or alternative is None:
            return None
        a = self.static_type_of(consequence)
        b = self.static_type_of(alternative)
        if a is None or b is None:
            return None
        if a == b:
            return a
        if a.is_null or b.is_null:
            other = b if a.is_null else a
            return other.boxed()
        if a.unboxed() == b.unboxed():
            return a.unboxed()
        if a.unboxed().is_numeric and b.unboxed().is_numeric:
            return binary_promotion(a, b)
        return None
