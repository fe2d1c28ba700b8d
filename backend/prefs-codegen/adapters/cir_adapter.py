from typing import Any, Callable, Dict, List, Optional, Tuple

from codegen import config
from symbols.graph import SymbolGraph
from symbols.model import (
    DECL_KINDS,
    Annotation,
    Function,
    Parameter,
    Property,
    TypeDecl,
    TypeRef,
)


class CirAdapter:
    """
    CIR JSON → SymbolGraph builder.
    Accepts the {nodes, edges} document produced by a front-end:
      - nodes: TypeDecl, Property, Function, Parameter
      - edges: HAS_PROPERTY, HAS_FUNCTION, PARAM_OF, INHERITS, IMPLEMENTS

    Also registers the built-in types the generator relies on (kotlin.Any,
    kotlin.String, PreferenceConverter and the identity StringConverter)
    unless the document declares them itself.

    Malformed documents raise ValueError.
    """

    # edge type -> (source node kind, destination node kind)
    EDGE_KINDS: Dict[str, Tuple[str, str]] = {
        "HAS_PROPERTY": ("TypeDecl", "Property"),
        "HAS_FUNCTION": ("TypeDecl", "Function"),
        "PARAM_OF": ("Parameter", "Function"),
        "INHERITS": ("TypeDecl", "TypeDecl"),
        "IMPLEMENTS": ("TypeDecl", "TypeDecl"),
    }

    # ---------------- Type references ----------------

    def parse_type_ref(self, value: Any) -> TypeRef:
        """
        Accepts "kotlin.String?", "kotlin.collections.List<kotlin.String>"
        or {"name": ..., "nullable": ..., "arguments": [...]}.
        A missing reference yields an unnamed (unresolved) TypeRef.
        """
        if value is None:
            return TypeRef("")
        if isinstance(value, TypeRef):
            return value
        if isinstance(value, str):
            return self._parse_type_text(value.strip())
        if isinstance(value, dict):
            name = value.get("name", value.get("qualified_name"))
            if not isinstance(name, str):
                raise ValueError(f"Type reference without a name: {value!r}")
            arguments = value.get("arguments") or []
            if not isinstance(arguments, list):
                raise ValueError(f"Type arguments must be a list: {value!r}")
            return TypeRef(
                qualified_name=name.strip(),
                nullable=bool(value.get("nullable", False)),
                arguments=tuple(self.parse_type_ref(a) for a in arguments),
            )
        raise ValueError(f"Unsupported type reference: {value!r}")

    def _parse_type_text(self, text: str) -> TypeRef:
        nullable = text.endswith("?")
        if nullable:
            text = text[:-1].rstrip()

        if "<" not in text:
            if ">" in text or "," in text:
                raise ValueError(f"Malformed type reference: {text!r}")
            return TypeRef(text, nullable)

        if not text.endswith(">"):
            raise ValueError(f"Malformed type reference: {text!r}")

        open_at = text.index("<")
        name = text[:open_at].strip()
        inner = text[open_at + 1:-1]
        arguments = tuple(self._parse_type_text(p.strip()) for p in self._split_type_arguments(inner))
        return TypeRef(name, nullable, arguments)

    def _split_type_arguments(self, inner: str) -> List[str]:
        parts: List[str] = []
        depth = 0
        start = 0
        for i, ch in enumerate(inner):
            if ch == "<":
                depth += 1
            elif ch == ">":
                depth -= 1
                if depth < 0:
                    raise ValueError(f"Unbalanced type arguments: {inner!r}")
            elif ch == "," and depth == 0:
                parts.append(inner[start:i])
                start = i + 1
        if depth != 0:
            raise ValueError(f"Unbalanced type arguments: {inner!r}")
        parts.append(inner[start:])
        if any(not p.strip() for p in parts):
            raise ValueError(f"Empty type argument in: {inner!r}")
        return parts

    # ---------------- Node builders ----------------

    def _annotations(self, raw: Any) -> Tuple[Annotation, ...]:
        if raw is None:
            return ()
        if not isinstance(raw, list):
            raise ValueError("annotations must be a list")

        out: List[Annotation] = []
        for a in raw:
            type_name = a.get("type") if isinstance(a, dict) else None
            if not isinstance(type_name, str) or not type_name:
                raise ValueError(f"Annotation without a type: {a!r}")
            arguments = a.get("arguments") or {}
            if not isinstance(arguments, dict):
                raise ValueError(f"Annotation arguments must be an object: {a!r}")
            out.append(Annotation(type_name=type_name, arguments=dict(arguments)))
        return tuple(out)

    def _name(self, node_id: str, attrs: Dict[str, Any]) -> str:
        name = attrs.get("name")
        if not isinstance(name, str) or not name:
            raise ValueError(f"Node {node_id} has no name")
        return name

    def _type_decl(self, node_id: str, attrs: Dict[str, Any]) -> TypeDecl:
        name = self._name(node_id, attrs)
        package = attrs.get("package") or None
        qualified_name = attrs.get("qualified_name") or (f"{package}.{name}" if package else name)

        kind = (attrs.get("kind") or "class").lower()
        if kind not in DECL_KINDS:
            raise ValueError(f"Unsupported declaration kind for {node_id}: {kind}")

        return TypeDecl(
            id=node_id,
            name=name,
            qualified_name=qualified_name,
            kind=kind,
            package=package,
            source_file=attrs.get("source_file"),
            annotations=self._annotations(attrs.get("annotations")),
        )

    def _property(self, node_id: str, attrs: Dict[str, Any]) -> Property:
        return Property(
            id=node_id,
            name=self._name(node_id, attrs),
            type=self.parse_type_ref(attrs.get("type")),
            mutable=bool(attrs.get("mutable", True)),
            annotations=self._annotations(attrs.get("annotations")),
        )

    def _function(self, node_id: str, attrs: Dict[str, Any]) -> Function:
        return_type = attrs.get("return_type")
        return Function(
            id=node_id,
            name=self._name(node_id, attrs),
            return_type=self.parse_type_ref(return_type) if return_type is not None else None,
            is_constructor=bool(attrs.get("is_constructor", False)),
        )

    def _parameter(self, node_id: str, attrs: Dict[str, Any]) -> Parameter:
        return Parameter(
            id=node_id,
            name=self._name(node_id, attrs),
            type=self.parse_type_ref(attrs.get("type")),
            has_default=bool(attrs.get("has_default", False)),
        )

    def _node_builder(self, kind: Any) -> Optional[Callable[[str, Dict[str, Any]], Any]]:
        return {
            "TypeDecl": self._type_decl,
            "Property": self._property,
            "Function": self._function,
            "Parameter": self._parameter,
        }.get(kind)

    # ---------------- Entry point ----------------

    def build_symbol_graph(self, cir: Dict[str, Any]) -> SymbolGraph:
        if not isinstance(cir, dict):
            raise ValueError("CIR must be an object with 'nodes' and 'edges'")

        nodes = cir.get("nodes", [])
        edges = cir.get("edges", [])
        if not isinstance(nodes, list) or not isinstance(edges, list):
            raise ValueError("CIR 'nodes' and 'edges' must be lists")

        graph = SymbolGraph()

        for n in nodes:
            if not isinstance(n, dict):
                raise ValueError(f"Malformed CIR node: {n!r}")
            node_id = n.get("id")
            kind = n.get("kind")
            if not isinstance(node_id, str) or not node_id:
                raise ValueError(f"CIR node without an id: {n!r}")
            if graph.has_node(node_id):
                raise ValueError(f"Duplicate CIR node id: {node_id}")

            builder = self._node_builder(kind)
            if builder is None:
                raise ValueError(f"Unsupported CIR node kind for {node_id}: {kind}")
            graph.add_node(node_id, kind, builder(node_id, n.get("attrs") or {}))

        self._register_builtins(graph)

        for e in edges:
            if not isinstance(e, dict):
                raise ValueError(f"Malformed CIR edge: {e!r}")
            src = e.get("src")
            dst = e.get("dst")
            etype = e.get("type")

            expected = self.EDGE_KINDS.get(etype)
            if expected is None:
                raise ValueError(f"Unsupported CIR edge type: {etype}")
            if not graph.has_node(src) or not graph.has_node(dst):
                raise ValueError(f"{etype} edge references an unknown node: {src} -> {dst}")
            if (graph.node_kind(src), graph.node_kind(dst)) != expected:
                raise ValueError(
                    f"{etype} edge must connect {expected[0]} -> {expected[1]}: {src} -> {dst}"
                )

            graph.add_edge(src, dst, etype)

        return graph

    # ---------------- Built-ins ----------------

    def _add_builtin_type(self, graph: SymbolGraph, qualified_name: str, kind: str) -> Optional[TypeDecl]:
        node_id = f"type:{qualified_name}"
        if graph.find_type(qualified_name) is not None or graph.has_node(node_id):
            return None

        package, _, name = qualified_name.rpartition(".")
        decl = TypeDecl(
            id=node_id,
            name=name,
            qualified_name=qualified_name,
            kind=kind,
            package=package or None,
        )
        graph.add_node(node_id, "TypeDecl", decl)
        return decl

    def _register_builtins(self, graph: SymbolGraph) -> None:
        self._add_builtin_type(graph, "kotlin.Any", "class")
        self._add_builtin_type(graph, "kotlin.String", "class")
        self._add_builtin_type(graph, config.PREFERENCE_CONVERTER_TYPE, "interface")

        converter = self._add_builtin_type(graph, config.STRING_CONVERTER_TYPE, "class")
        if converter is None:
            return

        converter_interface = graph.find_type(config.PREFERENCE_CONVERTER_TYPE)
        if converter_interface is not None:
            graph.add_edge(converter.id, converter_interface.id, "IMPLEMENTS")

        string = TypeRef("kotlin.String")
        for fname in ("parse", "format"):
            fid = f"fun:{converter.qualified_name}:{fname}"
            graph.add_node(fid, "Function", Function(id=fid, name=fname, return_type=string))
            graph.add_edge(converter.id, fid, "HAS_FUNCTION")

            pid = f"param:{converter.qualified_name}:{fname}:value"
            graph.add_node(pid, "Parameter", Parameter(id=pid, name="value", type=string))
            graph.add_edge(pid, fid, "PARAM_OF")
