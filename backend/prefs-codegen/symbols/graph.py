from __future__ import annotations

import dataclasses
from typing import Any, Dict, List, Optional, Set

import networkx as nx # type: ignore

from symbols.model import Function, Parameter, Property, TypeDecl, TypeRef

ANY_TYPE = "kotlin.Any"

SUPERTYPE_EDGES = {"INHERITS", "IMPLEMENTS"}


class SymbolGraph:
    """
    Typed multi-graph of the declarations seen in one generation pass.
    Nodes: TypeDecl, Property, Function, Parameter
    Edges: HAS_PROPERTY, HAS_FUNCTION, PARAM_OF (parameter -> function),
           INHERITS, IMPLEMENTS

    Edge insertion order is declaration order, so declared_properties()
    returns properties in the order they appear in source.
    """
    def __init__(self) -> None:
        self.g = nx.MultiDiGraph()
        self._types_by_name: Dict[str, str] = {}

    def add_node(self, node_id: str, kind: str, payload: Any) -> None:
        self.g.add_node(node_id, kind=kind, payload=payload)
        if kind == "TypeDecl":
            self._types_by_name[payload.qualified_name] = node_id

    def add_edge(self, src: str, dst: str, etype: str) -> None:
        self.g.add_edge(src, dst, etype=etype)

    def has_node(self, node_id: str) -> bool:
        return self.g.has_node(node_id)

    def node_kind(self, node_id: str) -> Optional[str]:
        return self.g.nodes[node_id].get("kind")

    def payload(self, node_id: str) -> Any:
        return self.g.nodes[node_id]["payload"]

    # ---------------- Lookups ----------------

    def type_decls(self) -> List[TypeDecl]:
        return [
            data["payload"]
            for _, data in self.g.nodes(data=True)
            if data.get("kind") == "TypeDecl"
        ]

    def find_type(self, qualified_name: str) -> Optional[TypeDecl]:
        node_id = self._types_by_name.get(qualified_name)
        return self.payload(node_id) if node_id else None

    def _targets(self, src: str, etype: str) -> List[Any]:
        return [
            self.payload(dst)
            for _, dst, data in self.g.out_edges(src, data=True)
            if data.get("etype") == etype
        ]

    def declared_properties(self, type_decl: TypeDecl) -> List[Property]:
        return self._targets(type_decl.id, "HAS_PROPERTY")

    def declared_functions(self, type_decl: TypeDecl) -> List[Function]:
        return [f for f in self._targets(type_decl.id, "HAS_FUNCTION") if not f.is_constructor]

    def constructors(self, type_decl: TypeDecl) -> List[Function]:
        return [f for f in self._targets(type_decl.id, "HAS_FUNCTION") if f.is_constructor]

    def parameters(self, function: Function) -> List[Parameter]:
        return [
            self.payload(src)
            for src, _, data in self.g.in_edges(function.id, data=True)
            if data.get("etype") == "PARAM_OF"
        ]

    def find_declared_function(self, type_decl: TypeDecl, name: str) -> Function:
        for f in self.declared_functions(type_decl):
            if f.name == name:
                return f
        raise LookupError(f"{type_decl.qualified_name} declares no function named '{name}'")

    # ---------------- Type relations ----------------

    def supertypes(self, type_decl: TypeDecl) -> Set[str]:
        """Qualified names of every transitive supertype of type_decl."""
        view = nx.subgraph_view(
            self.g,
            filter_edge=lambda u, v, k: self.g.edges[u, v, k].get("etype") in SUPERTYPE_EDGES,
        )
        return {self.payload(n).qualified_name for n in nx.descendants(view, type_decl.id)}

    def is_assignable_from(self, target: TypeRef, source: TypeRef) -> bool:
        """
        True when a value of `source` may be used where `target` is expected.
        Covers identity, nullability widening and declared supertypes.

        INHERITS/IMPLEMENTS edges carry no type arguments, so a generic target
        reached through a supertype is only accepted when both references
        carry identical arguments.
        """
        if source.nullable and not target.nullable:
            return False

        if target.qualified_name == ANY_TYPE:
            return True

        if source.qualified_name == target.qualified_name:
            return not target.arguments or target.arguments == source.arguments

        if target.arguments and target.arguments != source.arguments:
            return False

        source_decl = self.find_type(source.qualified_name)
        if source_decl is None:
            return False

        return target.qualified_name in self.supertypes(source_decl)

    # ---------------- Debug view ----------------

    def to_debug_json(self) -> Dict[str, Any]:
        """
        Nodes with their payload flattened to plain dicts, and typed edges,
        in insertion order. Used by the /symbols endpoint.
        """
        return {
            "nodes": [
                {"id": node_id, "kind": kind, "attrs": dataclasses.asdict(payload)}
                for node_id, kind, payload in (
                    (n, d.get("kind"), d.get("payload")) for n, d in self.g.nodes(data=True)
                )
            ],
            "edges": [
                {"src": src, "dst": dst, "type": etype}
                for src, dst, etype in self.g.edges(data="etype")
            ],
        }
