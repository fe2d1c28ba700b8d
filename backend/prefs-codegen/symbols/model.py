from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Literal, Optional, Tuple

DeclKind = Literal["class", "interface", "object", "enum", "annotation"]

DECL_KINDS: Tuple[str, ...] = ("class", "interface", "object", "enum", "annotation")


@dataclass(frozen=True)
class TypeRef:
    qualified_name: str
    nullable: bool = False
    arguments: Tuple["TypeRef", ...] = ()

    def render(self) -> str:
        """Kotlin type text, e.g. kotlin.collections.List<kotlin.String>?"""
        text = self.qualified_name
        if self.arguments:
            text += "<" + ", ".join(a.render() for a in self.arguments) + ">"
        if self.nullable:
            text += "?"
        return text

    def __str__(self) -> str:
        return self.render()


@dataclass(frozen=True)
class Annotation:
    type_name: str                       # qualified name of the annotation class
    arguments: Dict[str, Any] = field(default_factory=dict, hash=False)


@dataclass
class TypeDecl:
    id: str
    name: str
    qualified_name: str
    kind: DeclKind = "class"
    package: Optional[str] = None
    source_file: Optional[str] = None
    annotations: Tuple[Annotation, ...] = ()

    def find_annotation(self, type_name: str) -> Optional[Annotation]:
        return next((a for a in self.annotations if a.type_name == type_name), None)


@dataclass
class Property:
    id: str
    name: str
    type: TypeRef
    mutable: bool = True
    annotations: Tuple[Annotation, ...] = ()

    def find_annotation(self, type_name: str) -> Optional[Annotation]:
        return next((a for a in self.annotations if a.type_name == type_name), None)


@dataclass
class Function:
    id: str
    name: str
    return_type: Optional[TypeRef] = None   # None for constructors and Unit functions
    is_constructor: bool = False


@dataclass
class Parameter:
    id: str
    name: str
    type: TypeRef
    has_default: bool = False
