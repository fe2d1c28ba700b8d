from __future__ import annotations

from dataclasses import dataclass
from functools import cached_property
from typing import Optional, Union

from codegen import config
from symbols.graph import SymbolGraph
from symbols.model import Annotation, Property, TypeDecl, TypeRef


@dataclass(frozen=True)
class PreferenceAnnotationArgs:
    key: str
    default: str
    converter: TypeDecl


@dataclass(frozen=True)
class Success:
    pass


@dataclass(frozen=True)
class Invalid:
    error: str


ValidationResult = Union[Success, Invalid]

SUCCESS = Success()


class PreferenceProperty:
    """
    View over a holder property that carries the Preference annotation.
    Resolves the converter, the declared type and the annotation arguments
    from the symbol graph; never instantiates or calls the converter.
    """
    def __init__(
        self,
        graph: SymbolGraph,
        holder: TypeDecl,
        prop: Property,
        annotation: Annotation,
    ) -> None:
        self.graph = graph
        self.holder = holder
        self.property = prop
        self.annotation = annotation

    @classmethod
    def try_create_from(
        cls, graph: SymbolGraph, holder: TypeDecl, prop: Property
    ) -> Optional["PreferenceProperty"]:
        annotation = prop.find_annotation(config.PREFERENCE_ANNOTATION)
        if annotation is None:
            return None
        return cls(graph, holder, prop, annotation)

    @property
    def name(self) -> str:
        return self.property.name

    @property
    def qualified_name(self) -> str:
        return f"{self.holder.qualified_name}.{self.property.name}"

    @property
    def property_type(self) -> TypeRef:
        return self.property.type

    @cached_property
    def type_name(self) -> str:
        return self.property_type.render()

    @cached_property
    def annotation_args(self) -> PreferenceAnnotationArgs:
        args = self.annotation.arguments
        converter_name = args.get("converter") or config.STRING_CONVERTER_TYPE
        converter = self.graph.find_type(converter_name)
        if converter is None:
            raise LookupError(f"Unresolved converter {converter_name} on {self.qualified_name}")

        return PreferenceAnnotationArgs(
            key=args["key"],
            default=args["default"],
            converter=converter,
        )

    # ---------------- Validation ----------------

    def run_validation(self) -> ValidationResult:
        for check in (
            self._run_converter_declaration_validation,
            self._run_converter_type_validation,
        ):
            result = check()
            if isinstance(result, Invalid):
                return result
        return SUCCESS

    def _run_converter_declaration_validation(self) -> ValidationResult:
        converter = self.annotation_args.converter
        if self._has_no_arg_constructor(converter):
            return SUCCESS
        return Invalid(f"{converter.qualified_name} does not have a no-arg constructor")

    def _run_converter_type_validation(self) -> ValidationResult:
        if self.graph.is_assignable_from(self.property_type, self._converter_type_param()):
            return SUCCESS
        return Invalid(
            "Preference property's type and converter do not "
            f"match on property {self.qualified_name}"
        )

    def _has_no_arg_constructor(self, converter: TypeDecl) -> bool:
        constructors = self.graph.constructors(converter)
        if not constructors:
            # only classes get an implicit default constructor
            return converter.kind == "class"
        return any(not self.graph.parameters(c) for c in constructors)

    def _converter_type_param(self) -> TypeRef:
        """
        The converter's value type, read from its parse() return type.
        """
        parse = self.graph.find_declared_function(self.annotation_args.converter, "parse")
        if parse.return_type is None:
            raise LookupError(f"{self.annotation_args.converter.qualified_name}.parse has no return type")
        return parse.return_type
