from __future__ import annotations

import logging
from typing import List, Optional

from codegen import config
from codegen.diagnostics import Diagnostics
from codegen.generator import GeneratorOptions, PreferencesHolderGenerator
from codegen.output import CodeGenerator
from symbols.graph import SymbolGraph
from symbols.model import TypeDecl

logger = logging.getLogger(__name__)


def symbols_with_annotation(graph: SymbolGraph, annotation: str) -> List[TypeDecl]:
    return [t for t in graph.type_decls() if t.find_annotation(annotation) is not None]


def validate_symbol(graph: SymbolGraph, holder: TypeDecl) -> bool:
    """
    True when everything the generator will read from `holder` resolves:
    property types are named, and every Preference annotation has string
    key/default arguments and a converter known to the graph.
    """
    for prop in graph.declared_properties(holder):
        if not prop.type.qualified_name:
            return False

        annotation = prop.find_annotation(config.PREFERENCE_ANNOTATION)
        if annotation is None:
            continue

        args = annotation.arguments
        if not isinstance(args.get("key"), str) or not isinstance(args.get("default"), str):
            return False

        converter = args.get("converter") or config.STRING_CONVERTER_TYPE
        if not isinstance(converter, str) or graph.find_type(converter) is None:
            return False

    return True


class PreferencesProcessor:
    """
    One generation pass over a symbol graph: every consistent holder is
    generated independently, inconsistent ones are returned as deferred.
    """

    def __init__(
        self,
        code_generator: CodeGenerator,
        diagnostics: Diagnostics,
        options: Optional[GeneratorOptions] = None,
    ) -> None:
        self.code_generator = code_generator
        self.diagnostics = diagnostics
        self.options = options or GeneratorOptions()

    def process(self, graph: SymbolGraph) -> List[TypeDecl]:
        symbols = symbols_with_annotation(graph, config.PREFERENCES_ANNOTATION)
        logger.info("Found %d preferences holder(s)", len(symbols))

        deferred: List[TypeDecl] = []
        for holder in symbols:
            if not validate_symbol(graph, holder):
                logger.info("Deferring %s: unresolved references", holder.qualified_name)
                deferred.append(holder)
                continue

            generator = PreferencesHolderGenerator(
                graph, self.code_generator, self.diagnostics, self.options
            )
            generator.generate(holder)

        return deferred
