from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Literal, Optional

from codegen import config
from codegen.diagnostics import Diagnostics
from codegen.output import CodeGenerator, Dependencies
from codegen.templates import AccessorContext, render_accessor, render_holder
from codegen.validator import Invalid, PreferenceProperty
from symbols.graph import SymbolGraph
from symbols.model import TypeDecl

logger = logging.getLogger(__name__)

InvalidPropertyPolicy = Literal["omit", "emit", "abort"]

INVALID_PROPERTY_POLICIES = ("omit", "emit", "abort")


@dataclass
class GeneratorOptions:
    package_name: str = field(default_factory=lambda: config.PREFERENCES_PACKAGE)
    store_type: str = field(default_factory=lambda: config.PREFERENCES_STORE_TYPE)
    store_param: str = config.PREF_STORE_ARG_IDENTIFIER
    invalid_property_policy: InvalidPropertyPolicy = field(
        default_factory=lambda: config.INVALID_PROPERTY_POLICY
    )
    escape_literals: bool = field(default_factory=lambda: config.ESCAPE_LITERALS)

    def __post_init__(self) -> None:
        if self.invalid_property_policy not in INVALID_PROPERTY_POLICIES:
            raise ValueError(f"Unsupported invalid_property_policy: {self.invalid_property_policy}")


class PreferencesHolderGenerator:
    """
    Generates the store-backed companion class for one holder declaration:
      - non-interface holders are reported and skipped
      - unannotated properties are skipped silently
      - properties failing validation are reported as errors and handled
        according to GeneratorOptions.invalid_property_policy
    """

    def __init__(
        self,
        graph: SymbolGraph,
        code_generator: CodeGenerator,
        diagnostics: Diagnostics,
        options: Optional[GeneratorOptions] = None,
    ) -> None:
        self.graph = graph
        self.code_generator = code_generator
        self.diagnostics = diagnostics
        self.options = options or GeneratorOptions()

    def generate(self, holder: TypeDecl) -> None:
        if not self._validate_with_warning(holder):
            return

        accessors: List[str] = []
        for prop in self.graph.declared_properties(holder):
            preference = PreferenceProperty.try_create_from(self.graph, holder, prop)
            if preference is None:
                continue

            result = preference.run_validation()
            if isinstance(result, Invalid):
                self.diagnostics.error(result.error, symbol=preference.qualified_name)
                if self.options.invalid_property_policy == "abort":
                    logger.info("Generation of %s aborted", holder.qualified_name)
                    return
                if self.options.invalid_property_policy == "omit":
                    continue

            accessors.append(self._render_accessor(preference))

        self._write(holder, accessors)

    def _validate_with_warning(self, holder: TypeDecl) -> bool:
        if holder.kind != "interface":
            self.diagnostics.warn(
                "Defining preferences holder using a class/object is not supported. "
                f"The class/object {holder.name} will therefore be ignored",
                symbol=holder.qualified_name,
            )
            return False
        return True

    def _render_accessor(self, preference: PreferenceProperty) -> str:
        args = preference.annotation_args
        ctx = AccessorContext(
            name=preference.name,
            declared_type=preference.type_name,
            key=args.key,
            default=args.default,
            converter=args.converter.qualified_name,
            store_param=self.options.store_param,
        )
        return render_accessor(ctx, escape_literals=self.options.escape_literals)

    def _write(self, holder: TypeDecl, accessors: List[str]) -> None:
        sources = (holder.source_file,) if holder.source_file else ()
        content = render_holder(
            self.options.package_name,
            holder.name,
            self.options.store_param,
            self.options.store_type,
            accessors,
        )
        with self.code_generator.create_new_file(
            Dependencies(False, sources),
            self.options.package_name,
            holder.name,
        ) as output_file:
            output_file.write(content.encode("utf-8"))

        logger.debug(
            "Generated %s.%s with %d accessor(s)",
            self.options.package_name, holder.name, len(accessors),
        )
