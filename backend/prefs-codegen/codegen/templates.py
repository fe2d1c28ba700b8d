from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

# Kotlin string-literal escapes, backslash first
_KOTLIN_ESCAPES = (
    ("\\", "\\\\"),
    ('"', '\\"'),
    ("$", "\\$"),
    ("\n", "\\n"),
    ("\r", "\\r"),
    ("\t", "\\t"),
)


def escape_kotlin_string(value: str) -> str:
    for raw, escaped in _KOTLIN_ESCAPES:
        value = value.replace(raw, escaped)
    return value


@dataclass(frozen=True)
class AccessorContext:
    name: str
    declared_type: str            # rendered Kotlin type text
    key: str
    default: str
    converter: str                # converter qualified name
    store_param: str


def render_preamble(package_name: str, class_name: str, store_param: str, store_type: str) -> str:
    return (
        f"package {package_name}\n"
        f"\n"
        f"class {class_name}(\n"
        f"    private val {store_param}: {store_type}\n"
        f") {{\n"
    )


def render_accessor(ctx: AccessorContext, escape_literals: bool = False) -> str:
    """
    One `var` with a getter reading through the store (falling back to the
    literal default) and a setter writing back through the converter.
    """
    key = escape_kotlin_string(ctx.key) if escape_literals else ctx.key
    default = escape_kotlin_string(ctx.default) if escape_literals else ctx.default
    store = ctx.store_param

    lines = [
        f"    var {ctx.name}: {ctx.declared_type}",
        f"        get() {{",
        f"            val converter = {ctx.converter}()",
        f"            val rawValue = {store}.read(\"{key}\")",
        f"                ?: \"{default}\"",
        f"            return converter.parse(rawValue)",
        f"        }}",
        f"        set(value) {{",
        f"            val converter = {ctx.converter}()",
        f"            val rawValue = converter.format(value)",
        f"            {store}.write(\"{key}\", rawValue)",
        f"        }}",
    ]
    return "\n".join(lines) + "\n"


def render_closing() -> str:
    return "}\n"


def render_holder(
    package_name: str,
    class_name: str,
    store_param: str,
    store_type: str,
    accessors: Iterable[str],
) -> str:
    return (
        render_preamble(package_name, class_name, store_param, store_type)
        + "".join(accessors)
        + render_closing()
    )
