import os
import sys

import pytest

CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.dirname(CURRENT_DIR)
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from adapters.cir_adapter import CirAdapter
from codegen import config
from codegen.diagnostics import Diagnostics
from codegen.generator import GeneratorOptions, PreferencesHolderGenerator
from codegen.output import (
    Dependencies,
    FileAlreadyExistsError,
    FileCodeGenerator,
    InMemoryCodeGenerator,
)
from codegen.processor import PreferencesProcessor

from cir_fixtures import DURATION_CONVERTER, STORE_TYPE, CirBuilder, preference

PACKAGE = config.PREFERENCES_PACKAGE

CLASS_HOLDER_WARNING = (
    "Defining preferences holder using a class/object is not supported. "
    "The class/object PaymentPreferences will therefore be ignored"
)


def run_pass(builder, options=None, code_generator=None):
    graph = CirAdapter().build_symbol_graph(builder.to_cir())
    code_generator = code_generator or InMemoryCodeGenerator()
    diagnostics = Diagnostics()
    deferred = PreferencesProcessor(code_generator, diagnostics, options).process(graph)
    return code_generator, diagnostics, deferred


def payment_preferences(kind="interface"):
    b = CirBuilder()
    b.add_duration_converter()
    holder_id = b.add_holder("PaymentPreferences", kind=kind)
    b.add_property(holder_id, "paymentLife", "java.time.Duration",
                   annotations=[preference("payment_life_minutes", "20", DURATION_CONVERTER)])
    return b, holder_id


# ---------------- Holders declared with a class or object ----------------

@pytest.mark.parametrize("kind", ["class", "object"])
def test_class_or_object_holder_warns_user(kind):
    b, _ = payment_preferences(kind=kind)

    _, diagnostics, _ = run_pass(b)

    assert diagnostics.warnings == [CLASS_HOLDER_WARNING]
    assert diagnostics.errors == []


@pytest.mark.parametrize("kind", ["class", "object"])
def test_class_or_object_holder_is_ignored(kind):
    b, _ = payment_preferences(kind=kind)

    code_generator, _, _ = run_pass(b)

    assert code_generator.find(PACKAGE, "PaymentPreferences") is None
    assert code_generator.files == []


# ---------------- Holders declared with an interface ----------------

def test_creates_a_file_per_preferences_interface():
    b = CirBuilder()
    b.add_holder("PaymentPreferences")
    b.add_holder("CurrencyPreferences")

    code_generator, diagnostics, _ = run_pass(b)

    assert code_generator.find(PACKAGE, "PaymentPreferences") is not None
    assert code_generator.find(PACKAGE, "CurrencyPreferences") is not None
    assert diagnostics.messages == []


def test_generates_class_injected_with_store():
    b = CirBuilder()
    b.add_holder("PaymentPreferences")

    code_generator, _, _ = run_pass(b)

    generated = code_generator.find(PACKAGE, "PaymentPreferences")
    assert generated.path == "kotlin/" + PACKAGE.replace(".", "/") + "/PaymentPreferences.kt"
    assert generated.content == (
        f"package {PACKAGE}\n"
        "\n"
        "class PaymentPreferences(\n"
        f"    private val prefStore: {STORE_TYPE}\n"
        ") {\n"
        "}\n"
    )


def test_generates_a_var_for_each_preference():
    b = CirBuilder()
    b.add_duration_converter()
    holder_id = b.add_holder("PaymentPreferences")
    b.add_property(holder_id, "paymentLife", "java.time.Duration",
                   annotations=[preference("payment_life_minutes", "20", DURATION_CONVERTER)])
    b.add_property(holder_id, "paymentSessionLife", "java.time.Duration", mutable=False,
                   annotations=[preference("payment_session_life_minutes", "10", DURATION_CONVERTER)])

    code_generator, diagnostics, _ = run_pass(b)

    assert diagnostics.messages == []
    assert code_generator.find(PACKAGE, "PaymentPreferences").content == (
        f"package {PACKAGE}\n"
        "\n"
        "class PaymentPreferences(\n"
        f"    private val prefStore: {STORE_TYPE}\n"
        ") {\n"
        "    var paymentLife: java.time.Duration\n"
        "        get() {\n"
        f"            val converter = {DURATION_CONVERTER}()\n"
        "            val rawValue = prefStore.read(\"payment_life_minutes\")\n"
        "                ?: \"20\"\n"
        "            return converter.parse(rawValue)\n"
        "        }\n"
        "        set(value) {\n"
        f"            val converter = {DURATION_CONVERTER}()\n"
        "            val rawValue = converter.format(value)\n"
        "            prefStore.write(\"payment_life_minutes\", rawValue)\n"
        "        }\n"
        "    var paymentSessionLife: java.time.Duration\n"
        "        get() {\n"
        f"            val converter = {DURATION_CONVERTER}()\n"
        "            val rawValue = prefStore.read(\"payment_session_life_minutes\")\n"
        "                ?: \"10\"\n"
        "            return converter.parse(rawValue)\n"
        "        }\n"
        "        set(value) {\n"
        f"            val converter = {DURATION_CONVERTER}()\n"
        "            val rawValue = converter.format(value)\n"
        "            prefStore.write(\"payment_session_life_minutes\", rawValue)\n"
        "        }\n"
        "}\n"
    )


def test_skips_properties_not_annotated_with_preference():
    b = CirBuilder()
    b.add_duration_converter()
    holder_id = b.add_holder("PaymentPreferences")
    b.add_property(holder_id, "nonPreferenceVar", "kotlin.String")
    b.add_property(holder_id, "paymentLife", "java.time.Duration",
                   annotations=[preference("payment_life_minutes", "20", DURATION_CONVERTER)])

    code_generator, diagnostics, _ = run_pass(b)

    content = code_generator.find(PACKAGE, "PaymentPreferences").content
    assert "nonPreferenceVar" not in content
    assert "    var paymentLife: java.time.Duration\n" in content
    assert diagnostics.messages == []


def test_output_depends_only_on_the_holder_source_file():
    b = CirBuilder()
    b.add_holder("PaymentPreferences", source_file="src/payment.kt")

    code_generator, _, _ = run_pass(b)

    assert code_generator.files[0].dependencies == Dependencies(False, ("src/payment.kt",))


# ---------------- Invalid properties ----------------

def holder_with_one_invalid_property():
    b = CirBuilder()
    b.add_duration_converter()
    holder_id = b.add_holder("PaymentPreferences")
    b.add_property(holder_id, "paymentCurrency", "kotlin.String",
                   annotations=[preference("payment_currency", "KES", DURATION_CONVERTER)])
    b.add_property(holder_id, "paymentLife", "java.time.Duration",
                   annotations=[preference("payment_life_minutes", "20", DURATION_CONVERTER)])
    return b


MISMATCH_ERROR = (
    "Preference property's type and converter do not match "
    "on property PaymentPreferences.paymentCurrency"
)


def test_invalid_property_is_reported_and_omitted():
    code_generator, diagnostics, _ = run_pass(holder_with_one_invalid_property())

    content = code_generator.find(PACKAGE, "PaymentPreferences").content
    assert diagnostics.errors == [MISMATCH_ERROR]
    assert diagnostics.messages[0].symbol == "PaymentPreferences.paymentCurrency"
    assert "paymentCurrency" not in content
    assert "    var paymentLife: java.time.Duration\n" in content


def test_emit_policy_keeps_invalid_property():
    options = GeneratorOptions(invalid_property_policy="emit")

    code_generator, diagnostics, _ = run_pass(holder_with_one_invalid_property(), options)

    content = code_generator.find(PACKAGE, "PaymentPreferences").content
    assert diagnostics.errors == [MISMATCH_ERROR]
    assert "    var paymentCurrency: kotlin.String\n" in content
    assert content.index("paymentCurrency") < content.index("paymentLife")


def test_abort_policy_emits_no_file():
    options = GeneratorOptions(invalid_property_policy="abort")

    code_generator, diagnostics, _ = run_pass(holder_with_one_invalid_property(), options)

    assert diagnostics.errors == [MISMATCH_ERROR]
    assert code_generator.files == []


def test_unknown_policy_is_rejected():
    with pytest.raises(ValueError):
        GeneratorOptions(invalid_property_policy="explode")


def test_escape_literals_option():
    b = CirBuilder()
    holder_id = b.add_holder("GreetingPreferences")
    b.add_property(holder_id, "greeting", "kotlin.String",
                   annotations=[preference("greeting", 'Say "hi"')])

    code_generator, _, _ = run_pass(b, GeneratorOptions(escape_literals=True))

    assert '?: "Say \\"hi\\""' in code_generator.find(PACKAGE, "GreetingPreferences").content


# ---------------- Pass level ----------------

def test_holders_are_processed_independently():
    b = CirBuilder()
    b.add_duration_converter()
    b.add_holder("PaymentPreferences", kind="class")
    holder_id = b.add_holder("CurrencyPreferences")
    b.add_property(holder_id, "currency", "kotlin.String",
                   annotations=[preference("currency", "KES")])

    code_generator, diagnostics, deferred = run_pass(b)

    assert [f.name for f in code_generator.files] == ["CurrencyPreferences"]
    assert diagnostics.warnings == [CLASS_HOLDER_WARNING]
    assert deferred == []


def test_unannotated_interfaces_are_not_generated():
    b = CirBuilder()
    b.add_type("PlainInterface", kind="interface")

    code_generator, diagnostics, _ = run_pass(b)

    assert code_generator.files == []
    assert diagnostics.messages == []


def test_holder_with_unresolved_references_is_deferred():
    b = CirBuilder()
    holder_id = b.add_holder("PaymentPreferences")
    b.add_property(holder_id, "paymentLife", "java.time.Duration",
                   annotations=[preference("payment_life_minutes", "20", "missing.Converter")])
    other_id = b.add_holder("CurrencyPreferences")
    b.add_property(other_id, "currency", None, annotations=[preference("currency", "KES")])
    broken_id = b.add_holder("BrokenPreferences")
    b.add_property(broken_id, "retries", "kotlin.String",
                   annotations=[{"type": "com.johngachihi.preferencesprocessor.Preference",
                                 "arguments": {"key": "retries"}}])

    code_generator, diagnostics, deferred = run_pass(b)

    assert [t.qualified_name for t in deferred] == [
        "PaymentPreferences", "CurrencyPreferences", "BrokenPreferences",
    ]
    assert code_generator.files == []
    assert diagnostics.messages == []


def test_same_holder_name_twice_raises():
    b = CirBuilder()
    b.add_holder("a.PaymentPreferences")
    b.add_holder("b.PaymentPreferences")

    with pytest.raises(FileAlreadyExistsError):
        run_pass(b)


def test_generator_can_be_driven_directly():
    b, _ = payment_preferences()
    graph = CirAdapter().build_symbol_graph(b.to_cir())
    code_generator = InMemoryCodeGenerator()

    PreferencesHolderGenerator(graph, code_generator, Diagnostics()).generate(
        graph.find_type("PaymentPreferences")
    )

    assert len(code_generator.files) == 1


def test_file_code_generator_writes_below_root(tmp_path):
    b, _ = payment_preferences()

    run_pass(b, code_generator=FileCodeGenerator(tmp_path))

    target = tmp_path / "kotlin" / PACKAGE.replace(".", "/") / "PaymentPreferences.kt"
    assert target.exists()
    content = target.read_text(encoding="utf-8")
    assert content.startswith(f"package {PACKAGE}\n")
    assert 'prefStore.read("payment_life_minutes")' in content
