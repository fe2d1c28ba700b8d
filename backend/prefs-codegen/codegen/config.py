from __future__ import annotations

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent

# Annotations recognised on the incoming declarations
PROCESSOR_PACKAGE = "com.johngachihi.preferencesprocessor"
PREFERENCES_ANNOTATION = f"{PROCESSOR_PACKAGE}.Preferences"
PREFERENCE_ANNOTATION = f"{PROCESSOR_PACKAGE}.Preference"

# Converter capability and the identity converter used when none is given
PREFERENCE_CONVERTER_TYPE = f"{PROCESSOR_PACKAGE}.PreferenceConverter"
STRING_CONVERTER_TYPE = f"{PROCESSOR_PACKAGE}.StringConverter"

# Generated code
PREFERENCES_PACKAGE = os.getenv(
    "PREFS_CODEGEN_PACKAGE", f"{PROCESSOR_PACKAGE}.preferences"
)
PREFERENCES_STORE_TYPE = os.getenv(
    "PREFS_CODEGEN_STORE_TYPE", f"{PROCESSOR_PACKAGE}.PreferencesStore"
)
PREF_STORE_ARG_IDENTIFIER = "prefStore"
GENERATED_FILE_EXTENSION = "kt"

# Generation behaviour
INVALID_PROPERTY_POLICY = os.getenv("PREFS_CODEGEN_INVALID_PROPERTY_POLICY", "omit").strip().lower()
ESCAPE_LITERALS = os.getenv("PREFS_CODEGEN_ESCAPE_LITERALS", "false").strip().lower() in ("1", "true", "yes")

OUTPUT_DIR = Path(os.getenv("PREFS_CODEGEN_OUTPUT_DIR") or BASE_DIR / "generated")

LOG_LEVEL = os.getenv("PREFS_CODEGEN_LOG_LEVEL", "INFO").upper()
