import logging

from dotenv import load_dotenv
load_dotenv()

from dataclasses import asdict
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from adapters.cir_adapter import CirAdapter
from codegen import config
from codegen.diagnostics import Diagnostics
from codegen.generator import GeneratorOptions
from codegen.output import (
    CodeGenerator,
    FileAlreadyExistsError,
    FileCodeGenerator,
    InMemoryCodeGenerator,
)
from codegen.processor import PreferencesProcessor, symbols_with_annotation, validate_symbol
from codegen.validator import Invalid, PreferenceProperty
from symbols.graph import SymbolGraph

logging.basicConfig(level=config.LOG_LEVEL)

app = FastAPI(title="Preferences Code Generator (CIR -> Kotlin)")
cir_adapter = CirAdapter()


class CirRequest(BaseModel):
    cir: Dict[str, Any]  # expects { "nodes": [...], "edges": [...] }


class GenerateRequest(CirRequest):
    invalid_property_policy: Optional[str] = None   # "omit" | "emit" | "abort"
    escape_literals: Optional[bool] = None
    write_to_disk: bool = False


class GeneratedFileOut(BaseModel):
    namespace: str
    name: str
    path: str
    content: str
    dependencies: Dict[str, Any]


class DiagnosticOut(BaseModel):
    severity: str
    message: str
    symbol: Optional[str] = None


class GenerateResponse(BaseModel):
    files: List[GeneratedFileOut]
    diagnostics: List[DiagnosticOut]
    deferred: List[str]


class PropertyValidationOut(BaseModel):
    holder: str
    property: str
    valid: bool
    error: Optional[str] = None


class ValidateResponse(BaseModel):
    results: List[PropertyValidationOut]
    deferred: List[str]


def _build_graph(cir: Dict[str, Any]) -> SymbolGraph:
    try:
        return cir_adapter.build_symbol_graph(cir)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Invalid CIR: {e}")


@app.get("/health")
def health():
    return {"ok": True}


@app.post("/generate", response_model=GenerateResponse)
def generate(req: GenerateRequest):
    graph = _build_graph(req.cir)

    overrides: Dict[str, Any] = {}
    if req.invalid_property_policy is not None:
        overrides["invalid_property_policy"] = req.invalid_property_policy.lower().strip()
    if req.escape_literals is not None:
        overrides["escape_literals"] = req.escape_literals
    try:
        options = GeneratorOptions(**overrides)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    code_generator: CodeGenerator = (
        FileCodeGenerator(config.OUTPUT_DIR) if req.write_to_disk else InMemoryCodeGenerator()
    )
    diagnostics = Diagnostics()

    try:
        deferred = PreferencesProcessor(code_generator, diagnostics, options).process(graph)
    except FileAlreadyExistsError as e:
        raise HTTPException(status_code=409, detail=f"Generated file already exists: {e}")

    return GenerateResponse(
        files=[
            GeneratedFileOut(
                namespace=f.namespace,
                name=f.name,
                path=f.path,
                content=f.content,
                dependencies=asdict(f.dependencies),
            )
            for f in code_generator.files
        ],
        diagnostics=[DiagnosticOut(**d) for d in diagnostics.to_json()],
        deferred=[t.qualified_name for t in deferred],
    )


@app.post("/validate", response_model=ValidateResponse)
def validate(req: CirRequest):
    graph = _build_graph(req.cir)

    results: List[PropertyValidationOut] = []
    deferred: List[str] = []
    for holder in symbols_with_annotation(graph, config.PREFERENCES_ANNOTATION):
        if not validate_symbol(graph, holder):
            deferred.append(holder.qualified_name)
            continue
        if holder.kind != "interface":
            # /generate ignores these with a warning
            continue

        for prop in graph.declared_properties(holder):
            preference = PreferenceProperty.try_create_from(graph, holder, prop)
            if preference is None:
                continue
            result = preference.run_validation()
            results.append(
                PropertyValidationOut(
                    holder=holder.qualified_name,
                    property=prop.name,
                    valid=not isinstance(result, Invalid),
                    error=result.error if isinstance(result, Invalid) else None,
                )
            )

    return ValidateResponse(results=results, deferred=deferred)


@app.post("/symbols")
def symbol_graph(req: CirRequest):
    graph = _build_graph(req.cir)
    return graph.to_debug_json()
