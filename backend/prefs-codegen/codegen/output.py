from __future__ import annotations

import io
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

from codegen import config


class FileAlreadyExistsError(Exception):
    """Raised when a pass creates the same (namespace, name) file twice."""


@dataclass(frozen=True)
class Dependencies:
    """
    Source files a generated file depends on. Non-aggregating outputs only
    need regenerating when one of `sources` changes.
    """
    aggregating: bool
    sources: Tuple[str, ...] = ()


@dataclass
class GeneratedFile:
    namespace: str
    name: str
    path: str
    content: str
    dependencies: Dependencies = field(default_factory=lambda: Dependencies(False))


def relative_path(package_name: str, file_name: str, extension: str) -> str:
    """`kotlin/com/example/Name.kt`"""
    parts = ["kotlin"] + [p for p in package_name.split(".") if p]
    return "/".join(parts + [f"{file_name}.{extension}"])


class OutputHandle:
    """
    Writable byte stream handed out by a CodeGenerator; its content is
    committed on close().
    """
    def __init__(self, on_close: Callable[[bytes], None]) -> None:
        self._buffer = io.BytesIO()
        self._on_close = on_close
        self.closed = False

    def write(self, data: bytes) -> int:
        if self.closed:
            raise ValueError("write to closed output file")
        return self._buffer.write(data)

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self._on_close(self._buffer.getvalue())

    def __enter__(self) -> "OutputHandle":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class CodeGenerator:
    """
    Output sink shared by one generation pass. Subclasses decide where the
    committed bytes go.
    """
    def __init__(self) -> None:
        self.files: List[GeneratedFile] = []
        self._created: Dict[Tuple[str, str], str] = {}

    def create_new_file(
        self,
        dependencies: Dependencies,
        package_name: str,
        file_name: str,
        extension: str = config.GENERATED_FILE_EXTENSION,
    ) -> OutputHandle:
        key = (package_name, file_name)
        if key in self._created:
            raise FileAlreadyExistsError(self._created[key])

        path = relative_path(package_name, file_name, extension)
        self._created[key] = path

        def commit(data: bytes) -> None:
            generated = GeneratedFile(
                namespace=package_name,
                name=file_name,
                path=path,
                content=data.decode("utf-8"),
                dependencies=dependencies,
            )
            self.files.append(generated)
            self._commit(generated)

        return OutputHandle(commit)

    def _commit(self, generated: GeneratedFile) -> None:
        pass

    def find(self, package_name: str, file_name: str) -> Optional[GeneratedFile]:
        for f in self.files:
            if f.namespace == package_name and f.name == file_name:
                return f
        return None


class InMemoryCodeGenerator(CodeGenerator):
    """Keeps generated files in `files` only."""


class FileCodeGenerator(CodeGenerator):
    """Writes generated files below `root`, e.g. root/kotlin/com/example/Name.kt"""
    def __init__(self, root: Path) -> None:
        super().__init__()
        self.root = Path(root)

    def _commit(self, generated: GeneratedFile) -> None:
        target = self.root / generated.path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(generated.content, encoding="utf-8")
