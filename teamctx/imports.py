"""Extract import statements from TypeScript/JavaScript, Go and Python sources."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from typing import Any, Iterator

_TS_IMPORT_FROM = re.compile(r"""import\s+(?:(?:[\w*{}\s,]+)\s+from\s+)?['"]([^'"]+)['"]""", re.ASCII)
_TS_REQUIRE = re.compile(r"""(?:require|import)\s*\(\s*['"]([^'"]+)['"]\s*\)""", re.ASCII)
_TS_DYNAMIC_IMPORT = re.compile(r"""import\s*\(\s*['"]([^'"]+)['"]\s*\)""", re.ASCII)
_TS_PATTERNS = (_TS_IMPORT_FROM, _TS_REQUIRE, _TS_DYNAMIC_IMPORT)

_GO_SINGLE_IMPORT = re.compile(r'^\s*import\s+"([^"]+)"', re.ASCII)
_GO_BLOCK_IMPORT = re.compile(r'^\s*"([^"]+)"', re.ASCII)

_PY_IMPORT = re.compile(r"^\s*import\s+([\w.]+)", re.ASCII)
_PY_FROM_IMPORT = re.compile(r"^\s*from\s+([\w.]+)\s+import", re.ASCII)

_TS_EXTENSIONS = frozenset({".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs"})

_PYTHON_STDLIB = frozenset(
    {
        "os", "sys", "json", "re", "math", "datetime", "collections", "itertools",
        "functools", "typing", "pathlib", "io", "abc", "enum", "dataclasses",
        "logging", "unittest", "http", "urllib", "asyncio", "subprocess", "threading",
    }
)


@dataclass
class ImportResult:
    """One import found in a source file."""

    source: str = ""
    imported: str = ""
    import_type: str = ""
    raw: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "source": self.source,
            "imported": self.imported,
            "import_type": self.import_type,
            "raw": self.raw,
        }


def _extension(path: str) -> str:
    """Return the suffix from the last dot of the final path element, dot included."""
    separators = "/" + (os.sep if os.sep != "/" else "")
    for index in range(len(path) - 1, -1, -1):
        char = path[index]
        if char in separators:
            break
        if char == ".":
            return path[index:]
    return ""


def _lines(text: str) -> Iterator[str]:
    for line in text.split("\n"):
        yield line[:-1] if line.endswith("\r") else line


def scan_file(file_path: str) -> list[ImportResult]:
    """Read a source file and return the imports it declares."""
    with open(file_path, encoding="utf-8", errors="replace") as handle:
        text = handle.read()
    return scan_text(text, file_path, _extension(file_path))


def scan_text(text: str, source: str, extension: str) -> list[ImportResult]:
    """Return the imports in source text, chosen by file extension."""
    ext = extension.lower()
    if ext == ".go":
        return _scan_go(text, source)
    if ext == ".py":
        return _scan_python(text, source)
    return _scan_typescript(text, source)


def _scan_typescript(text: str, source: str) -> list[ImportResult]:
    results: list[ImportResult] = []
    seen: set[str] = set()
    for line in _lines(text):
        for pattern in _TS_PATTERNS:
            for match in pattern.finditer(line):
                imported = match.group(1)
                if imported in seen:
                    continue
                seen.add(imported)
                resolved = resolve_relative(source, imported) if imported.startswith(".") else imported
                results.append(
                    ImportResult(
                        source=source,
                        imported=resolved,
                        import_type=classify_ts_import(imported),
                        raw=line.strip(),
                    )
                )
    return results


def _scan_go(text: str, source: str) -> list[ImportResult]:
    results: list[ImportResult] = []
    seen: set[str] = set()
    in_block = False

    def add(imported: str, raw: str) -> None:
        if imported not in seen:
            seen.add(imported)
            results.append(
                ImportResult(
                    source=source,
                    imported=imported,
                    import_type=classify_go_import(imported),
                    raw=raw,
                )
            )

    for line in _lines(text):
        trimmed = line.strip()
        single = _GO_SINGLE_IMPORT.match(line)
        if single:
            add(single.group(1), trimmed)
            continue
        if trimmed.startswith("import ("):
            in_block = True
            continue
        if in_block and trimmed == ")":
            in_block = False
            continue
        if in_block:
            block = _GO_BLOCK_IMPORT.match(line)
            if block:
                add(block.group(1), trimmed)
    return results


def _scan_python(text: str, source: str) -> list[ImportResult]:
    results: list[ImportResult] = []
    seen: set[str] = set()
    for line in _lines(text):
        from_match = _PY_FROM_IMPORT.match(line)
        if from_match:
            imported = from_match.group(1)
            if imported not in seen:
                seen.add(imported)
                resolved = resolve_relative(source, imported) if imported.startswith(".") else imported
                results.append(
                    ImportResult(
                        source=source,
                        imported=resolved,
                        import_type=classify_python_import(imported),
                        raw=line.strip(),
                    )
                )
            continue
        import_match = _PY_IMPORT.match(line)
        if import_match:
            imported = import_match.group(1)
            if imported not in seen:
                seen.add(imported)
                results.append(
                    ImportResult(
                        source=source,
                        imported=imported,
                        import_type=classify_python_import(imported),
                        raw=line.strip(),
                    )
                )
    return results


def classify_ts_import(imported: str) -> str:
    """Classify a TypeScript/JavaScript import as relative or package."""
    if imported.startswith("."):
        return "relative"
    is_scoped = imported.startswith("@")
    is_bare = "/" not in imported
    is_vendored = "node_modules" in imported
    if is_scoped or is_bare or is_vendored:
        return "package"
    # Non-relative paths with slashes are package subpaths as well.
    return "package"


def classify_go_import(imported: str) -> str:
    """Classify a Go import; standard-library paths carry no dot."""
    if "." not in imported:
        return "builtin"
    return "package"


def classify_python_import(imported: str) -> str:
    """Classify a Python import as relative, builtin or package."""
    if imported.startswith("."):
        return "relative"
    if imported.split(".")[0] in _PYTHON_STDLIB:
        return "builtin"
    return "package"


def resolve_relative(source: str, imported: str) -> str:
    """Resolve a relative import against the directory of the importing file."""
    directory = os.path.dirname(source) or "."
    return os.path.normpath(os.path.join(directory, imported))