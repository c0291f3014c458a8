import ast
from pathlib import Path

_DOCUMENTED = (ast.FunctionDef, ast.AsyncFunctionDef, ast.ClassDef)


def _library_files() -> list[Path]:
    src = Path(__file__).resolve().parents[1] / "src"
    files: list[Path] = []
    for package in ("local_code_runner", "lcr"):
        files.extend(path for path in (src / package).rglob("*.py") if "__pycache__" not in path.parts)
    return sorted(files)


def test_functions_and_classes_have_examples() -> None:
    missing: list[str] = []
    missing_example: list[str] = []

    for file_path in _library_files():
        module = ast.parse(file_path.read_text(encoding="utf-8"))
        for node in ast.walk(module):
            if not isinstance(node, _DOCUMENTED):
                continue
            doc = ast.get_docstring(node)
            location = f"{file_path.name}:{node.lineno}:{node.name}"
            if not doc:
                missing.append(location)
            elif "Example:" not in doc:
                missing_example.append(location)

    assert not missing, "Missing docstrings:\n" + "\n".join(missing)
    assert not missing_example, "Docstrings without Example section:\n" + "\n".join(missing_example)
