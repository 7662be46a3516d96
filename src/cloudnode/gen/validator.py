"""Validates generated source files for syntax and structural correctness."""

import ast


class GenerationError(Exception):
    """Generated source failed validation."""

    def __init__(self, errors: dict[str, str]):
        self.errors = errors
        super().__init__("; ".join(f"{name}: {msg}" for name, msg in errors.items()))


def validate_python(files: dict[str, str]) -> dict[str, str]:
    """Check Python files for syntax errors.

    Returns dict of {filename: error_message} for files with errors.
    """
    errors = {}
    for filename, content in files.items():
        if not filename.endswith(".py"):
            continue
        if not content.strip():
            continue
        try:
            ast.parse(content, filename=filename)
        except SyntaxError as e:
            errors[filename] = f"SyntaxError: {e.msg} (line {e.lineno})"
    return errors


def validate_definitions(filename: str, content: str, expected: list[str]) -> dict[str, str]:
    """Check that a module defines every expected top-level name.

    Classes and plain assignments count. Returns dict of
    {filename: error_message} if any name is missing.
    """
    tree = ast.parse(content, filename=filename)
    defined = set()
    for node in tree.body:
        if isinstance(node, ast.ClassDef):
            defined.add(node.name)
        elif isinstance(node, ast.Assign):
            defined.update(t.id for t in node.targets if isinstance(t, ast.Name))
    missing = [name for name in expected if name not in defined]
    if missing:
        return {filename: f"missing definitions: {', '.join(missing)}"}
    return {}


def validate_files(files: dict[str, str], expected: dict[str, list[str]]) -> dict[str, str]:
    """Run all validations on generated files.

    Definitions are only checked for files that parse.
    """
    errors = validate_python(files)
    for filename, names in expected.items():
        if filename in files and filename not in errors:
            errors.update(validate_definitions(filename, files[filename], names))
    return errors
