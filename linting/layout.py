#!/usr/bin/env python
"""Enforce module layout rules for the tasklimiter package.

Rules (top-level statements only):
- If ``__all__`` exists it is a single literal assignment and the last statement.
- At most one non-dataclass class per module.
- At most 300 code lines per module (blank, comment-only and docstring lines
  are not counted; barrel ``__init__.py`` files are exempt).
"""

from __future__ import annotations

import ast
import sys
import argparse
import tokenize
from pathlib import Path

CODE_LINE_LIMIT = 300

ROOT = Path(__file__).resolve().parents[1]
DEFAULT_DIRS = ("tasklimiter", "tests")


def _is_all_target(node: ast.AST) -> bool:
    return isinstance(node, ast.Name) and node.id == "__all__"


def _is_canonical_all(node: ast.stmt) -> bool:
    if isinstance(node, ast.Assign):
        return len(node.targets) == 1 and _is_all_target(node.targets[0])
    if isinstance(node, ast.AnnAssign):
        return _is_all_target(node.target) and node.value is not None
    return False


def _mutates_all(node: ast.stmt) -> bool:
    if isinstance(node, ast.AugAssign):
        return _is_all_target(node.target)
    if isinstance(node, ast.Expr) and isinstance(node.value, ast.Call):
        func = node.value.func
        return isinstance(func, ast.Attribute) and _is_all_target(func.value)
    return False


def check_all_placement(tree: ast.Module, rel: Path) -> list[str]:
    assigns = [idx for idx, node in enumerate(tree.body) if _is_canonical_all(node)]
    mutations = [node for node in tree.body if _mutates_all(node)]
    if not assigns and not mutations:
        return []

    violations = [f"  {rel}:{node.lineno} `__all__` must not be mutated" for node in mutations]
    if len(assigns) != 1:
        violations.append(f"  {rel}: `__all__` must be assigned exactly once (found {len(assigns)})")
        return violations

    for node in tree.body[assigns[0] + 1 :]:
        violations.append(f"  {rel}:{node.lineno} {type(node).__name__} after `__all__`")
    return violations


def _is_dataclass(node: ast.ClassDef) -> bool:
    for decorator in node.decorator_list:
        target = decorator.func if isinstance(decorator, ast.Call) else decorator
        if isinstance(target, ast.Name) and target.id == "dataclass":
            return True
        if isinstance(target, ast.Attribute) and target.attr == "dataclass":
            return True
    return False


def check_one_class(tree: ast.Module, rel: Path) -> list[str]:
    classes = [node.name for node in tree.body if isinstance(node, ast.ClassDef) and not _is_dataclass(node)]
    if len(classes) <= 1:
        return []
    return [f"  {rel}: {len(classes)} classes ({', '.join(classes)})"]


def _is_barrel_init(path: Path, tree: ast.Module) -> bool:
    if path.name != "__init__.py":
        return False
    for node in tree.body:
        if isinstance(node, (ast.Import, ast.ImportFrom, ast.Pass)):
            continue
        if _is_canonical_all(node):
            continue
        if isinstance(node, ast.Expr) and isinstance(node.value, ast.Constant):
            continue
        return False
    return True


def _uncounted_lines(path: Path, tree: ast.Module) -> set[int]:
    lines: set[int] = set()
    try:
        with path.open("rb") as f:
            for tok in tokenize.tokenize(f.readline):
                if tok.type == tokenize.COMMENT:
                    lines.add(tok.start[0])
    except tokenize.TokenError:
        pass

    for node in ast.walk(tree):
        if not isinstance(node, (ast.Module, ast.FunctionDef, ast.AsyncFunctionDef, ast.ClassDef)):
            continue
        first = node.body[0] if node.body else None
        if isinstance(first, ast.Expr) and isinstance(first.value, ast.Constant):
            lines.update(range(first.lineno, (first.end_lineno or first.lineno) + 1))
    return lines


def check_length(path: Path, tree: ast.Module, source: str, rel: Path) -> list[str]:
    if _is_barrel_init(path, tree):
        return []
    skip = _uncounted_lines(path, tree)
    count = sum(1 for i, line in enumerate(source.splitlines(), start=1) if line.strip() and i not in skip)
    if count <= CODE_LINE_LIMIT:
        return []
    return [f"  {rel}: {count} code lines (limit {CODE_LINE_LIMIT})"]


def collect_violations(path: Path, root: Path) -> list[str]:
    try:
        source = path.read_text(encoding="utf-8")
        tree = ast.parse(source, filename=str(path))
    except (OSError, UnicodeDecodeError, SyntaxError):
        return []

    rel = path.relative_to(root)
    return [
        *check_all_placement(tree, rel),
        *check_one_class(tree, rel),
        *check_length(path, tree, source, rel),
    ]


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Check tasklimiter module layout rules.")
    parser.add_argument("--dirs", nargs="+", default=list(DEFAULT_DIRS), help="Directories to scan")
    parser.add_argument("--root", default=str(ROOT), help="Project root (default: repo root)")
    args = parser.parse_args(argv)

    root = Path(args.root).resolve()
    violations: list[str] = []
    for d in args.dirs:
        scan_dir = (root / d).resolve()
        if not scan_dir.is_dir():
            continue
        for py_file in sorted(scan_dir.rglob("*.py")):
            if "__pycache__" in py_file.parts:
                continue
            violations.extend(collect_violations(py_file, root))

    if violations:
        print("Layout violations:", file=sys.stderr)
        for violation in violations:
            print(violation, file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
