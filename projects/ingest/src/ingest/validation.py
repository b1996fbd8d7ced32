"""Checks on Django model source, independent of importing it."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, NamedTuple

from ingest.scanner import CLASS_PATTERN, logical_lines, strip_comments

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ingest.scanner import Statement

REQUIRED_IMPORT = "from django.db import models"
MODEL_CLASS_PATTERN = re.compile(r"class\s+\w+\s*\([^)]*models\.Model[^)]*\)\s*:")

MISSING_IMPORT = f"Missing required import: {REQUIRED_IMPORT}"
NO_MODELS = "No Django models found. Models must inherit from models.Model"


class ValidationResult(NamedTuple):
    """Outcome of validating model source."""

    valid: bool
    errors: list[str]


def indentation_errors(statements: Sequence[Statement]) -> list[str]:
    """Mixed tabs and spaces, empty class bodies and stray dedents."""
    errors: list[str] = []
    levels = [0]

    for index, statement in enumerate(statements):
        if " " in statement.prefix and "\t" in statement.prefix:
            errors.append(f"Line {statement.line}: indentation mixes tabs and spaces")

        indent = statement.indent
        if indent > levels[-1]:
            levels.append(indent)
        else:
            while indent < levels[-1]:
                levels.pop()
            if indent != levels[-1]:
                errors.append(
                    f"Line {statement.line}: unindent does not match any outer "
                    "indentation level",
                )
                levels.append(indent)

        if match := CLASS_PATTERN.match(statement.text):
            following = statements[index + 1] if index + 1 < len(statements) else None
            header_only = statement.text.endswith(":")
            if header_only and (following is None or following.indent <= indent):
                errors.append(
                    f"Line {statement.line}: class {match.group(1)} has no "
                    "indented body",
                )
    return errors


def validate_django_models(content: str) -> ValidationResult:
    """Report problems with model source as human-readable messages.

    The importer does not depend on this; callers decide whether to import
    source that fails validation.
    """
    code = "\n".join(strip_comments(content))
    errors: list[str] = []
    if REQUIRED_IMPORT not in code:
        errors.append(MISSING_IMPORT)
    if not MODEL_CLASS_PATTERN.search(code):
        errors.append(NO_MODELS)
    errors.extend(indentation_errors(logical_lines(content)))
    return ValidationResult(valid=not errors, errors=errors)
