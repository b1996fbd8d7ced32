"""Import schemas from Django model source and JSON documents."""

from ingest.main import (
    DjangoModel,
    ImportFormat,
    build_tables,
    django_to_schema,
    import_schema,
    parse_models,
    resolve_relationships,
)
from ingest.validation import ValidationResult, validate_django_models

__all__ = [
    "DjangoModel",
    "ImportFormat",
    "ValidationResult",
    "build_tables",
    "django_to_schema",
    "import_schema",
    "parse_models",
    "resolve_relationships",
    "validate_django_models",
]
