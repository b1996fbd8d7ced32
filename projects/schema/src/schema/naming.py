"""Identifier casing rules shared by the code generators."""

from re import split, sub


def pascal_case(name: str) -> str:
    """Convert name to PascalCase, dropping characters invalid in identifiers.

    A leading digit gets an ``N`` prefix so the result starts with a letter.
    """
    result = "".join(
        word[0].upper() + word[1:] for word in split(r"[\W_]+", name) if word
    )
    return f"N{result}" if result[:1].isdigit() else result


def camel_case(name: str) -> str:
    """Convert name to camelCase."""
    return lower_first(pascal_case(name))


def snake_case(name: str) -> str:
    """Convert name to snake_case."""
    name = sub(r"\W+", "_", name).strip("_")
    if name[:1].isdigit():
        name = f"_{name}"
    return sub("([a-z0-9])([A-Z])|([A-Z])([A-Z][a-z])", r"\1\3_\2\4", name).lower()


def lower_first(name: str) -> str:
    """Lower-case the first character only."""
    return name[:1].lower() + name[1:]


def pluralize(name: str) -> str:
    """Naive English plural used for back-reference names.

    Names already ending in "s" are taken to be plural.
    """
    if name.endswith("s"):
        return name
    if name.endswith(("x", "z", "ch", "sh")):
        return f"{name}es"
    if len(name) > 1 and name.endswith("y") and name[-2] not in "aeiou":
        return f"{name[:-1]}ies"
    return f"{name}s"


def unique_name(base: str, used: set[str], suffix: str = "Relation") -> str:
    """Return ``base`` or a suffixed variant not yet in ``used``, and record it."""
    name = base
    if name in used:
        name = f"{base}{suffix}"
    counter = 2
    while name in used:
        name = f"{base}{suffix}{counter}"
        counter += 1
    used.add(name)
    return name


def strip_id_suffix(name: str) -> str:
    """Drop a trailing ``_id``/``Id`` from a foreign key column name."""
    for suffix in ("_id", "Id", "_ID"):
        if name.endswith(suffix) and len(name) > len(suffix):
            return name.removesuffix(suffix)
    return name
