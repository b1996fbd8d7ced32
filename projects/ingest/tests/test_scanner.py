"""Tests for the Python source scanner."""

from ingest.scanner import (
    Statement,
    find_classes,
    logical_lines,
    scan_line,
    strip_comments,
)


def test_scan_line_strips_comments_outside_strings() -> None:
    """Only a ``#`` outside string literals starts a comment."""
    assert scan_line("x = 1  # one").code == "x = 1"
    assert scan_line('color = "#fff"  # hex').code == 'color = "#fff"'
    assert scan_line('s = "say \\"hi\\" # still text"').code == (
        's = "say \\"hi\\" # still text"'
    )


def test_scan_line_tracks_brackets_and_strings() -> None:
    """Open brackets and triple-quoted strings carry over to the next line."""
    assert scan_line("f(a, [b").depth == 2
    assert scan_line("x = ')'").depth == 0
    assert scan_line('doc = """starts here').open_string == '"""'
    assert scan_line("broken = 'unterminated").open_string is None
    assert scan_line('ends here"""', '"""').open_string is None


def test_strip_comments_keeps_line_count() -> None:
    """Comments go, lines stay, triple-quoted text is untouched."""
    content = 'x = 1  # one\nt = """\n# not a comment\n"""\n# whole line'
    assert strip_comments(content) == [
        "x = 1",
        't = """',
        "# not a comment",
        '"""',
        "",
    ]


def test_logical_lines_join_continuations() -> None:
    """Bracketed continuations become one statement."""
    content = "a = f(\n    1,  # first\n    2,\n)\n\n    b = 3\n"
    assert logical_lines(content) == [
        Statement(1, "", "a = f(\n1,\n2,\n)"),
        Statement(6, "    ", "b = 3"),
    ]


def test_find_classes_bodies() -> None:
    """Bodies end at the next class or def at the same indentation."""
    content = (
        "class Post(models.Model):\n"
        '    """A post."""\n'
        "    title = models.CharField(max_length=10)\n"
        "\n"
        "    def __str__(self):\n"
        "        return self.title\n"
        "\n"
        "    class Meta:\n"
        '        db_table = "posts"\n'
        '        ordering = ["-id"]\n'
        "\n"
        "def helper():\n"
        "    pass\n"
    )
    post, meta = find_classes(logical_lines(content))

    assert post.name == "Post"
    assert post.bases == "models.Model"
    assert post.line == 1
    assert post.docstring == "A post."
    assert [statement.text for statement in post.members] == [
        '"""A post."""',
        "title = models.CharField(max_length=10)",
        "def __str__(self):",
        "class Meta:",
    ]

    nested = post.nested("Meta")
    assert nested is not None
    assert nested.assignments() == {"db_table": '"posts"', "ordering": '["-id"]'}
    assert meta.name == "Meta"
    assert meta.bases == ""
    assert post.nested("Admin") is None


def test_class_without_body() -> None:
    """A class with nothing indented under it has no members."""
    empty, other = find_classes(
        logical_lines("class Empty(Base):\nclass Other:\n    x = 1\n"),
    )
    assert empty.members == []
    assert empty.docstring is None
    assert other.assignments() == {"x": "1"}
