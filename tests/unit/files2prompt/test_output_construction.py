from __future__ import annotations

import json

import pytest

from files2prompt.config import OutputFormat
from files2prompt.output_construction import DocumentEmitter, add_line_numbers, fence_for, language_for
from files2prompt.walker import RunState


def make_emitter(
    output_format: OutputFormat,
    state: RunState | None = None,
    *,
    line_numbers: bool = False,
) -> tuple[DocumentEmitter, list[str]]:
    lines: list[str] = []
    emitter = DocumentEmitter(lines.append, output_format, state or RunState(), line_numbers=line_numbers)
    return emitter, lines


@pytest.mark.unit
def test_add_line_numbers_single_line() -> None:
    assert add_line_numbers("hello") == "1  hello"


@pytest.mark.unit
def test_add_line_numbers_pads_to_line_count_width() -> None:
    lines = add_line_numbers("\n".join("abcdefghij")).split("\n")

    assert lines[0] == " 1  a"
    assert lines[9] == "10  j"


@pytest.mark.unit
def test_add_line_numbers_counts_trailing_empty_line() -> None:
    assert add_line_numbers("a\n") == "1  a\n2  "


@pytest.mark.unit
@pytest.mark.parametrize(
    ("content", "fence"),
    [
        ("no backticks", "```"),
        ("inline `code` only", "```"),
        ("```python\nx = 1\n```", "````"),
        ("````\nnested\n````", "`````"),
    ],
)
def test_fence_for_grows_until_absent(content: str, fence: str) -> None:
    assert fence_for(content) == fence


@pytest.mark.unit
def test_language_for_known_and_unknown_extensions() -> None:
    assert language_for("src/app.py") == "python"
    assert language_for("web/INDEX.TS") == "typescript"
    assert not language_for("Makefile")
    assert not language_for("notes.unknown")


@pytest.mark.unit
def test_default_format_layout() -> None:
    emitter, lines = make_emitter(OutputFormat.DEFAULT)

    emitter.emit("path/to/file.py", "print('hi')")

    assert "\n".join(lines) + "\n" == "path/to/file.py\n---\nprint('hi')\n\n---\n"


@pytest.mark.unit
def test_markdown_uses_language_and_fences() -> None:
    emitter, lines = make_emitter(OutputFormat.MARKDOWN)

    emitter.emit("/tmp/example.ts", "const x = 1;\n")

    assert lines == ["/tmp/example.ts", "```typescript", "const x = 1;", "", "```"]


@pytest.mark.unit
def test_markdown_fence_avoids_collision_with_content() -> None:
    emitter, lines = make_emitter(OutputFormat.MARKDOWN)

    emitter.emit("README", "```\ncode\n```")

    assert lines[1] == "````"
    assert lines[-1] == "````"


@pytest.mark.unit
def test_xml_wraps_run_and_indexes_documents() -> None:
    emitter, lines = make_emitter(OutputFormat.XML)

    emitter.begin()
    emitter.emit("a.txt", "A")
    emitter.emit("b.txt", "B")
    emitter.end()

    assert lines == [
        "<documents>",
        '<document index="1">',
        "<source>a.txt</source>",
        "<document_content>",
        "A",
        "</document_content>",
        "</document>",
        '<document index="2">',
        "<source>b.txt</source>",
        "<document_content>",
        "B",
        "</document_content>",
        "</document>",
        "</documents>",
    ]


@pytest.mark.unit
def test_xml_content_is_not_escaped() -> None:
    emitter, lines = make_emitter(OutputFormat.XML)

    emitter.emit("a&b.html", "<p>1 < 2 & 3</p>")

    assert "<source>a&b.html</source>" in lines
    assert "<p>1 < 2 & 3</p>" in lines


@pytest.mark.unit
def test_reset_restarts_indices_and_runs_without_reset_continue() -> None:
    state = RunState()
    first, first_lines = make_emitter(OutputFormat.XML, state)
    second, second_lines = make_emitter(OutputFormat.XML, state)

    first.emit("a.txt", "A")
    second.emit("b.txt", "B")
    state.reset()
    third, third_lines = make_emitter(OutputFormat.XML, state)
    third.emit("c.txt", "C")

    assert first_lines[0] == '<document index="1">'
    assert second_lines[0] == '<document index="2">'
    assert third_lines[0] == '<document index="1">'


@pytest.mark.unit
def test_every_format_consumes_one_index_per_document() -> None:
    state = RunState()
    for fmt in OutputFormat:
        emitter, _ = make_emitter(fmt, state)
        emitter.emit("a.txt", "A")

    assert state.next_index == len(OutputFormat) + 1


@pytest.mark.unit
def test_json_array_framing_with_comma_lines() -> None:
    emitter, lines = make_emitter(OutputFormat.JSON)

    emitter.begin()
    emitter.emit("a.py", "x = 1\ny = 2\n")
    emitter.emit("b.py", "z = 3")
    emitter.end()

    assert lines[0] == "["
    assert lines[2] == ","
    assert lines[-1] == "]"
    assert len(lines) == 5
    assert json.loads("\n".join(lines)) == [
        {"index": 1, "source": "a.py", "content": "x = 1\ny = 2\n"},
        {"index": 2, "source": "b.py", "content": "z = 3"},
    ]


@pytest.mark.unit
def test_json_line_numbers_are_applied_inside_content() -> None:
    emitter, lines = make_emitter(OutputFormat.JSON, line_numbers=True)

    emitter.emit("a.py", "x\ny")

    assert len(lines) == 1
    assert json.loads(lines[0])["content"] == "1  x\n2  y"


@pytest.mark.unit
def test_line_numbers_in_default_format() -> None:
    emitter, lines = make_emitter(OutputFormat.DEFAULT, line_numbers=True)

    emitter.emit("a.py", "x\ny")

    assert lines == ["a.py", "---", "1  x", "2  y", "", "---"]
