from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING

from files2prompt.config import EXT2LANG, DocumentRecord, OutputFormat

if TYPE_CHECKING:
    from collections.abc import Callable

    from files2prompt.walker import RunState

    Writer = Callable[[str], None]


def add_line_numbers(content: str) -> str:
    """Prefix every line with its 1-based number.

    Numbers are left-padded with spaces to the width of the line count and
    followed by two spaces.

    Args:
        content (str): the text to number

    Returns:
        str: the numbered text, lines joined with ``\\n``
    """
    lines = content.split("\n")
    width = len(str(len(lines)))
    return "\n".join(f"{i:>{width}}  {line}" for i, line in enumerate(lines, start=1))


def fence_for(content: str) -> str:
    """Return the shortest backtick fence (at least three) absent from `content`."""
    fence = "```"
    while fence in content:
        fence += "`"
    return fence


def language_for(path: str) -> str:
    """Get the code fence language for a path from its extension, or ``""``."""
    return EXT2LANG.get(Path(path).suffix.lower(), "")


def write_multiline(writer: Writer, content: str) -> None:
    """Send `content` to the writer one line at a time."""
    for line in content.split("\n"):
        writer(line)


def render_default(writer: Writer, doc: DocumentRecord) -> None:
    content = add_line_numbers(doc.content) if doc.line_numbers else doc.content
    writer(doc.source)
    writer("---")
    write_multiline(writer, content)
    writer("")
    writer("---")


def render_xml(writer: Writer, doc: DocumentRecord) -> None:
    # Path and content are written verbatim, without escaping.
    content = add_line_numbers(doc.content) if doc.line_numbers else doc.content
    writer(f'<document index="{doc.index}">')
    writer(f"<source>{doc.source}</source>")
    writer("<document_content>")
    write_multiline(writer, content)
    writer("</document_content>")
    writer("</document>")


def render_markdown(writer: Writer, doc: DocumentRecord) -> None:
    fence = fence_for(doc.content)
    content = add_line_numbers(doc.content) if doc.line_numbers else doc.content
    writer(doc.source)
    writer(f"{fence}{language_for(doc.source)}")
    write_multiline(writer, content)
    writer(fence)


def render_json(writer: Writer, doc: DocumentRecord) -> None:
    content = add_line_numbers(doc.content) if doc.line_numbers else doc.content
    writer(json.dumps({"index": doc.index, "source": doc.source, "content": content}, ensure_ascii=False))


RENDERERS: dict[OutputFormat, Callable[[Writer, DocumentRecord], None]] = {
    OutputFormat.DEFAULT: render_default,
    OutputFormat.XML: render_xml,
    OutputFormat.MARKDOWN: render_markdown,
    OutputFormat.JSON: render_json,
}


class DocumentEmitter:
    """Render documents of one run into a line sink.

    The emitter owns the run wrapper (``<documents>`` for XML, ``[`` ... ``]``
    for JSON) and draws document indices from the shared `RunState`: every
    emitted document consumes exactly one index, whatever the format.

    Args:
        writer: callable invoked once per output line
        output_format: the rendering mode of the run
        state: run-scoped counters
        line_numbers: prefix content lines with their number
    """

    def __init__(
        self,
        writer: Writer,
        output_format: OutputFormat,
        state: RunState,
        *,
        line_numbers: bool = False,
    ) -> None:
        self.writer = writer
        self.output_format = OutputFormat(output_format)
        self.state = state
        self.line_numbers = line_numbers
        self._first_in_array = True

    def begin(self) -> None:
        """Open the run wrapper, if the format has one."""
        self._first_in_array = True
        if self.output_format is OutputFormat.XML:
            self.writer("<documents>")
        elif self.output_format is OutputFormat.JSON:
            self.writer("[")

    def end(self) -> None:
        """Close the run wrapper, if the format has one."""
        if self.output_format is OutputFormat.XML:
            self.writer("</documents>")
        elif self.output_format is OutputFormat.JSON:
            self.writer("]")

    def emit(self, source: str, content: str) -> DocumentRecord:
        """Render one file and consume one document index.

        Args:
            source (str): the display path
            content (str): the file content

        Returns:
            DocumentRecord: the record that was rendered
        """
        doc = DocumentRecord(
            index=self.state.next_index,
            source=source,
            content=content,
            line_numbers=self.line_numbers,
        )
        if self.output_format is OutputFormat.JSON:
            if not self._first_in_array:
                self.writer(",")
            self._first_in_array = False
        RENDERERS[self.output_format](self.writer, doc)
        self.state.next_index += 1
        return doc
