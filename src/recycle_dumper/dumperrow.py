from __future__ import annotations


class RowOverflowError(RuntimeError):
    """A report row grew past the capacity of its RowBuilder."""


class RowBuilder:
    """
    Assemble one report line at a time in a fixed capacity buffer.

    Fields are appended with a trailing separator. A cursor marks the end of
    the row written so far and can be moved back to a captured mark, which
    lets many rows share the fields before that mark without rewriting them:

        builder.write_field(shared)
        mark = builder.mark()
        for value in values:
            builder.rewind(mark)
            builder.write_field(value)
            line = builder.flush()

    A field that does not fit raises RowOverflowError rather than being cut
    short.
    """

    def __init__(
        self,
        capacity: int = 2048,
        *,
        separator: str = ",",
        quote_fields: bool = False,
    ) -> None:
        """
        Initialize an empty RowBuilder.

        Args:
            capacity: The maximum number of characters in a line.

        Keyword Args:
            separator: Written after every field. Defaults to ",".
            quote_fields: Wrap fields holding the separator, a double quote or
                a line break in double quotes. Defaults to False.
        """
        self._capacity = capacity
        self._separator = separator
        self._quote_fields = quote_fields
        self._chunks: list[str] = []
        self._position = 0

    @property
    def position(self) -> int:
        """Return the number of characters written so far."""
        return self._position

    def write_field(self, text: str) -> None:
        """
        Append a field and its separator.

        Raises:
            RowOverflowError: The field would push the line past capacity.
        """
        chunk = self._escape(text) + self._separator
        if self._position + len(chunk) > self._capacity:
            raise RowOverflowError(
                f"Row exceeds {self._capacity} characters while writing {text!r}"
            )

        self._chunks.append(chunk)
        self._position += len(chunk)

    def mark(self) -> int:
        """Capture the current cursor position."""
        return len(self._chunks)

    def rewind(self, mark: int = 0) -> None:
        """Move the cursor back to a captured mark, dropping later fields."""
        if mark > len(self._chunks):
            raise ValueError(f"Mark {mark} is past the cursor")

        del self._chunks[mark:]
        self._position = sum(len(chunk) for chunk in self._chunks)

    def flush(self) -> str:
        """Return the line as built so far. The cursor is left in place."""
        return "".join(self._chunks)

    def _escape(self, text: str) -> str:
        if not self._quote_fields:
            return text

        if any(char in text for char in (self._separator, '"', "\n", "\r")):
            return '"' + text.replace('"', '""') + '"'

        return text
