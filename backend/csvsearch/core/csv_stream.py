from __future__ import annotations

import codecs
import logging
from collections import deque
from enum import Enum
from typing import BinaryIO, Deque, Dict, List, Optional

from csvsearch.core.errors import ParseError

log = logging.getLogger("csvsearch.parser")

DEFAULT_CHUNK_SIZE = 64 * 1024
_WS = " \t"


class _State(Enum):
    FIELD_START = 0
    UNQUOTED = 1
    QUOTED = 2
    QUOTE_IN_QUOTED = 3  # saw a quote inside a quoted field: escape or close
    AFTER_QUOTED = 4


class CsvTokenizer:
    """
    Incremental RFC-4180 tokenizer.
    Text can be fed in arbitrary pieces; each `feed` returns the records it completed.
    """

    def __init__(self, delimiter: str = ",", quote: str = '"', trim: bool = True):
        if len(delimiter) != 1 or len(quote) != 1 or delimiter == quote:
            raise ValueError("delimiter and quote must be distinct single characters")
        self.delimiter = delimiter
        self.quote = quote
        self.trim = trim
        self.line = 1
        self._state = _State.FIELD_START
        self._field: List[str] = []
        self._record: List[str] = []
        self._skip_lf = False
        self._prev_cr = False
        self._quote_line = 1

    def feed(self, text: str) -> List[List[str]]:
        out: List[List[str]] = []
        for ch in text:
            if self._skip_lf:
                self._skip_lf = False
                if ch == "\n":
                    continue
            self._step(ch, out)
        return out

    def close(self) -> List[List[str]]:
        out: List[List[str]] = []
        if self._state is _State.QUOTED:
            raise ParseError("unterminated quoted field", line=self._quote_line)
        if self._field or self._record or self._state is not _State.FIELD_START:
            self._end_field()
            self._end_record(out)
        return out

    # ----------------------------------------------------------
    # State machine
    # ----------------------------------------------------------
    def _step(self, ch: str, out: List[List[str]]) -> None:
        state = self._state

        if state is _State.QUOTED:
            if ch == self.quote:
                self._state = _State.QUOTE_IN_QUOTED
                return
            if ch == "\r" or (ch == "\n" and not self._prev_cr):
                self.line += 1
            self._prev_cr = ch == "\r"
            self._field.append(ch)
            return

        if state is _State.QUOTE_IN_QUOTED:
            if ch == self.quote:
                self._field.append(ch)
                self._state = _State.QUOTED
                return
            state = self._state = _State.AFTER_QUOTED

        if ch == self.delimiter:
            self._end_field()
            return

        if ch == "\n" or ch == "\r":
            self._end_field()
            self._end_record(out)
            self._skip_lf = ch == "\r"
            self.line += 1
            return

        if state is _State.AFTER_QUOTED:
            if self.trim and ch in _WS:
                return
            raise ParseError(f"unexpected character {ch!r} after closing quote", line=self.line)

        if ch == self.quote and self._opens_quote():
            self._field.clear()
            self._state = _State.QUOTED
            self._prev_cr = False
            self._quote_line = self.line
            return

        self._field.append(ch)
        self._state = _State.UNQUOTED

    def _opens_quote(self) -> bool:
        if self._state is _State.FIELD_START:
            return True
        # leading whitespace before an opening quote is incidental when trimming
        return self.trim and all(c in _WS for c in self._field)

    def _end_field(self) -> None:
        value = "".join(self._field)
        if self.trim and self._state in (_State.FIELD_START, _State.UNQUOTED):
            value = value.strip(_WS)
        self._record.append(value)
        self._field = []
        self._state = _State.FIELD_START

    def _end_record(self, out: List[List[str]]) -> None:
        out.append(self._record)
        self._record = []
        self._state = _State.FIELD_START


class CsvRowStream:
    """
    Lazy, finite, non-restartable sequence of header-keyed rows read from a byte source.

    The source is only read when the consumer asks for a row and nothing parsed is
    buffered, so a consumer that stops pulling (or pauses the stream) also stops
    the reads. At most one chunk's worth of parsed rows is held in memory.
    """

    def __init__(
        self,
        source: BinaryIO,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        encoding: str = "utf-8-sig",
        trim: bool = True,
        delimiter: str = ",",
    ):
        if chunk_size <= 0:
            raise ValueError(f"Invalid chunk_size: {chunk_size}")
        self._source = source
        self._chunk_size = chunk_size
        self._encoding = encoding
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="strict")
        self._tokenizer = CsvTokenizer(delimiter=delimiter, trim=trim)
        self._pending: Deque[List[str]] = deque()
        self._headers: Optional[List[str]] = None
        self._eof = False
        self._closed = False
        self._paused = False

        self.rows_emitted = 0
        self.chunks_read = 0
        self.bytes_read = 0

    @property
    def paused(self) -> bool:
        return self._paused

    @property
    def closed(self) -> bool:
        return self._closed

    def pause(self) -> None:
        self._paused = True

    def resume(self) -> None:
        self._paused = False

    def close(self) -> None:
        """Stop for good. Buffered rows are dropped and the source is never read again."""
        if not self._closed:
            self._closed = True
            self._pending.clear()
            log.debug("Row stream closed | rows=%d | chunks=%d | bytes=%d",
                      self.rows_emitted, self.chunks_read, self.bytes_read)

    def __iter__(self) -> "CsvRowStream":
        return self

    def __next__(self) -> Dict[str, Optional[str]]:
        if self._closed:
            raise StopIteration
        if self._paused:
            raise RuntimeError("Row stream is paused")
        try:
            while True:
                while self._pending:
                    row = self._to_row(self._pending.popleft())
                    if row is not None:
                        self.rows_emitted += 1
                        return row
                if self._eof:
                    self.close()
                    raise StopIteration
                self._pull()
        except ParseError:
            self.close()
            raise

    # ----------------------------------------------------------
    # Internals
    # ----------------------------------------------------------
    def _pull(self) -> None:
        try:
            chunk = self._source.read(self._chunk_size)
        except (OSError, ValueError) as e:
            raise ParseError(f"Failed to read upload stream: {e}") from e

        if chunk:
            self.chunks_read += 1
            self.bytes_read += len(chunk)
        try:
            text = self._decoder.decode(chunk or b"", final=not chunk)
        except UnicodeDecodeError as e:
            raise ParseError(f"Input is not valid {self._encoding}: {e.reason}") from e

        self._pending.extend(self._tokenizer.feed(text))
        if not chunk:
            self._eof = True
            self._pending.extend(self._tokenizer.close())

    def _to_row(self, record: List[str]) -> Optional[Dict[str, Optional[str]]]:
        # whitespace-only rows are skipped whether or not the cells were quoted
        if all(not cell.strip() for cell in record):
            return None

        if self._headers is None:
            seen, dupes = set(), []
            for name in record:
                if name in seen and name not in dupes:
                    dupes.append(name)
                seen.add(name)
            if dupes:
                raise ParseError(f"Duplicate header(s): {', '.join(dupes)}")
            self._headers = record
            return None

        width = len(self._headers)
        if len(record) > width:
            raise ParseError(
                f"Row {self.rows_emitted + 1} has {len(record)} columns but the header has {width}"
            )
        return {h: (record[i] if i < len(record) else None) for i, h in enumerate(self._headers)}
