"""
Purpose:
- Pull-based streaming reader for multipart/form-data request bodies.
- Wraps python-multipart's push parser so callers can write:

      async for field in reader.fields():
          async for chunk in field.chunks():
              ...

Notes:
- Body chunks are fed to the parser only when the caller asks for more, so a
  field's bytes are never buffered ahead of the consumer beyond one network chunk.
- Parser errors, client disconnects and a body that ends inside a part all
  surface as MultipartReadError.
"""

from __future__ import annotations
from collections import deque
from typing import AsyncIterable, AsyncIterator, Deque, Dict, Optional, Tuple

from python_multipart import MultipartParser
from python_multipart.exceptions import MultipartParseError
from python_multipart.multipart import parse_options_header
from starlette.requests import ClientDisconnect

PART_BEGIN = "begin"
PART_DATA = "data"
PART_END = "end"

class MultipartReadError(Exception):
    pass

class NotMultipartError(ValueError):
    pass

class FormField:
    def __init__(self, reader: "MultipartReader", headers: Dict[str, str]):
        self.headers = headers
        _, params = parse_options_header(headers.get("content-disposition", ""))
        self.name = params.get(b"name", b"").decode("latin-1")
        filename = params.get(b"filename")
        self.filename = filename.decode("latin-1") if filename is not None else None
        self.content_type = headers.get("content-type")
        self._reader = reader
        self._done = False

    async def chunks(self) -> AsyncIterator[bytes]:
        """Yield this field's payload in arrival order (never empty chunks)."""
        while not self._done:
            event = await self._reader._next_event()
            if event is None:
                raise MultipartReadError(f"body ended inside field {self.name!r}")
            kind, payload = event
            if kind == PART_DATA:
                yield payload
            elif kind == PART_END:
                self._done = True

class MultipartReader:
    def __init__(self, boundary: bytes, body: AsyncIterable[bytes]):
        self._body = body.__aiter__()
        self._events: Deque[Tuple[str, object]] = deque()
        self._eof = False
        self._header_field = b""
        self._header_value = b""
        self._headers: Dict[str, str] = {}
        callbacks = {
            "on_part_begin": self._on_part_begin,
            "on_part_data": self._on_part_data,
            "on_part_end": self._on_part_end,
            "on_header_field": self._on_header_field,
            "on_header_value": self._on_header_value,
            "on_header_end": self._on_header_end,
            "on_headers_finished": self._on_headers_finished,
        }
        self._parser = MultipartParser(boundary, callbacks)

    @classmethod
    def from_content_type(cls, content_type: Optional[str], body: AsyncIterable[bytes]) -> "MultipartReader":
        ctype, params = parse_options_header(content_type or "")
        boundary = params.get(b"boundary")
        if ctype != b"multipart/form-data" or not boundary:
            raise NotMultipartError(f"not a multipart/form-data request: {content_type!r}")
        return cls(boundary, body)

    async def fields(self) -> AsyncIterator[FormField]:
        """
        Yield fields in order. Anything a caller leaves unread in one field is
        skipped before the next field is yielded.
        """
        while True:
            event = await self._next_event()
            if event is None:
                return
            kind, payload = event
            if kind == PART_BEGIN:
                yield FormField(self, payload)

    # ---- parser callbacks ----
    def _on_part_begin(self) -> None:
        self._headers = {}

    def _on_part_data(self, data: bytes, start: int, end: int) -> None:
        if end > start:
            self._events.append((PART_DATA, bytes(data[start:end])))

    def _on_part_end(self) -> None:
        self._events.append((PART_END, None))

    def _on_header_field(self, data: bytes, start: int, end: int) -> None:
        self._header_field += data[start:end]

    def _on_header_value(self, data: bytes, start: int, end: int) -> None:
        self._header_value += data[start:end]

    def _on_header_end(self) -> None:
        name = self._header_field.decode("latin-1").lower()
        self._headers[name] = self._header_value.decode("latin-1")
        self._header_field = b""
        self._header_value = b""

    def _on_headers_finished(self) -> None:
        self._events.append((PART_BEGIN, self._headers))

    # ---- pump ----
    async def _next_event(self) -> Optional[Tuple[str, object]]:
        while not self._events:
            if self._eof:
                return None
            await self._pump()
        return self._events.popleft()

    async def _pump(self) -> None:
        try:
            chunk = await self._body.__anext__()
        except StopAsyncIteration:
            self._eof = True
            self._parser.finalize()
            return
        except ClientDisconnect as e:
            raise MultipartReadError("client disconnected") from e
        if not chunk:
            return
        try:
            self._parser.write(chunk)
        except MultipartParseError as e:
            raise MultipartReadError(str(e)) from e
