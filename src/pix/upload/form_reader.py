"""Streaming multipart reader for upload requests.

The ``image`` file part is written straight into the tmp directory while it
arrives; only the ``client_id``, ``spoiler`` and ``op`` fields are kept.
Every other part is skipped.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass, field

from python_multipart.exceptions import MultipartParseError
from python_multipart.multipart import MultipartParser, parse_options_header

from ..media.temp_media_store import PersistedUpload, TempMediaStore, WorkingFile
from .upload_errors import ClientInputError

logger = logging.getLogger(__name__)

IMAGE_FIELD = "image"
VALID_FIELDS = frozenset({"client_id", "spoiler", "op"})


@dataclass(slots=True)
class ParsedForm:
    fields: dict[str, str] = field(default_factory=dict)
    image: PersistedUpload | None = None
    filename: str | None = None


class UploadFormReader:
    def __init__(
        self,
        temp_store: TempMediaStore,
        *,
        max_field_bytes: int,
        on_field: Callable[[str, str], None] | None = None,
    ) -> None:
        self.temp_store = temp_store
        self.max_field_bytes = max_field_bytes
        self.on_field = on_field
        self.form = ParsedForm()
        self._field_bytes = 0
        self._reset_part()

    def _reset_part(self) -> None:
        self._header_field = b""
        self._header_value = b""
        self._headers: dict[bytes, bytes] = {}
        self._part_name: str | None = None
        self._part_filename: str | None = None
        self._part_data = bytearray()
        self._sink: WorkingFile | None = None

    async def read(self, chunks: AsyncIterator[bytes], content_type: str) -> ParsedForm:
        media_type, options = parse_options_header(content_type)
        boundary = options.get(b"boundary")
        if media_type != b"multipart/form-data" or not boundary:
            raise ClientInputError("Invalid upload.")

        parser = MultipartParser(
            boundary,
            {
                "on_part_begin": self._reset_part,
                "on_header_field": self._on_header_field,
                "on_header_value": self._on_header_value,
                "on_header_end": self._on_header_end,
                "on_headers_finished": self._on_headers_finished,
                "on_part_data": self._on_part_data,
                "on_part_end": self._on_part_end,
            },
        )
        try:
            async for chunk in chunks:
                parser.write(chunk)
            parser.finalize()
        except MultipartParseError as exc:
            logger.error("upload.form.parse_failed", extra={"error": str(exc)})
            raise ClientInputError("Invalid upload.") from exc
        finally:
            if self._sink is not None:
                self._sink.discard()
                self._sink = None
        return self.form

    def _on_header_field(self, data: bytes, start: int, end: int) -> None:
        self._header_field += data[start:end]

    def _on_header_value(self, data: bytes, start: int, end: int) -> None:
        self._header_value += data[start:end]

    def _on_header_end(self) -> None:
        self._headers[self._header_field.lower()] = self._header_value
        self._header_field = b""
        self._header_value = b""

    def _on_headers_finished(self) -> None:
        _, options = parse_options_header(self._headers.get(b"content-disposition", b""))
        name = options.get(b"name", b"").decode("latin-1")
        filename = options.get(b"filename")
        if filename is not None:
            if name == IMAGE_FIELD and self.form.image is None:
                self._part_filename = filename.decode("utf-8", errors="replace")
                self._sink = self.temp_store.open_working_file()
        elif name in VALID_FIELDS:
            self._part_name = name

    def _on_part_data(self, data: bytes, start: int, end: int) -> None:
        chunk = data[start:end]
        if self._sink is not None:
            self._sink.write(chunk)
        elif self._part_name is not None:
            self._field_bytes += len(chunk)
            if self._field_bytes > self.max_field_bytes:
                raise ClientInputError("Invalid upload.")
            self._part_data += chunk

    def _on_part_end(self) -> None:
        if self._sink is not None:
            self.form.image = self._sink.close()
            self.form.filename = self._part_filename
            self._sink = None
        elif self._part_name is not None:
            value = bytes(self._part_data).decode("utf-8", errors="replace")
            self.form.fields[self._part_name] = value
            if self.on_field is not None:
                self.on_field(self._part_name, value)
