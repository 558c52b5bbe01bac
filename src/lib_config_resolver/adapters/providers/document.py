"""Document provider.

Purpose
-------
Implement the :class:`lib_config_resolver.application.ports.Provider` protocol
for structured documents read from a file path or an in-memory buffer. Parsing
is delegated to :mod:`lib_config_resolver.adapters.parsers.structured`.

Key behaviours
--------------
* Files are read on every ``fetch()``; nothing is cached on the instance.
* A missing *optional* file yields an empty fragment; a missing *required* one
  raises :class:`NotFound`.
* Unreadable files raise :class:`PermissionDenied` (other I/O errors a plain
  :class:`SourceError`); malformed content raises
  :class:`ParseFailure`.
"""

from __future__ import annotations

from pathlib import Path
from typing import Mapping

from ...application.ports import DocumentParser
from ...domain.errors import NotFound, PermissionDenied, SourceError
from ...observability import log_debug
from ..parsers.structured import parse_document, parser_for


class DocumentProvider:
    """Provide a fragment parsed from a YAML/JSON/TOML document.

    Use the :meth:`file` and :meth:`buffer` constructors rather than calling
    the initialiser directly.

    Examples
    --------
    >>> provider = DocumentProvider.buffer(b"service:\\n  timeout: 5\\n", name="inline")
    >>> provider.name
    'buffer:inline'
    >>> provider.fetch()
    {'service': {'timeout': 5}}
    """

    def __init__(
        self,
        *,
        name: str,
        parser: DocumentParser,
        path: Path | None = None,
        data: bytes | None = None,
        required: bool = True,
    ) -> None:
        if (path is None) == (data is None):
            raise ValueError("exactly one of path or data must be given")
        self.name = name
        self.source = str(path) if path is not None else name
        self.required = required
        self._parser = parser
        self._path = path
        self._data = data

    @classmethod
    def file(
        cls,
        path: str | Path,
        *,
        required: bool = True,
        format: str | None = None,
        parser: DocumentParser | None = None,
    ) -> DocumentProvider:
        """Read the document at *path* on each fetch.

        Parameters
        ----------
        path:
            File location; the suffix selects the parser unless *format* or
            *parser* is given.
        required:
            Whether absence is an error (:class:`NotFound`) or an empty fragment.
        format:
            Explicit format name (``"yaml"``, ``"json"``, ``"toml"``).
        parser:
            Custom parser overriding format detection.
        """

        file_path = Path(path)
        chosen = parser or parser_for(format, path=str(file_path))
        return cls(name=f"file:{file_path}", parser=chosen, path=file_path, required=required)

    @classmethod
    def buffer(
        cls,
        data: bytes | str,
        *,
        name: str,
        format: str = "yaml",
        parser: DocumentParser | None = None,
    ) -> DocumentProvider:
        """Parse an in-memory document labelled *name*."""

        payload = data.encode("utf-8") if isinstance(data, str) else bytes(data)
        return cls(name=f"buffer:{name}", parser=parser or parser_for(format), data=payload)

    def fetch(self) -> Mapping[str, object]:
        """Return the parsed document, or ``{}`` when an optional file is absent."""

        payload = self._read()
        if payload is None:
            return {}
        return parse_document(payload, source=self.source, parser=self._parser)

    def _read(self) -> bytes | None:
        if self._path is None:
            return self._data
        try:
            payload = self._path.read_bytes()
        except (FileNotFoundError, NotADirectoryError):
            if self.required:
                raise NotFound(f"configuration file not found: {self._path}") from None
            log_debug("document_absent", provider=self.name, source=self.source)
            return None
        except PermissionError as exc:
            raise PermissionDenied(f"cannot read configuration file {self._path}: {exc.strerror}") from exc
        except OSError as exc:
            raise SourceError(f"cannot read configuration file {self._path}: {exc.strerror or exc}") from exc
        log_debug("document_read", provider=self.name, source=self.source, size=len(payload))
        return payload
