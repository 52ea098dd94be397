"""In-memory ZIP packager following the EPUB container layout."""

from __future__ import annotations

import io
import zipfile

from bookexport.adapters.archive.base import AbstractArchive

MIMETYPE_PATH = "mimetype"

# Fixed entry timestamp so identical books produce identical archives
_ENTRY_DATE_TIME = (1980, 1, 1, 0, 0, 0)


class EpubZipArchive(AbstractArchive):
    """ZIP archive whose first entry is an uncompressed ``mimetype``.

    Entries are written straight into an in-memory buffer; ``finalize`` closes
    the central directory and returns the archive bytes. One instance builds
    exactly one archive.
    """

    def __init__(self) -> None:
        self._buffer = io.BytesIO()
        self._zip: zipfile.ZipFile | None = zipfile.ZipFile(self._buffer, mode="w")
        self._paths: list[str] = []

    @property
    def paths(self) -> list[str]:
        """Entry paths written so far, in order."""
        return list(self._paths)

    def add_entry(self, path: str, content: bytes) -> None:
        """Append an entry; ``mimetype`` must come first and is stored.

        Raises:
            ValueError: If the archive is finalized, the first entry is not
                ``mimetype``, or the path was already written.
        """
        if self._zip is None:
            raise ValueError("archive is already finalized")
        if not self._paths and path != MIMETYPE_PATH:
            raise ValueError(f"first entry must be '{MIMETYPE_PATH}', got '{path}'")
        if path in self._paths:
            raise ValueError(f"duplicate archive entry: '{path}'")

        info = zipfile.ZipInfo(path, date_time=_ENTRY_DATE_TIME)
        if path == MIMETYPE_PATH:
            info.compress_type = zipfile.ZIP_STORED
        else:
            info.compress_type = zipfile.ZIP_DEFLATED
        info.external_attr = 0o644 << 16

        self._zip.writestr(info, content)
        self._paths.append(path)

    def finalize(self) -> bytes:
        if self._zip is None:
            raise ValueError("archive is already finalized")
        self._zip.close()
        self._zip = None
        return self._buffer.getvalue()

    def abort(self) -> None:
        if self._zip is None:
            return
        zip_file, self._zip = self._zip, None
        try:
            zip_file.close()
        finally:
            self._buffer.close()
