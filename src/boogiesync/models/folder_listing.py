"""OBEX folder listing model."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class FolderEntry:
    """A sub-folder of the current folder."""

    name: str
    modified: str | None = None


@dataclass(frozen=True)
class FileEntry:
    """A file in the current folder.

    Attributes:
        name: File name as reported by the device
        modified: OBEX timestamp string (e.g. "20150102T030405Z"), if present
        size: File size in bytes, if present
    """

    name: str
    modified: str | None = None
    size: int | None = None


@dataclass(frozen=True)
class FolderListing:
    """Contents of one folder as returned by an x-obex/folder-listing GET."""

    folders: tuple[FolderEntry, ...] = ()
    files: tuple[FileEntry, ...] = ()

    def find_file(self, name: str) -> FileEntry | None:
        """Return the file entry with the given name, if listed."""
        for entry in self.files:
            if entry.name == name:
                return entry
        return None
