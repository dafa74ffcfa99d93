"""
Incremental byte reader for a growing log file.

This module tracks how far into a file we have read and returns the bytes
appended since the last read. It also notices when the file was truncated
or replaced underneath us (logrotate, "clear log" buttons, editors that
rewrite the file), which forces a full re-read.

Design Decisions:
    - File identity is the (device, inode) pair recorded on first sight
    - Size and identity come from fstat on the open handle, so the two
      always describe the same file
    - A file that did not exist when attached is adopted silently when it
      appears; a file that disappears and comes back counts as rotated
    - Errors other than "not found" propagate to the caller
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


@dataclass(frozen=True)
class FileIdentity:
    device: int
    inode: int

    @classmethod
    def from_stat(cls, st: os.stat_result) -> "FileIdentity":
        return cls(device=st.st_dev, inode=st.st_ino)


@dataclass(frozen=True)
class Chunk:
    """
    Result of one read.

    Attributes:
        data: Bytes appended since the previous read (may be empty).
        rotated: The file was truncated, replaced or recreated; data was
                 read from offset 0 of the new content.
        missing: The file does not exist right now.
    """
    data: bytes = b""
    rotated: bool = False
    missing: bool = False


class RawChunkReader:
    """
    Read newly appended bytes from a file at a tracked byte offset.

    Attributes:
        path: File being read.
        offset: Position after the last byte handed out.
        identity: Identity of the file the offset refers to.

    Example:
        >>> reader = RawChunkReader(Path("/var/log/php/error.log"))
        >>> reader.attach(from_beginning=False)
        >>> chunk = reader.read()  # bytes written since attach
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self.offset = 0
        self.identity: Optional[FileIdentity] = None
        # Set once the file we were reading vanishes
        self.lost = False

    def attach(self, from_beginning: bool = False) -> bool:
        """
        Record the file's identity and position the offset.

        Args:
            from_beginning: Start at byte 0 instead of end-of-file.

        Returns:
            bool: False if the file does not exist yet.

        Raises:
            OSError: stat failed for a reason other than a missing file.
        """
        self.lost = False
        try:
            st = self.path.stat()
        except FileNotFoundError:
            self.identity = None
            self.offset = 0
            return False

        self.identity = FileIdentity.from_stat(st)
        self.offset = 0 if from_beginning else st.st_size
        return True

    def read(self) -> Chunk:
        """
        Read everything appended since the last call.

        Returns:
            Chunk: New bytes plus rotation/missing flags.

        Raises:
            OSError: The file exists but could not be opened or read.
        """
        try:
            f = self.path.open("rb")
        except FileNotFoundError:
            if self.identity is not None:
                self.lost = True
            return Chunk(missing=True)

        with f:
            st = os.fstat(f.fileno())
            identity = FileIdentity.from_stat(st)
            rotated = False

            if self.identity is None:
                # First sighting of a file that did not exist at attach time
                self.identity = identity
                self.offset = 0
            elif self.lost or identity != self.identity or st.st_size < self.offset:
                rotated = True
                self.identity = identity
                self.offset = 0
            self.lost = False

            if st.st_size == self.offset:
                return Chunk(rotated=rotated)

            f.seek(self.offset)
            data = f.read()
            # The writer may have appended more since fstat; take it all
            self.offset += len(data)

        return Chunk(data=data, rotated=rotated)
