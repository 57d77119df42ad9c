"""JSON file implementation of snapshot storage."""
import json
import logging
import os
import stat
import tempfile
from pathlib import Path
from typing import Union
from agents_radar.domain.models import Snapshot
from agents_radar.domain.snapshot_interface import ISnapshotStorage


logger = logging.getLogger(__name__)


class JsonSnapshotStorage(ISnapshotStorage):
    """Stores the snapshot as a single JSON document.

    The file is replaced atomically: the new content is written to a temporary
    file in the same directory and renamed over the old one.
    """

    def __init__(self, path: Union[str, Path]):
        """Initialize storage.

        Args:
            path: Location of the snapshot file (e.g. ``public/data.json``)
        """
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def exists(self) -> bool:
        return self._path.is_file()

    def _file_mode(self) -> int:
        """Permissions for the new file: the current snapshot's, else the umask default."""
        try:
            return stat.S_IMODE(os.stat(self._path).st_mode)
        except FileNotFoundError:
            umask = os.umask(0)
            os.umask(umask)
            return 0o666 & ~umask

    def save(self, snapshot: Snapshot) -> None:
        """Write the snapshot, replacing any previous one.

        Args:
            snapshot: Snapshot to persist

        Raises:
            OSError: If the file cannot be written
        """
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self._path.name}.", suffix=".tmp", dir=self._path.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(snapshot.to_dict(), f, indent=2, ensure_ascii=False)
                f.write("\n")
            os.chmod(tmp_name, self._file_mode())
            os.replace(tmp_name, self._path)
        except Exception as e:
            logger.error(f"Error saving snapshot to {self._path}: {e}")
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

        logger.info(f"Saved snapshot with {snapshot.count} repositories to {self._path}")

    def load(self) -> Snapshot:
        """Read the snapshot back.

        Raises:
            FileNotFoundError: If no snapshot has been written yet
            ValueError: If the file is not a valid snapshot
        """
        with open(self._path, encoding="utf-8") as f:
            data = json.load(f)
        return Snapshot.from_dict(data)
