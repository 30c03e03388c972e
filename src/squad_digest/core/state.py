"""Last-run watermark persisted as a small JSON file."""

import json
import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Union

from ..errors import StateStoreError
from ..models.date_range import DateRange
from ..models.sync_state import SyncState
from ..utils.date_utils import ensure_utc

logger = logging.getLogger(__name__)

DEFAULT_STATE_FILE = Path("data") / "last-run-state.json"


class IncrementalStateTracker:
    """Reads and writes the last successful run timestamp.

    The file is read and written whole. Writes go to a temporary file in the
    same directory that is then moved over the target, so a crash never
    leaves a torn record. Read problems of any kind mean "first run".
    """

    def __init__(self, state_file: Union[Path, str] = DEFAULT_STATE_FILE) -> None:
        self.state_file = Path(state_file)

    def load(self) -> Optional[SyncState]:
        """The stored state, or None if absent or unreadable."""
        if not self.state_file.exists():
            logger.debug(f"No run state at {self.state_file}; treating as first run")
            return None
        try:
            with open(self.state_file, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Could not read run state from {self.state_file}: {e}")
            return None
        if not isinstance(data, dict):
            logger.warning(f"Ignoring run state in {self.state_file}: expected an object")
            return None
        return SyncState.from_dict(data)

    def get_last_run_timestamp(self) -> Optional[datetime]:
        state = self.load()
        return state.last_run_timestamp if state else None

    def save_last_run_timestamp(self, timestamp: datetime, now: Optional[datetime] = None) -> SyncState:
        """Persist ``timestamp`` as the last successful run.

        Raises:
            StateStoreError: If the file cannot be written.
        """
        state = SyncState(
            last_run_timestamp=ensure_utc(timestamp),
            updated_at=ensure_utc(now) if now else datetime.now(timezone.utc),
        )
        self._write(state.to_dict())
        logger.info(f"Saved last run timestamp {state.last_run_timestamp.isoformat()}")
        return state

    def reset(self) -> bool:
        """Remove the stored state; True if there was anything to remove."""
        try:
            self.state_file.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StateStoreError(self.state_file, str(e)) from e
        logger.info(f"Cleared run state at {self.state_file}")
        return True

    def get_fetch_window(self, requested: DateRange) -> DateRange:
        """Narrow ``requested`` to start at the watermark when it lies inside it.

        A watermark before the requested start, after its end, or missing
        leaves the requested range unchanged.
        """
        last_run = self.get_last_run_timestamp()
        if last_run is None or not requested.contains(last_run):
            return requested
        return DateRange(last_run, requested.end)

    def _write(self, data: dict) -> None:
        fd = None
        tmp_path = None
        try:
            self.state_file.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                prefix=f".{self.state_file.name}.", suffix=".tmp", dir=self.state_file.parent
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                fd = None
                json.dump(data, f, indent=2)
                f.write("\n")
            os.replace(tmp_path, self.state_file)
            tmp_path = None
        except OSError as e:
            logger.error(f"Failed to write run state to {self.state_file}: {e}")
            raise StateStoreError(self.state_file, str(e)) from e
        finally:
            if fd is not None:
                os.close(fd)
            if tmp_path is not None and os.path.exists(tmp_path):
                os.unlink(tmp_path)

