"""Report files: the time-stamped transcript and a JSON summary."""

import json
import logging
import threading
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from ..clock import SystemClock, TimeSource
from ..controllers.listener import AnswerType, MessageType, QuestionCallback, ResultsListener
from ..models.outcome import Outcome, PartResult
from ..models.vehicle import VehicleInformation

logger = logging.getLogger(__name__)


class ReportFileListener(ResultsListener):
    """
    Appends every transcript line to a report file.

    Lines are written in arrival order under a lock and flushed at once,
    so the file stays append-only even when written from another thread.
    """

    DEFAULT_REPORT_DIR = Path.home() / ".j1939-toolkit" / "reports"

    def __init__(self, path: Optional[Path] = None, clock: Optional[TimeSource] = None):
        """
        Open (or create) the report file.

        Args:
            path: Report file; a time-stamped file in DEFAULT_REPORT_DIR if None
            clock: Time source for line time stamps
        """
        super().__init__()
        self._clock = clock or SystemClock()
        if path is None:
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            path = self.DEFAULT_REPORT_DIR / f"j1939-84_{timestamp}.txt"
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        self._file = open(self._path, "a", encoding="utf-8")
        logger.info(f"Writing report to {self._path}")

    @property
    def path(self) -> Path:
        return self._path

    @property
    def summary_path(self) -> Path:
        return self._path.with_suffix(".json")

    def _write(self, line: str) -> None:
        stamp = self._clock.format_time()
        with self._lock:
            if self._file.closed:
                logger.warning(f"Report closed, dropping line: {line}")
                return
            for part in line.splitlines() or [""]:
                self._file.write(f"{stamp} {part}\n")
            self._file.flush()

    def on_result(self, line: str) -> None:
        self._write(line)

    def on_urgent_message(
        self,
        text: str,
        title: str,
        severity: MessageType,
        question_callback: Optional[QuestionCallback] = None,
    ) -> Optional[AnswerType]:
        self._write(f"{severity.value.upper()}: {title}: {text}")
        return None

    def end_step(self, part: int, step: int, name: str, outcome: Outcome) -> None:
        self._write(f"{name}: {outcome.value}")

    def write_summary(self, results: List[PartResult],
                      vehicle_information: Optional[VehicleInformation] = None) -> Path:
        """
        Write the part results next to the transcript as JSON.

        Returns:
            Path to the JSON summary
        """
        data = {
            "generated": datetime.now().isoformat(),
            "transcript": str(self._path),
            "vehicle": vehicle_information.model_dump(mode="json") if vehicle_information else None,
            "parts": [result.model_dump(mode="json") for result in results],
        }
        with open(self.summary_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, default=str)
        logger.info(f"Saved summary to {self.summary_path}")
        return self.summary_path

    def close(self) -> None:
        with self._lock:
            if not self._file.closed:
                self._file.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
