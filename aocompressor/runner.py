from __future__ import annotations

import concurrent.futures as _fut
import queue
import time
from typing import Callable, List, Optional

from .outcome import LogRecord, LogSink, Outcome, Severity, failure
from .report import headline, outcome_severity

Task = Callable[[LogSink], Outcome]

_DONE = object()


class TaskRunner:
    """Run one core operation on a worker thread and replay its log on the caller's thread.

    The worker never touches ``sink``: every record it produces is put on a
    queue which :meth:`run` drains on the calling thread, so a sink that is not
    thread safe (a terminal, a UI widget) only ever sees one thread.

    Args:
        sink: Receives every record, in production order.
        operation: Verb used in the headline ("Compressed", "Decompressed").
        target_path: Path shown in the headline.
        post_logs: Optional callable producing extra records after a run that
            processed at least one file (statistics).
    """

    def __init__(
        self,
        sink: LogSink,
        *,
        operation: str,
        target_path: str,
        post_logs: Optional[Callable[[], List[LogRecord]]] = None,
    ):
        self.sink = sink
        self.operation = operation
        self.target_path = target_path
        self.post_logs = post_logs

    def _work(self, task: Task, channel: "queue.Queue") -> Outcome:
        def emit(text: str, severity: Severity = Severity.INFO) -> None:
            channel.put(LogRecord(text, severity))

        start = time.perf_counter()
        outcome = task(emit)
        elapsed_ms = int((time.perf_counter() - start) * 1000)

        if outcome.success and outcome.count > 0:
            emit(headline(self.operation, outcome.count, self.target_path))
            if self.post_logs is not None:
                for rec in self.post_logs() or []:
                    channel.put(rec)
            emit(f"Time: {elapsed_ms}ms")
        return outcome

    def run(self, task: Task) -> Outcome:
        channel: "queue.Queue" = queue.Queue()
        with _fut.ThreadPoolExecutor(max_workers=1) as ex:
            future = ex.submit(self._work, task, channel)
            future.add_done_callback(lambda _f: channel.put(_DONE))
            while True:
                item = channel.get()
                if item is _DONE:
                    break
                self.sink(item.text, item.severity)
        try:
            outcome = future.result()
        except Exception as exc:  # internal errors of any kind end as one Failure
            outcome = failure(f"Unexpected error.\n{exc}")
        self.sink(outcome.message, outcome_severity(outcome))
        return outcome
