"""
Progress reporting for a batch of project queries

The reporter runs on its own thread and drains an unbounded queue, so
signaling completion never blocks the reconciling thread.
"""

import queue
import threading
import time

import click

_DONE = object()


class ProgressReporter:
    def __init__(self, total: int, file=None):
        self.total = total
        self.processed = 0
        self.elapsed = None
        self._file = file
        self._signals = queue.Queue()
        self._thread = threading.Thread(target=self._run, name='progress-reporter', daemon=True)
        self._start_time = None

    def __enter__(self):
        return self.start()

    def __exit__(self, exc_type, exc, tb):
        self.close()
        self.join()

    def start(self) -> 'ProgressReporter':
        self._start_time = time.time()
        self._thread.start()
        return self

    def advance(self):
        """Signal that one project has been reconciled"""
        self._signals.put_nowait(1)

    def close(self):
        """Signal that no more projects will be reported"""
        self._signals.put_nowait(_DONE)

    def join(self, timeout=None):
        self._thread.join(timeout)

    def _render(self):
        percent = (self.processed / self.total * 100) if self.total > 0 else 100.0
        click.echo(f"\r📡 Progress: {self.processed}/{self.total} projects ({percent:.1f}%)",
                   file=self._file, nl=False)

    def _run(self):
        while True:
            signal = self._signals.get()
            if signal is _DONE:
                break
            self.processed += 1
            self._render()

        self.elapsed = time.time() - self._start_time
        click.echo(f"\n✅ Completed in {self.elapsed:.1f} seconds", file=self._file)
