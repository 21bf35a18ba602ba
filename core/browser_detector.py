"""BrowserDetector - Parallel discovery of installed browsers.

Fan-out: one probe task per BrowserSpec (plus the default-handler lookup)
on daemon worker threads. Fan-in: results are merged once every task has
finished or the timeout expired, in registry order.

RESPONSIBILITY:
- Run PathProber for each spec and verify candidates on disk
- Drop specs whose probe failed (absence, not error)
- Mark the OS default browser when it can be determined

DOES NOT:
- Choose which browser to launch (select_browser's job)
- Persist anything (ResultExporter's job)

INVARIANT: Output order is registry order, restricted to browsers found.
"""

import logging
import os
import queue
import threading
from concurrent.futures import Future, wait
from dataclasses import dataclass
from functools import partial
from typing import Any, Callable, Iterator, List, Optional, Sequence, Tuple

from core.browser_registry import BrowserRegistry, BrowserSpec
from core.default_browser import DefaultBrowserLookup
from core.exceptions import ConfigurationError
from core.path_prober import PathProber


# =============================================================================
# RESULT TYPES
# =============================================================================

@dataclass(frozen=True)
class DetectedBrowser:
    """One installed browser, verified at detection time.

    resolved_path may go stale before launch (best-effort).
    """
    id: str
    resolved_path: str
    is_default: bool = False


@dataclass(frozen=True)
class DetectionResult:
    """Immutable outcome of one detection run."""
    browsers: Tuple[DetectedBrowser, ...] = ()
    default: Optional[str] = None

    def __len__(self) -> int:
        return len(self.browsers)

    def __iter__(self) -> Iterator[DetectedBrowser]:
        return iter(self.browsers)

    @property
    def is_empty(self) -> bool:
        return not self.browsers

    def get(self, browser_id: str) -> Optional[DetectedBrowser]:
        wanted = browser_id.lower()
        for browser in self.browsers:
            if browser.id.lower() == wanted:
                return browser
        return None

    def ids(self) -> List[str]:
        return [browser.id for browser in self.browsers]

    @property
    def default_browser(self) -> Optional[DetectedBrowser]:
        if self.default is None:
            return None
        return self.get(self.default)


# =============================================================================
# DETECTOR
# =============================================================================

def is_executable(path: str) -> bool:
    """A probe: the file exists and the current user may run it."""
    return os.path.isfile(path) and os.access(path, os.X_OK)


def _run_detached(tasks: Sequence[Callable[[], Any]], workers: int) -> List[Future]:
    """Run `tasks` on a bounded set of daemon threads, one Future per task.

    Daemon workers never hold up interpreter exit, so a probe abandoned
    after a timeout cannot keep the process alive.
    """
    futures: List[Future] = [Future() for _ in tasks]
    work: "queue.Queue[Tuple[Callable[[], Any], Future]]" = queue.Queue()
    for item in zip(tasks, futures):
        work.put(item)

    def _worker() -> None:
        while True:
            try:
                task, future = work.get_nowait()
            except queue.Empty:
                return
            if not future.set_running_or_notify_cancel():
                continue
            try:
                future.set_result(task())
            except Exception as e:
                future.set_exception(e)

    for index in range(max(1, min(workers, len(tasks)))):
        threading.Thread(target=_worker, name=f"browser_probe_{index}", daemon=True).start()
    return futures


class BrowserDetector:
    """Detect installed browsers from a BrowserRegistry.

    Usage:
        detector = BrowserDetector(BrowserRegistry.default())
        result = detector.detect()
    """

    def __init__(
        self,
        registry: BrowserRegistry,
        prober: Optional[PathProber] = None,
        default_lookup: Optional[DefaultBrowserLookup] = None,
        max_workers: Optional[int] = None,
        probe_timeout: Optional[float] = None,
    ):
        if registry is None or len(registry) == 0:
            raise ConfigurationError("BrowserDetector requires a non-empty registry")
        self.registry = registry
        self.prober = prober or PathProber()
        self.default_lookup = default_lookup or DefaultBrowserLookup(os_name=self.prober.os_name)
        self.max_workers = max_workers
        self.probe_timeout = probe_timeout

    def detect(self) -> DetectionResult:
        """Probe every spec concurrently and merge once all are done."""
        specs = self.registry.specs()
        workers = self.max_workers or len(specs) + 1
        logging.info(f"BrowserDetector: probing {len(specs)} browser families on {self.prober.os_name}")

        tasks = [partial(self._probe_spec, spec) for spec in specs] + [self.default_lookup.lookup]
        futures = _run_detached(tasks, workers)
        probe_futures, default_future = futures[:-1], futures[-1]

        _, pending = wait(futures, timeout=self.probe_timeout)
        for future in pending:
            # Queued tasks never start; running ones finish unobserved
            future.cancel()

        found = self._merge(specs, probe_futures)
        default_id = self._match_default(default_future, found)

        browsers = tuple(
            DetectedBrowser(id=spec.id, resolved_path=path, is_default=(spec.id == default_id))
            for spec, path in found
        )
        logging.info(
            f"BrowserDetector: found {len(browsers)} browser(s): {[b.id for b in browsers]}"
            f" (default: {default_id or 'unknown'})"
        )
        return DetectionResult(browsers=browsers, default=default_id)

    def _probe_spec(self, spec: BrowserSpec) -> Optional[str]:
        """First executable candidate for `spec`, or None.

        Candidate order matters: earlier paths win.
        """
        for candidate in self.prober.probe(spec):
            if is_executable(candidate):
                logging.debug(f"BrowserDetector: {spec.id} -> {candidate}")
                return os.path.abspath(candidate)
        return None

    def _merge(self, specs: Tuple[BrowserSpec, ...], futures: List[Future]) -> List[Tuple[BrowserSpec, str]]:
        """Join point. Registry order; first spec wins a shared real path."""
        found: List[Tuple[BrowserSpec, str]] = []
        seen = {}

        for spec, future in zip(specs, futures):
            if future.cancelled() or not future.done():
                logging.warning(f"BrowserDetector: probe for '{spec.id}' timed out, treating as not found")
                continue
            try:
                path = future.result()
            except Exception as e:
                logging.warning(f"BrowserDetector: probe for '{spec.id}' failed, skipping: {e}")
                continue
            if path is None:
                continue

            real = os.path.realpath(path)
            if real in seen:
                logging.debug(f"BrowserDetector: {spec.id} at {path} duplicates '{seen[real]}', skipping")
                continue
            seen[real] = spec.id
            found.append((spec, path))

        return found

    def _match_default(self, future: Future, found: List[Tuple[BrowserSpec, str]]) -> Optional[str]:
        if future.cancelled() or not future.done():
            return None
        try:
            handler = future.result()
        except Exception as e:
            logging.debug(f"BrowserDetector: default browser lookup failed: {e}")
            return None
        if not handler:
            return None

        for spec, _ in found:
            if spec.handles(handler):
                return spec.id

        logging.debug(f"BrowserDetector: default handler '{handler}' is not a detected browser")
        return None
