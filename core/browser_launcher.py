"""BrowserLauncher - One detached browser process per request.

RESPONSIBILITY:
- Build the argument vector (private flag + URLs) per the browser's URL convention
- Spawn the browser and return immediately (fire-and-forget)

DOES NOT:
- Wait for, monitor, or retry the browser process
- Control tabs inside an already-running browser

The launched browser outlives this process.
"""

import logging
import subprocess
import sys
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

import psutil

from core.browser_detector import DetectedBrowser
from core.browser_registry import BrowserRegistry, BrowserSpec, MultiUrlStyle
from core.exceptions import ConfigurationError, LaunchError, LaunchErrorKind


@dataclass(frozen=True)
class LaunchRequest:
    """What to open, where. Consumed once by BrowserLauncher.launch()."""
    browser: DetectedBrowser
    urls: Tuple[str, ...] = ()
    private: bool = False


@dataclass(frozen=True)
class LaunchedProcess:
    """Handle on a spawned browser. Never awaited for its lifetime."""
    pid: int
    argv: Tuple[str, ...]

    def exit_status(self, timeout: float) -> Optional[int]:
        """Exit code if the process ends within `timeout` seconds, else None.

        A browser that hands its URLs to an already-open window exits 0
        here; a non-zero code means it gave up on its own.
        """
        try:
            return psutil.Process(self.pid).wait(timeout=timeout)
        except psutil.TimeoutExpired:
            return None
        except psutil.NoSuchProcess:
            # Already reaped elsewhere; nothing left to report
            return None


def _detach_kwargs() -> Dict[str, Any]:
    """Popen options that cut the child loose from our session/console."""
    kwargs: Dict[str, Any] = {
        "stdin": subprocess.DEVNULL,
        "stdout": subprocess.DEVNULL,
        "stderr": subprocess.DEVNULL,
        "close_fds": True,
    }
    if sys.platform.startswith("win"):
        kwargs["creationflags"] = subprocess.DETACHED_PROCESS | subprocess.CREATE_NEW_PROCESS_GROUP
    else:
        kwargs["start_new_session"] = True
    return kwargs


class BrowserLauncher:
    """Launch a batch of URLs in one browser window.

    Usage:
        launcher = BrowserLauncher(registry)
        handle = launcher.launch(LaunchRequest(browser, urls=("https://a.com",), private=True))

    allow_empty decides the zero-URL policy: True opens a bare window,
    False raises LaunchError(NO_URLS).

    exit_check > 0 watches the new process for that many seconds and
    raises LaunchError(EXITED_EARLY) if it dies with a non-zero status.
    """

    def __init__(
        self,
        registry: BrowserRegistry,
        allow_empty: bool = True,
        popen: Optional[Callable[..., Any]] = None,
        exit_check: float = 0.0,
    ):
        self.registry = registry
        self.allow_empty = allow_empty
        self.exit_check = exit_check
        self._popen = popen or subprocess.Popen

    def _spec_for(self, browser: DetectedBrowser) -> BrowserSpec:
        spec = self.registry.get(browser.id)
        if spec is None:
            raise ConfigurationError(f"Browser '{browser.id}' is not in the registry")
        return spec

    def build_argv(self, request: LaunchRequest) -> List[str]:
        """Argument vector for `request`. Pure: no process is started."""
        spec = self._spec_for(request.browser)
        argv = [request.browser.resolved_path]

        if request.private:
            if spec.private_flag:
                argv.append(spec.private_flag)
            else:
                logging.warning(
                    f"Private mode flag unknown for '{spec.id}', launching a normal window"
                )

        urls = list(request.urls)
        if urls and spec.multi_url_style == MultiUrlStyle.ONE_FLAG_MANY_URLS:
            argv.append(spec.url_flag)
        argv.extend(urls)
        return argv

    def launch(self, request: LaunchRequest) -> LaunchedProcess:
        """Spawn the browser and return; waits at most exit_check seconds.

        Raises:
            LaunchError: SPAWN_FAILED if the OS refuses to start the executable,
                         EXITED_EARLY if it dies with an error within exit_check,
                         NO_URLS if the request is empty and allow_empty is False
        """
        path = request.browser.resolved_path
        if not request.urls and not self.allow_empty:
            raise LaunchError(LaunchErrorKind.NO_URLS, path)

        argv = self.build_argv(request)
        mode = "private" if request.private else "normal"
        logging.info(f"Launching {len(request.urls)} URL(s) in {path} ({mode} mode)")
        logging.debug(f"BrowserLauncher argv: {argv}")

        try:
            process = self._popen(argv, **_detach_kwargs())
        except OSError as e:
            logging.error(f"Failed to launch browser {path}: {e}")
            raise LaunchError(LaunchErrorKind.SPAWN_FAILED, path, e.strerror or str(e)) from e
        except ValueError as e:
            # e.g. embedded NUL byte in an argument
            logging.error(f"Browser {path} rejected the argument vector: {e}")
            raise LaunchError(LaunchErrorKind.SPAWN_FAILED, path, str(e)) from e

        logging.info(f"Browser started: pid={process.pid}")
        handle = LaunchedProcess(pid=process.pid, argv=tuple(argv))

        if self.exit_check > 0:
            status = handle.exit_status(self.exit_check)
            if status == 0:
                logging.info(f"Browser {path} exited cleanly (URLs handed to a running window)")
            elif status is not None:
                logging.error(f"Browser {path} exited with status {status} right after launch")
                raise LaunchError(LaunchErrorKind.EXITED_EARLY, path, f"exit status {status}")
        return handle
