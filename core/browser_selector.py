"""Browser selection - exactly one browser per launch.

Order (first match wins):
1. Explicit user preference, if detected
2. OS default browser, if detected
3. First detected browser (registry order)
"""

import logging
from typing import Iterable, Optional

from core.browser_detector import DetectedBrowser, DetectionResult
from core.exceptions import NoBrowserFoundError


def select_browser(
    result: DetectionResult,
    preference: Optional[str] = None,
    supported: Optional[Iterable[str]] = None,
) -> DetectedBrowser:
    """Resolve the browser to launch.

    Args:
        result: Output of BrowserDetector.detect()
        preference: Browser id chosen by the user (case-insensitive)
        supported: Ids to suggest in the NoBrowserFoundError message

    Raises:
        NoBrowserFoundError: If and only if `result` is empty
    """
    if result.is_empty:
        raise NoBrowserFoundError(list(supported or []))

    if preference:
        chosen = result.get(preference)
        if chosen is not None:
            logging.info(f"Selected preferred browser: {chosen.id}")
            return chosen
        logging.warning(f"Preferred browser '{preference}' was not detected, falling back")

    default = result.default_browser
    if default is not None:
        logging.info(f"Selected OS default browser: {default.id}")
        return default

    first = result.browsers[0]
    logging.info(f"Selected first detected browser: {first.id}")
    return first
