"""Shared test builders."""

from typing import Dict, Tuple

from core.browser_registry import BrowserSpec, MultiUrlStyle


def make_spec(
    browser_id: str,
    linux_paths: Tuple[str, ...],
    private_flag: str = "--incognito",
    multi_url_style: MultiUrlStyle = MultiUrlStyle.SPACE_SEPARATED,
    url_flag: str = "",
    handler_ids: Tuple[str, ...] = (),
) -> BrowserSpec:
    """Linux-only spec for tests."""
    paths: Dict[str, Tuple[str, ...]] = {"linux": tuple(linux_paths)}
    return BrowserSpec(
        id=browser_id,
        name=browser_id.title(),
        probe_paths=paths,
        private_flag=private_flag,
        multi_url_style=multi_url_style,
        url_flag=url_flag,
        default_handler_ids=handler_ids,
    )
