#!/usr/bin/env python3
"""QuickTabs CLI Entry Point

Save links and aliases, then open them together in one browser window.

Usage:
    quicktabs add-link news https://news.ycombinator.com
    quicktabs launch news              # Open one tag (alias, link, or raw URL)
    quicktabs open-all-links -i        # Every saved link, private window
    quicktabs detect                   # Re-probe installed browsers

Exit status is 1 when no browser is found or the browser cannot start.
"""

import logging
import sys
from typing import List, Optional

import typer

from core.browser_detector import BrowserDetector, DetectionResult
from core.browser_launcher import BrowserLauncher, LaunchRequest
from core.browser_registry import BrowserRegistry
from core.browser_selector import select_browser
from core.exceptions import QuickTabsError
from core.path_prober import PathProber
from core.quicktabs_config import QuickTabsConfig, QuickTabsSettings
from core.result_exporter import ResultExporter
from storage.link_store import ALIASES_FILENAME, LINKS_FILENAME, AliasStore, LinkStore, normalize_url


app = typer.Typer(
    help="Open saved links together in one browser window (private mode optional).",
    no_args_is_help=True,
)

_INCOGNITO_OPTION = typer.Option(
    None,
    "--incognito/--normal",
    "-i",
    help="Open in a private/incognito window (default from config).",
)
_BROWSER_OPTION = typer.Option(
    None,
    "--browser",
    "-b",
    help="Browser id to use (chrome, firefox, brave, edge, opera, chromium, vivaldi, ...).",
)


def _configure_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    # Logs go to stderr; command output stays on stdout
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler(sys.stderr)],
    )
    logging.getLogger().setLevel(level)


@app.callback()
def entry(
    verbose: int = typer.Option(0, "--verbose", "-v", count=True, help="-v for info, -vv for debug logs."),
) -> None:
    _configure_logging(verbose)


# =============================================================================
# HELPERS
# =============================================================================

def _fail(error: Exception) -> None:
    typer.echo(f"❌ {error}", err=True)
    raise typer.Exit(1)


def _load_settings() -> QuickTabsSettings:
    try:
        return QuickTabsConfig.get().settings
    except QuickTabsError as e:
        _fail(e)


def _link_store(settings: QuickTabsSettings) -> LinkStore:
    return LinkStore(settings.state_dir / LINKS_FILENAME)


def _alias_store(settings: QuickTabsSettings) -> AliasStore:
    return AliasStore(settings.state_dir / ALIASES_FILENAME)


def _detect(
    settings: QuickTabsSettings,
    registry: BrowserRegistry,
    refresh: bool = False,
    preference: Optional[str] = None,
) -> DetectionResult:
    """Cached detection result when allowed and still valid, else a fresh probe.

    A cache that lacks the preferred browser is re-probed, since the browser
    may have been installed after the cache was written.
    """
    exporter = ResultExporter(settings.state_dir)

    if settings.use_cached_detection and not refresh:
        cached = exporter.load()
        if cached is not None and all(browser.id in registry for browser in cached):
            if preference and preference in registry and cached.get(preference) is None:
                logging.info(f"Cached browser list has no '{preference}', re-detecting")
            else:
                logging.info(f"Using cached browser list ({len(cached)} browser(s))")
                return cached

    detector = BrowserDetector(
        registry,
        prober=PathProber(),
        max_workers=settings.probe_workers,
        probe_timeout=settings.probe_timeout_s,
    )
    result = detector.detect()
    try:
        exporter.export(result)
    except OSError as e:
        logging.warning(f"Could not save browser list to {settings.state_dir}: {e}")
    return result


def _open_urls(urls: List[str], incognito: Optional[bool], browser: Optional[str]) -> None:
    """Select a browser and open `urls` in one window. Exits 1 on failure."""
    settings = _load_settings()
    private = settings.private_by_default if incognito is None else incognito

    try:
        registry = BrowserRegistry.from_config(list(settings.browsers))
        preference = browser or settings.preferred_browser
        result = _detect(settings, registry, preference=preference)
        chosen = select_browser(result, preference=preference, supported=registry.ids())
        launcher = BrowserLauncher(
            registry,
            allow_empty=settings.allow_empty_launch,
            exit_check=settings.launch_check_s,
        )
        launcher.launch(LaunchRequest(browser=chosen, urls=tuple(urls), private=private))
    except QuickTabsError as e:
        _fail(e)

    mode = "Private Mode" if private else "Normal Mode"
    typer.echo(f"🚀 Launching {len(urls)} link(s) in {chosen.id} ({mode})")


# =============================================================================
# COMMANDS
# =============================================================================

@app.command("launch")
def launch(
    targets: List[str] = typer.Argument(..., help="Alias, link tag, or URL (several open together)."),
    incognito: Optional[bool] = _INCOGNITO_OPTION,
    browser: Optional[str] = _BROWSER_OPTION,
) -> None:
    """Launch tags or URLs in the selected browser."""
    settings = _load_settings()
    links = _link_store(settings)
    aliases = _alias_store(settings)

    urls = []
    for target in targets:
        url = aliases.resolve(target) or links.get(target) or normalize_url(target)
        urls.append(url)

    _open_urls(urls, incognito, browser)


@app.command("add-link")
def add_link(tag: str, url: str) -> None:
    """Add a new link tag."""
    store = _link_store(_load_settings())
    replaced = store.add(tag, url)
    store.save()
    typer.echo("✅ Link replaced!" if replaced else "✅ Link saved!")


@app.command("add-alias")
def add_alias(tag: str, url: str) -> None:
    """Add a new alias shortcut."""
    store = _alias_store(_load_settings())
    store.add(tag, url)
    store.save()
    typer.echo("✅ Alias saved!")


@app.command("remove-link")
def remove_link(tag: str) -> None:
    """Remove a saved link."""
    store = _link_store(_load_settings())
    if store.remove(tag):
        store.save()
        typer.echo("✅ Link removed!")
    else:
        typer.echo(f"⚠️ Link tag '{tag}' not found.")


@app.command("remove-alias")
def remove_alias(tag: str) -> None:
    """Remove a saved alias."""
    store = _alias_store(_load_settings())
    if store.remove(tag):
        store.save()
        typer.echo("✅ Alias removed!")
    else:
        typer.echo(f"⚠️ Alias tag '{tag}' not found.")


@app.command("list-links")
def list_links() -> None:
    """List saved links and aliases."""
    settings = _load_settings()

    links = _link_store(settings)
    if len(links) == 0:
        typer.echo("⚠️ No links saved.")
    else:
        typer.echo("📄 Saved links:")
        for tag, url in links.items():
            typer.echo(f"  [{tag}] {url}")

    aliases = _alias_store(settings)
    if len(aliases) == 0:
        typer.echo("⚠️ No aliases saved.")
    else:
        typer.echo("✨ Saved aliases:")
        for tag, url in aliases.items():
            typer.echo(f"  [{tag}] -> {url}")


@app.command("open-all-links")
def open_all_links(
    incognito: Optional[bool] = _INCOGNITO_OPTION,
    browser: Optional[str] = _BROWSER_OPTION,
) -> None:
    """Open all saved links in one window."""
    urls = _link_store(_load_settings()).urls()
    if not urls:
        typer.echo("⚠️ No links to open.")
        return
    _open_urls(urls, incognito, browser)


@app.command("open-all-aliases")
def open_all_aliases(
    incognito: Optional[bool] = _INCOGNITO_OPTION,
    browser: Optional[str] = _BROWSER_OPTION,
) -> None:
    """Open all saved aliases in one window."""
    urls = _alias_store(_load_settings()).urls()
    if not urls:
        typer.echo("⚠️ No aliases to open.")
        return
    _open_urls(urls, incognito, browser)


@app.command("detect")
def detect() -> None:
    """Re-detect installed browsers and save the list."""
    settings = _load_settings()
    try:
        registry = BrowserRegistry.from_config(list(settings.browsers))
        result = _detect(settings, registry, refresh=True)
    except QuickTabsError as e:
        _fail(e)

    if result.is_empty:
        typer.echo("⚠️ Did not find any known browsers.")
        return

    typer.echo(f"✨ Found {len(result)} browser(s):")
    for index, found in enumerate(result, start=1):
        spec = registry.get(found.id)
        marker = " [default]" if found.is_default else ""
        typer.echo(f"  [{index}] {found.id} ({spec.name}) -> {found.resolved_path}{marker}")
    typer.echo(f"📄 Saved browser list to {settings.state_dir}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
