"""
Driver Factory - WebDriver creation for shadowpilot runs.

One place builds the Chrome WebDriver every layer talks to; a context
manager variant always quits it.
"""

from typing import Iterator, Optional
from contextlib import contextmanager
from selenium import webdriver
from selenium.webdriver.chrome.options import Options as ChromeOptions

# Alias used in annotations across the package
WebDriverType = webdriver.Chrome

# Flags that keep Chrome predictable in CI containers
CHROME_ARGUMENTS = (
    "--disable-extensions",
    "--no-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
    "--window-size=1920,1080",
)


def create_driver(
    headless: bool = False,
    profile_path: Optional[str] = None,
    page_load_timeout: int = 60,
    script_timeout: int = 30,
) -> WebDriverType:
    """
    Build a Chrome WebDriver with navigation and script timeouts applied.

    Args:
        headless: Use Chrome's new headless mode
        profile_path: User data directory to reuse cookies and storage
        page_load_timeout: Seconds before a navigation raises TimeoutException
        script_timeout: Seconds before an injected script raises TimeoutException

    Example:
        >>> driver = create_driver(headless=True)
        >>> driver.get("https://mattkenefick.github.io/sample-shadow-dom/")
    """
    options = ChromeOptions()
    for argument in CHROME_ARGUMENTS:
        options.add_argument(argument)
    if headless:
        options.add_argument("--headless=new")
    if profile_path:
        options.add_argument(f"--user-data-dir={profile_path}")

    chrome = webdriver.Chrome(options=options)
    chrome.set_page_load_timeout(page_load_timeout)
    chrome.set_script_timeout(script_timeout)
    return chrome


@contextmanager
def driver_session(headless: bool = False, **kwargs) -> Iterator[WebDriverType]:
    """
    Yield a driver for the duration of a ``with`` block, quitting it afterwards.

        >>> with driver_session(headless=True) as driver:
        ...     DOMMapper(driver).get_snapshot()
    """
    chrome = create_driver(headless=headless, **kwargs)
    try:
        yield chrome
    finally:
        chrome.quit()
