from pathlib import Path

from checks import CheckRecorder


TARGET_URL = "http://localhost:8080/"

OPTIONS = {
    "scenarios": {
        "browser": {
            "executor": "shared-iterations",
            "options": {
                "browser": {"type": "chromium"},
            },
        },
    },
}

# DOM contract of the page under test
BOOKMARKLET_BUTTON = "#bookmarklet-btn"
SUBSCRIBE_BUTTON = "#subscribe-btn"
SOURCE_TABS = "#source-tabs"
YOUTUBE_TAB = "[href='#add-youtube-video']"
MEDIA_TAB = "[href='#upload-file']"
VIDEO_URL_INPUT = "input[name='url']"
ADD_VIDEO_BUTTON = "#add-youtube-video-btn"
MEDIA_INPUT = "input[name='media']"

YOUTUBE_LABEL = "YouTube"
MEDIA_LABEL = "User media"


async def _failure_screenshot(page, path: Path, verbose: bool = False) -> str:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        await page.screenshot(path=str(path), full_page=True)
        if verbose:
            print(f"📸 Failure screenshot saved: {path.name}")
        return str(path)
    except Exception as e:
        print(f"⚠️ Could not save failure screenshot: {e}")
        return ""


async def tab_switch_probe(browser, recorder: CheckRecorder, base_url: str = TARGET_URL, screenshot_path: Path | None = None, verbose: bool = False) -> None:
    """Open the page, check the landing controls, then switch to each source tab.

    Raises IterationAborted when a tab link is missing; navigation and click
    errors propagate unchanged. The page is closed on every exit path.
    """
    page = await browser.new_page()
    in_flight = None
    try:
        if verbose:
            print(f"→ Navigating to {base_url}")
        await page.goto(base_url)

        recorder.record_check(None, {
            "bookmarkletButton": await page.locator(BOOKMARKLET_BUTTON).is_visible(),
            "subscribeButton": await page.locator(SUBSCRIBE_BUTTON).is_visible(),
            "sourceTabs": await page.locator(SOURCE_TABS).is_visible(),
        })

        yt_tab = page.locator(YOUTUBE_TAB)
        recorder.assert_or_abort("tabVisible", await yt_tab.is_visible(), "YouTube tab is not visible", label=YOUTUBE_LABEL)

        if verbose:
            print(f"→ Clicking {YOUTUBE_LABEL} tab")
        await yt_tab.click()
        recorder.record_check(YOUTUBE_LABEL, {
            "youtubeVideoURL": await page.locator(VIDEO_URL_INPUT).is_visible(),
            "youtubeVideoButton": await page.locator(ADD_VIDEO_BUTTON).is_visible(),
            "uploadFile": await page.locator(MEDIA_INPUT).is_hidden(),
        })

        media_tab = page.locator(MEDIA_TAB)
        recorder.assert_or_abort("tabVisible", await media_tab.is_visible(), "User media tab is not visible", label=MEDIA_LABEL)

        if verbose:
            print(f"→ Clicking {MEDIA_LABEL} tab")
        await media_tab.click()
        recorder.record_check(MEDIA_LABEL, {
            "youtubeVideoURL": await page.locator(VIDEO_URL_INPUT).is_hidden(),
            "youtubeVideoButton": await page.locator(ADD_VIDEO_BUTTON).is_hidden(),
            "uploadFile": await page.locator(MEDIA_INPUT).is_visible(),
        })
    except BaseException as e:
        in_flight = e
        # Cancellation skips the screenshot; the page still gets closed below
        if screenshot_path is not None and isinstance(e, Exception):
            await _failure_screenshot(page, screenshot_path, verbose=verbose)
        raise
    finally:
        try:
            await page.close()
        except Exception as close_err:
            if in_flight is None:
                raise
            print(f"⚠️ Could not close page after failure: {close_err}")
