"""Single-page preview for static (``none`` platform) projects.

A static project is three loose files. To preview it from one URL the
stylesheet and script are inlined into the HTML page, and the page's own
``<link>``/``<script src>`` references to those files are removed so the
browser does not request them a second time.
"""

from __future__ import annotations

import re
from collections.abc import Mapping

from sitesmith.errors import PreviewError
from sitesmith.utils import file_extension

HTML_EXTENSIONS = ("html", "htm")

_HEAD_CLOSE_RE = re.compile(r"</head\s*>", re.IGNORECASE)
_BODY_CLOSE_RE = re.compile(r"</body\s*>", re.IGNORECASE)
_LINK_TAG_RE = re.compile(r"<link\b[^>]*>", re.IGNORECASE)
_SCRIPT_SRC_RE = re.compile(r"<script\b[^>]*\bsrc\s*=[^>]*>\s*</script\s*>", re.IGNORECASE)
_ATTR_RE = r"""\b{name}\s*=\s*["']?([^"'\s>]+)"""


def _basename(path: str) -> str:
    return path.rsplit("/", 1)[-1]


def _is_local(url: str) -> bool:
    return not re.match(r"^(?:[a-z][a-z0-9+.-]*:|//)", url, re.IGNORECASE)


def _references(tag: str, attr: str, target: str) -> bool:
    match = re.search(_ATTR_RE.format(name=attr), tag, re.IGNORECASE)
    if match is None:
        return False
    url = match.group(1).split("?", 1)[0].split("#", 1)[0]
    return _is_local(url) and _basename(url) == _basename(target)


def _first_with_extension(files: Mapping[str, str], extension: str) -> str | None:
    for path in files:
        if file_extension(path) == extension:
            return path
    return None


def find_entry_page(files: Mapping[str, str]) -> str:
    """Return the path of the only HTML page in ``files``.

    Raises:
        PreviewError: If there is no HTML page or more than one.
    """
    pages = [path for path in files if file_extension(path) in HTML_EXTENSIONS]
    if not pages:
        raise PreviewError("A static preview needs an HTML file; none was provided")
    if len(pages) > 1:
        raise PreviewError(
            f"A static preview needs exactly one HTML file; got {len(pages)}: {', '.join(pages)}"
        )
    return pages[0]


def build_standalone_html(files: Mapping[str, str]) -> str:
    """Combine the page, first stylesheet and first script into one document.

    Args:
        files: Mapping of path to (fence-free) file contents.

    Raises:
        PreviewError: If ``files`` does not hold exactly one HTML page.
    """
    page = files[find_entry_page(files)]
    css_path = _first_with_extension(files, "css")
    js_path = _first_with_extension(files, "js")

    if css_path is not None:
        page = _LINK_TAG_RE.sub(
            lambda m: "" if _references(m.group(0), "href", css_path) else m.group(0), page
        )
        style = f"<style>\n{files[css_path]}\n</style>\n"
        if _HEAD_CLOSE_RE.search(page):
            page = _HEAD_CLOSE_RE.sub(lambda m: style + m.group(0), page, count=1)
        else:
            page = style + page

    if js_path is not None:
        page = _SCRIPT_SRC_RE.sub(
            lambda m: "" if _references(m.group(0), "src", js_path) else m.group(0), page
        )
        script = f"<script>\n{files[js_path]}\n</script>\n"
        if _BODY_CLOSE_RE.search(page):
            page = _BODY_CLOSE_RE.sub(lambda m: script + m.group(0), page, count=1)
        else:
            page = page + "\n" + script

    return page
