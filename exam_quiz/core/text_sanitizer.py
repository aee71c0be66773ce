from __future__ import annotations

import re
import warnings
from typing import Any

from bs4 import BeautifulSoup, MarkupResemblesLocatorWarning

# <br>, <br/>, <br />, <BR class="x"> ...
_BR_RE = re.compile(r"<br\b[^>]*>", flags=re.IGNORECASE)

# Short options such as "index.html" look like file names to bs4.
warnings.filterwarnings("ignore", category=MarkupResemblesLocatorWarning)


def sanitize(html: Any) -> str:
    """
    Convert an HTML fragment into trimmed plain text.

    Line-break tags become "\\n" before parsing; everything else is reduced to
    its text content with entities decoded. Malformed markup still yields a
    best-effort string.
    """
    if not html:
        return ""
    text = _BR_RE.sub("\n", str(html))
    soup = BeautifulSoup(text, "html.parser")
    return soup.get_text().strip()
