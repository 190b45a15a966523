"""
HTML Escaping Utilities for Email Templates

Prevents HTML injection attacks by escaping user-controllable data
before embedding it in HTML email bodies.

Security Note:
- ALWAYS use safe_html() for user-provided data (names, addresses, free-text answers)
- NEVER escape static template markup
- Escapes: < > & " ' to prevent tag injection and attribute breakout
"""

import html
from typing import Optional


def safe_html(text: Optional[str]) -> str:
    """
    Escapes HTML special characters in user-provided text.

    Args:
        text: User-provided value (business name, territory description, etc.)

    Returns:
        HTML-escaped string safe to embed in HTML

    Examples:
        >>> safe_html("Acme</td><script>alert(1)</script>")
        "Acme&lt;/td&gt;&lt;script&gt;alert(1)&lt;/script&gt;"

        >>> safe_html(None)
        ""
    """
    if text is None:
        return ""
    return html.escape(str(text), quote=True)


def safe_url(url: Optional[str]) -> str:
    """
    Sanitizes URLs for use in <a href> attributes.

    Basic validation to prevent javascript: and data: URI injection.

    Examples:
        >>> safe_url("https://example.com")
        "https://example.com"

        >>> safe_url("javascript:alert(1)")
        ""
    """
    if not url:
        return ""

    url_str = str(url).strip()

    # Only allow safe protocols
    safe_protocols = ["http://", "https://", "mailto:"]
    if not any(url_str.startswith(proto) for proto in safe_protocols):
        return ""

    return html.escape(url_str, quote=True)
