"""
Input sanitization shared by the store, review and account serializers.
"""
import html

import bleach

# No markup survives: tags are stripped, their text content kept.
ALLOWED_TAGS = set()
ALLOWED_ATTRIBUTES = {}

MAX_PASSES = 5


def _clean(value):
    return bleach.clean(
        value,
        tags=ALLOWED_TAGS,
        attributes=ALLOWED_ATTRIBUTES,
        strip=True,
        strip_comments=True,
    )


def _decode(value):
    """Decode entities until none are left, so &amp;lt; counts as <."""
    for _ in range(MAX_PASSES):
        decoded = html.unescape(value)
        if decoded == value:
            break
        value = decoded
    return value


def sanitize_text(value):
    """
    Strip HTML markup and surrounding whitespace from user input.

    Entities are decoded before cleaning, so encoded markup is stripped
    like literal markup. Cleaning repeats until bleach has nothing left to
    remove; the result is plain text with literal ampersands and brackets,
    escaped by templates on output.
    """
    if not value:
        return ''
    text = value
    for _ in range(MAX_PASSES):
        text = _decode(text)
        cleaned = html.unescape(_clean(text))
        if cleaned == text:
            return cleaned.strip()
        text = cleaned
    # Still changing after MAX_PASSES: keep bleach's escaped output.
    return _clean(_decode(text)).strip()


def sanitize_tags(tags):
    """Sanitize each tag, dropping the ones left empty. Order and duplicates are kept."""
    cleaned = (sanitize_text(tag) for tag in tags or [])
    return [tag for tag in cleaned if tag]
