"""
Unique slug resolution for stores.

A store's slug is derived from its display name. When other stores already
use the same base slug, a numeric suffix is appended:

    resolve_slug('Test', lookup)          # 'test'    when nothing matches
    resolve_slug('Test', lookup)          # 'test-2'  when 'test' exists
    resolve_slug('Test', lookup)          # 'test-3'  when 'test', 'test-2' exist

Functions here are pure; the database lookup is passed in by the caller
(see stores.services.save_store).
"""
import logging
import re

from django.utils.text import slugify

logger = logging.getLogger(__name__)

FALLBACK_SLUG = 'store'

POLICY_COUNT = 'count'
POLICY_MAX = 'max'
SUFFIX_POLICIES = (POLICY_COUNT, POLICY_MAX)

_SEPARATORS = re.compile(r'[\W_]+')


def make_base_slug(name):
    """
    Lowercase, hyphen-delimited slug for a display name.

    Runs of non-alphanumeric characters become a single hyphen and
    leading/trailing hyphens are trimmed. A name with no usable characters
    falls back to FALLBACK_SLUG.
    """
    base = slugify(_SEPARATORS.sub(' ', name or ''))
    return base or FALLBACK_SLUG


def slug_pattern(base):
    """
    Regex matching `base` alone or followed by `-<digits>`.

    `base` comes from make_base_slug so it only holds [a-z0-9-] and needs
    no escaping. Match it case-insensitively.
    """
    return rf'^{base}(-[0-9]+)?$'


def _suffix(slug, base):
    match = re.match(slug_pattern(base), slug, re.IGNORECASE)
    if match is None:
        return 0
    if match.group(1) is None:
        return 1
    return int(match.group(1)[1:])


def matches_base(slug, base):
    """True when `slug` is `base` or one of its numbered variants."""
    return _suffix(slug or '', base) > 0


def next_slug(base, existing, policy=POLICY_COUNT):
    """
    Pick the slug for a new write given the slugs already matching `base`.

    `count` appends one more than the number of matches, so `foo`, `foo-5`
    gives `foo-3`. `max` appends one more than the highest suffix seen, so
    the same input gives `foo-6`.
    """
    if policy not in SUFFIX_POLICIES:
        raise ValueError(f"Unknown slug suffix policy: {policy!r}")

    existing = list(existing)
    if not existing:
        return base

    if policy == POLICY_COUNT:
        number = len(existing) + 1
    else:
        number = max(_suffix(slug, base) for slug in existing) + 1
    return f"{base}-{number}"


def resolve_slug(name, lookup, policy=POLICY_COUNT):
    """
    Derive a unique slug for `name`.

    `lookup(pattern)` must return the existing slugs matching the regex
    `pattern` case-insensitively. Errors raised by it propagate.
    """
    base = make_base_slug(name)
    existing = list(lookup(slug_pattern(base)))
    slug = next_slug(base, existing, policy)
    logger.debug(f"Resolved slug {slug!r} for {name!r} ({len(existing)} existing)")
    return slug
