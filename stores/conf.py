"""
Store app settings, read from the STORES dict in Django settings.
"""
from django.conf import settings

DEFAULTS = {
    'SLUG_SUFFIX_POLICY': 'count',
    'SLUG_SAVE_RETRIES': 3,
    'AUTOPOPULATE_REVIEWS': False,
    'TOP_STORES_LIMIT': 10,
    'TOP_STORES_MIN_REVIEWS': 2,
}


def stores_setting(name):
    """Return a store setting, falling back to its default."""
    if name not in DEFAULTS:
        raise KeyError(f"Unknown store setting: {name}")
    return getattr(settings, 'STORES', {}).get(name, DEFAULTS[name])
