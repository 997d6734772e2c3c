"""
Store persistence and read-side queries.

save_store is the only place a store's slug is assigned: call it instead of
Store.save() whenever a store may have been renamed.
"""
import logging
from functools import partial

from django.db import IntegrityError, connection, transaction
from django.db.models import Prefetch

from reviews.models import Review
from . import aggregation
from .conf import stores_setting
from .exceptions import SlugConflict
from .models import Store
from .slugs import make_base_slug, matches_base, resolve_slug, POLICY_MAX

logger = logging.getLogger(__name__)

STORE_RECORD_FIELDS = (
    'id', 'name', 'slug', 'description', 'tags', 'created',
    'location_type', 'longitude', 'latitude', 'address', 'photo',
    'author_id',
)
REVIEW_RECORD_FIELDS = ('id', 'store_id', 'author_id', 'rating', 'text', 'created')


# Writes

def matching_slugs(pattern, exclude_pk=None):
    """Slugs matching `pattern` case-insensitively, ignoring the store `exclude_pk`."""
    queryset = Store.objects.filter(slug__iregex=pattern)
    if exclude_pk is not None:
        queryset = queryset.exclude(pk=exclude_pk)
    return list(queryset.values_list('slug', flat=True))


def slug_taken(store):
    return Store.objects.filter(slug=store.slug).exclude(pk=store.pk).exists()


def save_store(store, retries=None):
    """
    Persist `store`, resolving its slug first when the name changed.

    A store renamed to a name with the same base keeps its slug, and the
    store being written is excluded from the collision count. The slug
    column is unique; if the write collides (a concurrent write, or a
    count-based suffix reused after a deletion) the slug is resolved again
    with the max policy and the write retried, up to `retries` attempts in
    total before SlugConflict.
    """
    if not store.name_has_changed():
        store.save()
        return store

    # A rename within the same base keeps the slug the store already owns.
    if not store._state.adding and matches_base(store.slug, make_base_slug(store.name)):
        store.save()
        store.mark_name_saved()
        return store

    attempts = max(retries if retries is not None else stores_setting('SLUG_SAVE_RETRIES'), 1)
    policy = stores_setting('SLUG_SUFFIX_POLICY')
    lookup = partial(matching_slugs, exclude_pk=store.pk)

    for attempt in range(1, attempts + 1):
        store.slug = resolve_slug(store.name, lookup, policy if attempt == 1 else POLICY_MAX)
        try:
            with transaction.atomic():
                store.save()
        except IntegrityError:
            if not slug_taken(store):
                raise
            logger.warning(
                f"Slug {store.slug!r} already taken, retrying (attempt {attempt}/{attempts})"
            )
            continue
        store.mark_name_saved()
        logger.info(f"Saved store {store.pk} with slug {store.slug!r}")
        return store

    logger.error(f"Giving up on a unique slug for {store.name!r} after {attempts} attempts")
    raise SlugConflict()


def create_store(**fields):
    """Create a store from field values, resolving its slug."""
    return save_store(Store(**fields))


# Reads

def with_reviews(queryset):
    """Join each store's reviews (newest first) in one extra query."""
    return queryset.prefetch_related(
        Prefetch('reviews', queryset=Review.objects.select_related('author').order_by('-created'))
    )


def store_queryset(expand_reviews=False):
    """
    Base queryset for reading stores. Reviews are joined when asked for or
    when the AUTOPOPULATE_REVIEWS setting is on.
    """
    queryset = Store.objects.select_related('author')
    if expand_reviews or stores_setting('AUTOPOPULATE_REVIEWS'):
        queryset = with_reviews(queryset)
    return queryset


def stores_with_tag(tag, queryset=None):
    """
    Stores whose tag list contains `tag` exactly.

    Backends with JSON containment (PostgreSQL, MySQL) filter in the
    database. SQLite and Oracle cannot, so the tag lists are scanned here.
    """
    if queryset is None:
        queryset = store_queryset()
    if connection.features.supports_json_field_contains:
        return queryset.filter(tags__contains=[tag])
    ids = [
        pk for pk, tags in Store.objects.values_list('pk', 'tags').iterator()
        if tag in (tags or [])
    ]
    return queryset.filter(pk__in=ids)


def get_tags_list():
    """Tag usage counts across all stores, most used first."""
    records = Store.objects.values('tags').iterator()
    return aggregation.tag_frequency(records)


def get_top_stores():
    """Best-rated stores with enough reviews, as records with `average_rating` and `reviews`."""
    stores = Store.objects.values(*STORE_RECORD_FIELDS).iterator()
    reviews = Review.objects.values(*REVIEW_RECORD_FIELDS).iterator()
    return aggregation.top_rated(
        stores,
        reviews,
        min_reviews=stores_setting('TOP_STORES_MIN_REVIEWS'),
        count=stores_setting('TOP_STORES_LIMIT'),
    )
