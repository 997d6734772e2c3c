"""
Aggregation stages over plain records (dicts).

Each stage takes an iterable of records and returns a new list, so stages
can be tested on their own and chained with run_pipeline:

    run_pipeline(
        stores,
        partial(unwind, field='tags'),
        partial(group_count, field='tags', as_field='tag'),
        partial(sort_by, key='count', descending=True),
    )

Input records are never mutated; stages that add fields copy the record.
"""
from collections import defaultdict
from functools import partial


def run_pipeline(records, *stages):
    """Feed `records` through each stage in order."""
    result = records
    for stage in stages:
        result = stage(result)
    return list(result)


def unwind(records, field):
    """One output record per element of `record[field]`; empty or missing lists yield nothing."""
    output = []
    for record in records:
        for value in record.get(field) or []:
            output.append({**record, field: value})
    return output


def group_count(records, field, as_field=None):
    """
    Group records by `record[field]` and count each group.

    Groups come out in first-seen order as `{as_field: value, 'count': n}`.
    """
    counts = {}
    for record in records:
        value = record[field]
        counts[value] = counts.get(value, 0) + 1
    key = as_field or field
    return [{key: value, 'count': count} for value, count in counts.items()]


def sort_by(records, key, descending=False):
    """Stable sort on `record[key]`."""
    return sorted(records, key=lambda record: record[key], reverse=descending)


def lookup(records, foreign, local_field, foreign_field, as_field):
    """
    Left join: attach to each record the list of `foreign` records whose
    `foreign_field` equals the record's `local_field`. Records without a
    match get an empty list.
    """
    index = defaultdict(list)
    for item in foreign:
        index[item[foreign_field]].append(item)
    return [
        {**record, as_field: list(index.get(record[local_field], []))}
        for record in records
    ]


def match_min_length(records, field, minimum):
    """Keep records whose `record[field]` holds at least `minimum` elements."""
    return [record for record in records if len(record.get(field) or []) >= minimum]


def add_average(records, source, value_field, as_field):
    """
    Add `as_field` holding the unweighted mean of `value_field` over the
    items in `record[source]`, or None when there are none.
    """
    output = []
    for record in records:
        values = [item[value_field] for item in record.get(source) or []]
        average = sum(values) / len(values) if values else None
        output.append({**record, as_field: average})
    return output


def limit(records, count):
    """First `count` records."""
    return list(records)[:count]


def tag_frequency(stores):
    """
    Count how many times each tag is used across `stores`, most used first.

    Order among equal counts follows first appearance but is not part of
    the contract.
    """
    return run_pipeline(
        stores,
        partial(unwind, field='tags'),
        partial(group_count, field='tags', as_field='tag'),
        partial(sort_by, key='count', descending=True),
    )


def top_rated(stores, reviews, min_reviews=2, count=10):
    """
    Stores with at least `min_reviews` reviews, best average rating first,
    at most `count` of them. Each record gains `reviews` and `average_rating`.
    """
    return run_pipeline(
        stores,
        partial(lookup, foreign=reviews, local_field='id', foreign_field='store_id', as_field='reviews'),
        partial(match_min_length, field='reviews', minimum=max(min_reviews, 1)),
        partial(add_average, source='reviews', value_field='rating', as_field='average_rating'),
        partial(sort_by, key='average_rating', descending=True),
        partial(limit, count=count),
    )
