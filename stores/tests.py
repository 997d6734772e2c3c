"""
Tests for the stores app: slug resolution, aggregation stages, services,
API endpoints and pages.
"""
import pytest
from django.core.management import call_command
from django.db import DatabaseError, IntegrityError, connection
from rest_framework import status

from conftest import make_store, add_reviews
from reviews.models import Review
from stores import aggregation, services
from stores.exceptions import SlugConflict
from stores.models import Store
from stores.slugs import make_base_slug, slug_pattern, next_slug, resolve_slug
from stores.utils import sanitize_text, sanitize_tags


# ============== Slug Tests ==============

class TestMakeBaseSlug:
    """Normalizing display names into base slugs"""

    def test_lowercases_and_hyphenates(self):
        assert make_base_slug('Wes Dogs') == 'wes-dogs'

    def test_punctuation_runs_become_single_hyphen(self):
        assert make_base_slug('Fish & Chips!!! Shop') == 'fish-chips-shop'

    def test_trims_leading_and_trailing_separators(self):
        assert make_base_slug('  --Hello__World--  ') == 'hello-world'

    def test_accents_are_folded(self):
        assert make_base_slug('Café Olé') == 'cafe-ole'

    def test_name_without_usable_characters_falls_back(self):
        assert make_base_slug('!!!') == 'store'


class TestSlugPattern:
    """Regex matching a base slug and its numbered variants"""

    @pytest.mark.parametrize('slug', ['foo', 'foo-2', 'foo-10', 'FOO-3'])
    def test_matches_base_and_numbered(self, slug):
        import re
        assert re.match(slug_pattern('foo'), slug, re.IGNORECASE)

    @pytest.mark.parametrize('slug', ['foobar', 'foo-bar', 'foo-', 'afoo', 'foo-2-3'])
    def test_rejects_other_slugs(self, slug):
        import re
        assert re.match(slug_pattern('foo'), slug, re.IGNORECASE) is None


class TestNextSlug:
    """Suffix policies"""

    def test_no_matches_keeps_base(self):
        assert next_slug('foo', []) == 'foo'

    def test_second_store_gets_suffix_two(self):
        assert next_slug('foo', ['foo']) == 'foo-2'

    def test_nth_store_gets_suffix_n(self):
        assert next_slug('foo', ['foo', 'foo-2', 'foo-3']) == 'foo-4'

    def test_count_policy_uses_number_of_matches(self):
        assert next_slug('foo', ['foo', 'foo-5'], policy='count') == 'foo-3'

    def test_max_policy_uses_highest_suffix(self):
        assert next_slug('foo', ['foo', 'foo-5'], policy='max') == 'foo-6'

    def test_max_policy_with_only_base(self):
        assert next_slug('foo', ['foo'], policy='max') == 'foo-2'

    def test_unknown_policy_raises(self):
        with pytest.raises(ValueError):
            next_slug('foo', ['foo'], policy='random')


class TestResolveSlug:
    """resolve_slug with an injected lookup"""

    def test_passes_pattern_to_lookup(self):
        seen = []

        def lookup(pattern):
            seen.append(pattern)
            return ['wes-dogs']

        assert resolve_slug('Wes Dogs', lookup) == 'wes-dogs-2'
        assert seen == [slug_pattern('wes-dogs')]

    def test_lookup_error_propagates(self):
        def lookup(pattern):
            raise DatabaseError('connection lost')

        with pytest.raises(DatabaseError):
            resolve_slug('Wes Dogs', lookup)


# ============== Sanitization Tests ==============

class TestSanitize:
    """Markup stripping for user input"""

    def test_strips_tags_and_whitespace(self):
        assert sanitize_text('  <b>Bold</b> Cafe  ') == 'Bold Cafe'

    def test_keeps_ampersands_literal(self):
        assert sanitize_text('Fish & Chips') == 'Fish & Chips'

    def test_encoded_markup_is_stripped(self):
        assert sanitize_text('&lt;script&gt;alert(1)&lt;/script&gt;Hi') == 'alert(1)Hi'
        assert sanitize_text('&lt;img src=x onerror=alert(1)&gt;') == ''

    def test_double_encoded_markup_is_stripped(self):
        assert sanitize_text('&amp;lt;b&amp;gt;Bold&amp;lt;/b&amp;gt;') == 'Bold'

    def test_markup_hidden_inside_markup(self):
        assert '<' not in sanitize_text('<scr<script>ipt>alert(1)</script>')

    def test_keeps_lone_angle_brackets(self):
        assert sanitize_text('5 < 6') == '5 < 6'

    def test_empty_values(self):
        assert sanitize_text('') == ''
        assert sanitize_text(None) == ''

    def test_tags_keep_order_and_duplicates(self):
        assert sanitize_tags(['<i>Wifi</i>', '', 'Wifi', ' Open Late ']) == ['Wifi', 'Wifi', 'Open Late']


# ============== Save Store Tests ==============

@pytest.mark.django_db
class TestSaveStore:
    """Slug assignment when stores are written through the service layer"""

    def test_first_store_gets_base_slug(self, user):
        store = make_store(user, 'Test')
        assert store.slug == 'test'

    def test_nth_store_with_same_base_gets_suffix(self, user):
        slugs = [make_store(user, name).slug for name in ['Test', 'test', 'TEST!', ' Test ']]
        assert slugs == ['test', 'test-2', 'test-3', 'test-4']

    def test_prefix_names_do_not_collide(self, user):
        make_store(user, 'Test')
        assert make_store(user, 'Testing').slug == 'testing'

    def test_slug_unchanged_when_name_unchanged(self, user, monkeypatch):
        store = make_store(user, 'Test')
        make_store(user, 'Test')

        calls = []
        real_lookup = services.matching_slugs

        def spy(pattern, exclude_pk=None):
            calls.append(pattern)
            return real_lookup(pattern, exclude_pk=exclude_pk)

        monkeypatch.setattr(services, 'matching_slugs', spy)

        store.description = 'New description'
        services.save_store(store)

        loaded = Store.objects.get(pk=store.pk)
        loaded.tags = ['Wifi']
        services.save_store(loaded)

        assert Store.objects.get(pk=store.pk).slug == 'test'
        assert calls == []

    def test_rename_to_same_base_excludes_itself(self, user):
        store = make_store(user, 'Test')
        store.name = 'TEST'
        services.save_store(store)
        assert store.slug == 'test'

    def test_rename_to_same_base_keeps_slug_when_sibling_holds_suffix(self, user, monkeypatch):
        first = make_store(user, 'Foo')
        second = make_store(user, 'Foo')

        calls = []
        real_lookup = services.matching_slugs

        def spy(pattern, exclude_pk=None):
            calls.append(pattern)
            return real_lookup(pattern, exclude_pk=exclude_pk)

        monkeypatch.setattr(services, 'matching_slugs', spy)

        first.name = 'FOO'
        services.save_store(first)

        assert Store.objects.get(pk=first.pk).slug == 'foo'
        assert Store.objects.get(pk=second.pk).slug == 'foo-2'
        assert calls == []

    def test_rename_within_base_then_away_and_back(self, user):
        make_store(user, 'Foo')
        second = make_store(user, 'Foo')

        second.name = 'Bar'
        services.save_store(second)
        assert second.slug == 'bar'

        second.name = 'Foo'
        services.save_store(second)
        assert second.slug == 'foo-2'

    def test_rename_keeps_suffix_when_others_share_base(self, user):
        make_store(user, 'Test')
        second = make_store(user, 'Test')
        second.name = 'Test!'
        services.save_store(second)
        assert second.slug == 'test-2'

    def test_rename_to_new_name_changes_slug(self, user):
        store = make_store(user, 'Test')
        store.name = 'Other Place'
        services.save_store(store)
        assert Store.objects.get(pk=store.pk).slug == 'other-place'

    def test_count_policy_reused_suffix_is_retried(self, user):
        make_store(user, 'Foo')
        second = make_store(user, 'Foo')
        make_store(user, 'Foo')
        second.delete()

        # 'foo' and 'foo-3' match, so the count policy proposes the taken 'foo-3'
        assert make_store(user, 'Foo').slug == 'foo-4'

    def test_max_policy_from_settings(self, user, settings):
        settings.STORES = {**settings.STORES, 'SLUG_SUFFIX_POLICY': 'max'}
        make_store(user, 'Foo')
        make_store(user, 'Foo 5')
        assert make_store(user, 'Foo').slug == 'foo-6'

    def test_count_policy_by_default(self, user):
        make_store(user, 'Foo')
        make_store(user, 'Foo 5')
        assert make_store(user, 'Foo').slug == 'foo-3'

    def test_concurrent_writers_get_distinct_slugs(self, user, monkeypatch):
        first = make_store(user, 'Test')

        calls = []
        real_lookup = services.matching_slugs

        def stale_then_real(pattern, exclude_pk=None):
            calls.append(pattern)
            if len(calls) == 1:
                # the other writer's row is not visible to the first lookup
                return []
            return real_lookup(pattern, exclude_pk=exclude_pk)

        monkeypatch.setattr(services, 'matching_slugs', stale_then_real)
        second = make_store(user, 'Test')

        assert first.slug == 'test'
        assert second.slug == 'test-2'
        assert len(calls) == 2

    def test_gives_up_after_retries(self, user, monkeypatch):
        make_store(user, 'Test')
        monkeypatch.setattr(services, 'matching_slugs', lambda pattern, exclude_pk=None: [])

        store = Store(
            name='Test', author=user, longitude=0, latitude=0, address='Somewhere'
        )
        with pytest.raises(SlugConflict):
            services.save_store(store, retries=2)
        assert Store.objects.filter(name='Test').count() == 1

    def test_lookup_failure_aborts_write(self, user, monkeypatch):
        def failing_lookup(pattern, exclude_pk=None):
            raise DatabaseError('lookup failed')

        monkeypatch.setattr(services, 'matching_slugs', failing_lookup)
        with pytest.raises(DatabaseError):
            make_store(user, 'Broken')
        assert not Store.objects.filter(name='Broken').exists()

    def test_unrelated_integrity_error_propagates(self, user, monkeypatch):
        def failing_save(self, *args, **kwargs):
            raise IntegrityError('NOT NULL constraint failed: stores.address')

        monkeypatch.setattr(Store, 'save', failing_save)
        store = Store(name='Test', author=user, longitude=0, latitude=0, address='')
        with pytest.raises(IntegrityError):
            services.save_store(store)


# ============== Aggregation Stage Tests ==============

class TestAggregationStages:
    """Each pipeline stage on plain records"""

    def test_unwind(self):
        records = [{'id': 1, 'tags': ['x', 'y']}, {'id': 2, 'tags': []}, {'id': 3}]
        assert aggregation.unwind(records, 'tags') == [
            {'id': 1, 'tags': 'x'},
            {'id': 1, 'tags': 'y'},
        ]

    def test_group_count(self):
        records = [{'tags': 'x'}, {'tags': 'y'}, {'tags': 'x'}]
        assert aggregation.group_count(records, 'tags', as_field='tag') == [
            {'tag': 'x', 'count': 2},
            {'tag': 'y', 'count': 1},
        ]

    def test_sort_by_is_stable(self):
        records = [{'k': 1, 'n': 'a'}, {'k': 2, 'n': 'b'}, {'k': 1, 'n': 'c'}]
        result = aggregation.sort_by(records, 'k', descending=True)
        assert [r['n'] for r in result] == ['b', 'a', 'c']

    def test_lookup_is_a_left_join(self):
        stores = [{'id': 1}, {'id': 2}]
        reviews = [{'store_id': 1, 'rating': 4}, {'store_id': 1, 'rating': 2}]
        result = aggregation.lookup(stores, reviews, 'id', 'store_id', 'reviews')
        assert len(result[0]['reviews']) == 2
        assert result[1]['reviews'] == []

    def test_match_min_length(self):
        records = [{'r': []}, {'r': [1]}, {'r': [1, 2]}, {'r': [1, 2, 3]}]
        assert aggregation.match_min_length(records, 'r', 2) == [{'r': [1, 2]}, {'r': [1, 2, 3]}]

    def test_add_average_keeps_precision(self):
        records = [{'reviews': [{'rating': 5}, {'rating': 4}, {'rating': 5}]}, {'reviews': []}]
        result = aggregation.add_average(records, 'reviews', 'rating', 'average_rating')
        assert result[0]['average_rating'] == pytest.approx(14 / 3)
        assert result[1]['average_rating'] is None

    def test_limit(self):
        assert aggregation.limit(iter(range(20)), 10) == list(range(10))

    def test_stages_do_not_mutate_input(self):
        records = [{'id': 1, 'tags': ['x']}]
        aggregation.unwind(records, 'tags')
        aggregation.lookup(records, [], 'id', 'store_id', 'reviews')
        assert records == [{'id': 1, 'tags': ['x']}]

    def test_run_pipeline_applies_stages_in_order(self):
        result = aggregation.run_pipeline(
            [3, 1, 2],
            sorted,
            lambda records: [r * 10 for r in records],
        )
        assert result == [10, 20, 30]


class TestTagFrequency:
    """Tag counting across stores"""

    def test_counts_and_orders_tags(self):
        stores = [{'tags': ['x', 'y']}, {'tags': ['x']}, {'tags': []}]
        assert aggregation.tag_frequency(stores) == [
            {'tag': 'x', 'count': 2},
            {'tag': 'y', 'count': 1},
        ]

    def test_duplicate_tags_within_a_store_count_twice(self):
        assert aggregation.tag_frequency([{'tags': ['x', 'x']}]) == [{'tag': 'x', 'count': 2}]

    def test_no_stores(self):
        assert aggregation.tag_frequency([]) == []


class TestTopRated:
    """Top-rated pipeline on plain records"""

    def test_requires_two_reviews(self):
        stores = [{'id': 'S'}, {'id': 'T'}]
        reviews = [
            {'store_id': 'S', 'rating': 3},
            {'store_id': 'S', 'rating': 5},
            {'store_id': 'T', 'rating': 5},
        ]
        result = aggregation.top_rated(stores, reviews)
        assert [r['id'] for r in result] == ['S']
        assert result[0]['average_rating'] == 4
        assert len(result[0]['reviews']) == 2

    def test_limits_to_ten_sorted_descending(self):
        stores = [{'id': i} for i in range(11)]
        reviews = []
        for i in range(11):
            reviews.append({'store_id': i, 'rating': 1 + (i % 5)})
            reviews.append({'store_id': i, 'rating': 5})
        result = aggregation.top_rated(stores, reviews)
        averages = [r['average_rating'] for r in result]
        assert len(result) == 10
        assert averages == sorted(averages, reverse=True)

    def test_custom_thresholds(self):
        stores = [{'id': 1}, {'id': 2}]
        reviews = [{'store_id': 1, 'rating': 2}, {'store_id': 2, 'rating': 4}]
        result = aggregation.top_rated(stores, reviews, min_reviews=1, count=1)
        assert [r['id'] for r in result] == [2]


# ============== Read Service Tests ==============

@pytest.mark.django_db
class TestReadServices:
    """Database-backed aggregation and joins"""

    def test_get_tags_list(self, user):
        make_store(user, 'A', tags=['x', 'y'])
        make_store(user, 'B', tags=['x'])
        make_store(user, 'C', tags=[])
        assert services.get_tags_list() == [
            {'tag': 'x', 'count': 2},
            {'tag': 'y', 'count': 1},
        ]

    def test_get_top_stores(self, user, other_user):
        s = make_store(user, 'S')
        t = make_store(user, 'T')
        add_reviews(s, other_user, [3, 5])
        add_reviews(t, other_user, [5])

        top = services.get_top_stores()

        assert [record['id'] for record in top] == [s.pk]
        assert top[0]['average_rating'] == 4
        assert top[0]['slug'] == 's'
        assert {review['rating'] for review in top[0]['reviews']} == {3, 5}

    def test_get_top_stores_limit(self, user, other_user):
        for i in range(11):
            add_reviews(make_store(user, f'Store {i}'), other_user, [5, 1 + (i % 5)])

        top = services.get_top_stores()
        averages = [record['average_rating'] for record in top]

        assert len(top) == 10
        assert averages == sorted(averages, reverse=True)

    def test_top_stores_limit_from_settings(self, user, other_user, settings):
        settings.STORES = {**settings.STORES, 'TOP_STORES_LIMIT': 1}
        add_reviews(make_store(user, 'One'), other_user, [5, 5])
        add_reviews(make_store(user, 'Two'), other_user, [4, 4])
        assert [record['name'] for record in services.get_top_stores()] == ['One']

    def test_reviews_not_joined_by_default(self, store):
        loaded = services.store_queryset().get(pk=store.pk)
        assert 'reviews' not in getattr(loaded, '_prefetched_objects_cache', {})

    def test_with_reviews_joins(self, store, other_user, django_assert_num_queries):
        add_reviews(store, other_user, [4, 2])
        with django_assert_num_queries(2):
            loaded = services.store_queryset(expand_reviews=True).get(pk=store.pk)
            ratings = sorted(review.rating for review in loaded.reviews.all())
        assert ratings == [2, 4]

    def test_autopopulate_setting(self, store, settings):
        settings.STORES = {**settings.STORES, 'AUTOPOPULATE_REVIEWS': True}
        loaded = services.store_queryset().get(pk=store.pk)
        assert 'reviews' in loaded._prefetched_objects_cache

    def test_stores_with_tag(self, store, store2):
        assert list(services.stores_with_tag('Open Late')) == [store]
        assert set(services.stores_with_tag('Wifi')) == {store, store2}
        assert list(services.stores_with_tag('Missing')) == []

    def test_stores_with_tag_scan(self, store, store2, monkeypatch):
        monkeypatch.setattr(connection.features, 'supports_json_field_contains', False)
        assert list(services.stores_with_tag('Open Late')) == [store]
        assert set(services.stores_with_tag('Wifi')) == {store, store2}

    @pytest.mark.skipif(
        not connection.features.supports_json_field_contains,
        reason='backend has no JSON containment lookup'
    )
    def test_stores_with_tag_filters_in_database(self, store, store2, django_assert_num_queries):
        with django_assert_num_queries(1):
            assert list(services.stores_with_tag('Open Late')) == [store]

    def test_stores_with_tag_matches_whole_tags(self, user):
        make_store(user, 'Late Cafe', tags=['Late'])
        assert list(services.stores_with_tag('Lat')) == []


# ============== Store API Tests ==============

@pytest.mark.django_db
class TestStoreAPI:
    """Store endpoints"""

    def test_list_is_public(self, api_client, store, store2):
        response = api_client.get('/api/stores/')
        assert response.status_code == status.HTTP_200_OK
        assert response.data['count'] == 2
        assert 'reviews' not in response.data['results'][0]

    def test_list_expand_reviews(self, api_client, store, other_user):
        add_reviews(store, other_user, [5])
        response = api_client.get('/api/stores/', {'expand': 'reviews'})
        assert response.status_code == status.HTTP_200_OK
        assert response.data['results'][0]['reviews'][0]['rating'] == 5

    def test_list_filter_by_tag(self, api_client, store, store2):
        response = api_client.get('/api/stores/', {'tag': 'Open Late'})
        assert response.status_code == status.HTTP_200_OK
        assert [s['slug'] for s in response.data['results']] == ['test-store']

    def test_list_search(self, api_client, store, store2):
        response = api_client.get('/api/stores/', {'search': 'Second'})
        assert [s['slug'] for s in response.data['results']] == ['second-store']

    def test_list_filter_by_author(self, api_client, store, other_user):
        make_store(other_user, 'Scott Shop')
        response = api_client.get('/api/stores/', {'author': other_user.id})
        assert [s['slug'] for s in response.data['results']] == ['scott-shop']

    def test_create_requires_authentication(self, api_client, store_payload):
        response = api_client.post('/api/stores/', store_payload, format='json')
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_create_store(self, user_client, user, store_payload):
        response = user_client.post('/api/stores/', store_payload, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['slug'] == 'coffee-corner'
        assert response.data['author'] == {'id': user.id, 'name': 'Wes'}
        assert response.data['location'] == {
            'type': 'Point',
            'coordinates': [-79.38, 43.65],
            'address': '10 Queen St',
        }
        store = Store.objects.get(pk=response.data['id'])
        assert store.author == user
        assert store.tags == ['Wifi', 'Vegetarian']

    def test_create_same_name_gets_suffix(self, user_client, store_payload):
        user_client.post('/api/stores/', store_payload, format='json')
        response = user_client.post('/api/stores/', store_payload, format='json')
        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['slug'] == 'coffee-corner-2'

    def test_create_strips_markup(self, user_client, store_payload):
        store_payload['name'] = '<b>Bold</b> Cafe'
        store_payload['description'] = '<script>alert(1)</script>Nice'
        response = user_client.post('/api/stores/', store_payload, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['name'] == 'Bold Cafe'
        assert response.data['description'] == 'alert(1)Nice'
        assert response.data['slug'] == 'bold-cafe'

    def test_create_strips_encoded_markup(self, user_client, store_payload):
        store_payload['name'] = '&lt;b&gt;Bold&lt;/b&gt; Cafe'
        store_payload['description'] = '&lt;img src=x onerror=alert(1)&gt;Nice'
        response = user_client.post('/api/stores/', store_payload, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['name'] == 'Bold Cafe'
        assert response.data['description'] == 'Nice'
        assert Store.objects.get(pk=response.data['id']).description == 'Nice'

    def test_create_missing_name(self, user_client, store_payload):
        del store_payload['name']
        response = user_client.post('/api/stores/', store_payload, format='json')
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['name'] == ['Please enter a store name!']

    def test_create_markup_only_name(self, user_client, store_payload):
        store_payload['name'] = '<b></b>'
        response = user_client.post('/api/stores/', store_payload, format='json')
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['name'] == ['Please enter a store name!']

    def test_create_missing_address(self, user_client, store_payload):
        del store_payload['location']['address']
        response = user_client.post('/api/stores/', store_payload, format='json')
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['location']['address'] == ['You must supply an address!']

    def test_create_missing_coordinates(self, user_client, store_payload):
        del store_payload['location']['coordinates']
        response = user_client.post('/api/stores/', store_payload, format='json')
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['location']['coordinates'] == ['You must supply the coordinates!']

    def test_create_invalid_coordinates(self, user_client, store_payload):
        store_payload['location']['coordinates'] = [-200, 43.65]
        response = user_client.post('/api/stores/', store_payload, format='json')
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'coordinates' in response.data['location']

    def test_update_name_changes_slug(self, user_client, store):
        response = user_client.patch(f'/api/stores/{store.id}/', {'name': 'Renamed'}, format='json')
        assert response.status_code == status.HTTP_200_OK
        assert response.data['slug'] == 'renamed'

    def test_update_other_fields_keeps_slug(self, user_client, store):
        response = user_client.patch(
            f'/api/stores/{store.id}/',
            {'description': 'Updated', 'location': {'address': '2 New Street'}},
            format='json'
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.data['slug'] == 'test-store'
        store.refresh_from_db()
        assert store.address == '2 New Street'
        assert store.longitude == -79.38

    def test_only_author_can_update(self, other_user_client, store):
        response = other_user_client.patch(f'/api/stores/{store.id}/', {'name': 'Mine'}, format='json')
        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_only_author_can_delete(self, other_user_client, user_client, store):
        response = other_user_client.delete(f'/api/stores/{store.id}/')
        assert response.status_code == status.HTTP_403_FORBIDDEN

        response = user_client.delete(f'/api/stores/{store.id}/')
        assert response.status_code == status.HTTP_204_NO_CONTENT
        assert not Store.objects.filter(pk=store.id).exists()

    def test_by_slug_includes_reviews(self, api_client, store, other_user):
        add_reviews(store, other_user, [4])
        response = api_client.get('/api/stores/slug/test-store/')
        assert response.status_code == status.HTTP_200_OK
        assert response.data['id'] == store.id
        assert response.data['reviews'][0]['author']['name'] == 'Scott'

    def test_by_slug_not_found(self, api_client):
        response = api_client.get('/api/stores/slug/nowhere/')
        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_tags_endpoint(self, api_client, store, store2):
        response = api_client.get('/api/stores/tags/')
        assert response.status_code == status.HTTP_200_OK
        assert response.data == [
            {'tag': 'Wifi', 'count': 2},
            {'tag': 'Open Late', 'count': 1},
        ]

    def test_top_endpoint(self, api_client, store, store2, other_user):
        add_reviews(store, other_user, [3, 5])
        add_reviews(store2, other_user, [5])
        response = api_client.get('/api/stores/top/')
        assert response.status_code == status.HTTP_200_OK
        assert len(response.data) == 1
        assert response.data[0]['slug'] == 'test-store'
        assert response.data[0]['average_rating'] == 4.0
        assert response.data[0]['review_count'] == 2

    def test_top_endpoint_includes_reviews_and_location(self, api_client, store, user, other_user):
        add_reviews(store, other_user, [3, 5])
        response = api_client.get('/api/stores/top/')

        record = response.data[0]
        assert record['author'] == user.id
        assert record['location'] == {
            'type': 'Point',
            'coordinates': [-79.38, 43.65],
            'address': '1 Test Street',
        }
        assert sorted(r['rating'] for r in record['reviews']) == [3, 5]
        assert {r['author'] for r in record['reviews']} == {other_user.id}
        assert record['reviews'][0]['text'] in ('3 stars', '5 stars')


# ============== Page Tests ==============

@pytest.mark.django_db
class TestStorePages:
    """Server-rendered store pages"""

    def test_home_lists_stores(self, client, store, store2):
        response = client.get('/')
        assert response.status_code == 200
        assert set(response.context['stores']) == {store, store2}
        assert b'Test Store' in response.content

    def test_store_page_shows_reviews(self, client, store, other_user):
        add_reviews(store, other_user, [4])
        response = client.get('/store/test-store/')
        assert response.status_code == 200
        assert response.context['store'] == store
        assert b'4 stars' in response.content

    def test_store_page_not_found(self, client):
        response = client.get('/store/missing/')
        assert response.status_code == 404

    def test_tags_page(self, client, store, store2):
        response = client.get('/tags/')
        assert response.status_code == 200
        assert response.context['tags'][0] == {'tag': 'Wifi', 'count': 2}

    def test_tag_page_filters_stores(self, client, store, store2):
        response = client.get('/tags/Open%20Late/')
        assert response.status_code == 200
        assert response.context['tag'] == 'Open Late'
        assert list(response.context['stores']) == [store]

    def test_top_page(self, client, store, other_user):
        add_reviews(store, other_user, [5, 4])
        response = client.get('/top/')
        assert response.status_code == 200
        assert response.context['stores'][0]['average_rating'] == 4.5


# ============== Management Command Tests ==============

@pytest.mark.django_db
class TestLoadDemoData:
    """load_demo_data command"""

    def test_loads_stores_and_reviews(self):
        call_command('load_demo_data')

        assert Store.objects.count() == 4
        assert Store.objects.filter(slug='wes-dogs').exists()
        assert Review.objects.count() == 8

        top = services.get_top_stores()
        assert top[0]['slug'] == 'wes-dogs'
        assert 'late-night-slice' not in [record['slug'] for record in top]

    def test_loading_twice_suffixes_slugs(self):
        call_command('load_demo_data')
        call_command('load_demo_data')
        assert Store.objects.filter(slug='wes-dogs-2').exists()

    def test_clear_removes_existing(self):
        call_command('load_demo_data')
        call_command('load_demo_data', '--clear')
        assert Store.objects.count() == 4
        assert Store.objects.filter(slug='wes-dogs').exists()
