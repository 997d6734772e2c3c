"""
Tests for the reviews module: model, serializer and the per-store endpoint.
"""
import pytest
from rest_framework import status

from conftest import add_reviews
from reviews.models import Review
from reviews.serializers import ReviewSerializer


@pytest.mark.django_db
class TestReviewModel:
    """Test cases for Review model"""

    def test_reviews_are_reachable_from_store(self, store, other_user):
        add_reviews(store, other_user, [4, 5])
        assert sorted(r.rating for r in store.reviews.all()) == [4, 5]
        assert other_user.reviews.count() == 2

    def test_deleting_store_deletes_reviews(self, store, other_user):
        add_reviews(store, other_user, [3])
        store.delete()
        assert Review.objects.count() == 0

    def test_str(self, store, other_user):
        review, = add_reviews(store, other_user, [4])
        assert str(review) == f'4/5 for store {store.pk}'


class TestReviewSerializer:
    """Validation without the database"""

    @pytest.mark.parametrize('rating', [0, 6, -1])
    def test_rating_out_of_range(self, rating):
        serializer = ReviewSerializer(data={'text': 'Fine', 'rating': rating})
        assert not serializer.is_valid()
        assert 'rating' in serializer.errors

    def test_text_is_sanitized(self):
        serializer = ReviewSerializer(data={'text': '<em>Great</em> dogs ', 'rating': 5})
        assert serializer.is_valid(), serializer.errors
        assert serializer.validated_data['text'] == 'Great dogs'

    def test_markup_only_text(self):
        serializer = ReviewSerializer(data={'text': '<p></p>', 'rating': 5})
        assert not serializer.is_valid()
        assert serializer.errors['text'] == ['Your review must have text!']


@pytest.mark.django_db
class TestStoreReviewsAPI:
    """GET/POST /api/stores/<id>/reviews/"""

    def test_list_is_public(self, api_client, store, store2, other_user):
        add_reviews(store, other_user, [4, 2])
        add_reviews(store2, other_user, [5])

        response = api_client.get(f'/api/stores/{store.id}/reviews/')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['count'] == 2
        assert {r['rating'] for r in response.data['results']} == {4, 2}
        assert response.data['results'][0]['author'] == {'id': other_user.id, 'name': 'Scott'}

    def test_create_requires_authentication(self, api_client, store):
        response = api_client.post(
            f'/api/stores/{store.id}/reviews/',
            {'text': 'Great', 'rating': 5},
            format='json'
        )
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_create(self, other_user_client, other_user, store):
        response = other_user_client.post(
            f'/api/stores/{store.id}/reviews/',
            {'text': 'Great dogs', 'rating': 5},
            format='json'
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['store'] == store.id
        assert response.data['author']['id'] == other_user.id
        review = Review.objects.get(pk=response.data['id'])
        assert review.store == store
        assert review.author == other_user

    def test_create_ignores_author_in_body(self, other_user_client, other_user, user, store):
        response = other_user_client.post(
            f'/api/stores/{store.id}/reviews/',
            {'text': 'Great', 'rating': 4, 'author': user.id, 'store': 999},
            format='json'
        )
        assert response.status_code == status.HTTP_201_CREATED
        review = Review.objects.get(pk=response.data['id'])
        assert review.author == other_user
        assert review.store == store

    def test_create_invalid_rating(self, other_user_client, store):
        response = other_user_client.post(
            f'/api/stores/{store.id}/reviews/',
            {'text': 'Great', 'rating': 9},
            format='json'
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert Review.objects.count() == 0

    def test_create_for_missing_store(self, other_user_client):
        response = other_user_client.post(
            '/api/stores/99999/reviews/',
            {'text': 'Great', 'rating': 5},
            format='json'
        )
        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_new_review_counts_toward_top_stores(self, api_client, other_user_client, store, user):
        add_reviews(store, user, [3])
        other_user_client.post(
            f'/api/stores/{store.id}/reviews/',
            {'text': 'Great', 'rating': 5},
            format='json'
        )

        response = api_client.get('/api/stores/top/')

        assert [s['id'] for s in response.data] == [store.id]
        assert response.data[0]['average_rating'] == 4.0
