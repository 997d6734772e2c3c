"""
Pytest fixtures for the store catalog tests.
Provides common test data and utilities for all test modules.
"""
import pytest
from datetime import timedelta
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient
from oauth2_provider.models import Application, AccessToken
from oauthlib.common import generate_token
from django.utils import timezone

User = get_user_model()


# ============== OAuth2 Application Fixture ==============

@pytest.fixture
def oauth_application(db):
    """Create OAuth2 application for testing - must match the name used in views"""
    return Application.objects.create(
        name='store-frontend',  # Must match the name used in login_view
        client_type=Application.CLIENT_PUBLIC,
        authorization_grant_type=Application.GRANT_PASSWORD,
    )


# ============== User Fixtures ==============

@pytest.fixture
def user(db):
    """Create a regular user"""
    return User.objects.create_user(
        email='wes@example.com',
        password='testpass123',
        name='Wes'
    )


@pytest.fixture
def other_user(db):
    """Create a second user for ownership tests"""
    return User.objects.create_user(
        email='scott@example.com',
        password='testpass123',
        name='Scott'
    )


# ============== Token Fixtures ==============

def create_access_token(user, application, scope='read write'):
    """Helper function to create access token"""
    expires = timezone.now() + timedelta(hours=1)
    return AccessToken.objects.create(
        user=user,
        application=application,
        token=generate_token(),
        expires=expires,
        scope=scope
    )


@pytest.fixture
def user_token(user, oauth_application):
    """Create access token for the regular user"""
    return create_access_token(user, oauth_application)


@pytest.fixture
def other_user_token(other_user, oauth_application):
    """Create access token for the second user"""
    return create_access_token(other_user, oauth_application)


# ============== API Client Fixtures ==============

@pytest.fixture
def api_client():
    """Create API test client"""
    return APIClient()


@pytest.fixture
def user_client(api_client, user_token):
    """API client authenticated as the regular user"""
    api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {user_token.token}')
    return api_client


@pytest.fixture
def other_user_client(other_user_token):
    """API client authenticated as the second user"""
    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {other_user_token.token}')
    return client


# ============== Store Fixtures ==============

def make_store(author, name, tags=None, **extra):
    """Create a store through the service layer so its slug is resolved"""
    from stores.services import create_store
    fields = {
        'description': f'{name} description',
        'longitude': -79.38,
        'latitude': 43.65,
        'address': '1 Test Street',
    }
    fields.update(extra)
    return create_store(author=author, name=name, tags=tags or [], **fields)


def add_reviews(store, author, ratings):
    """Attach one review per rating to a store"""
    from reviews.models import Review
    return [
        Review.objects.create(store=store, author=author, rating=rating, text=f'{rating} stars')
        for rating in ratings
    ]


@pytest.fixture
def store(db, user):
    """Create a test store"""
    return make_store(user, 'Test Store', tags=['Wifi', 'Open Late'])


@pytest.fixture
def store2(db, user):
    """Create a second test store"""
    return make_store(user, 'Second Store', tags=['Wifi'])


@pytest.fixture
def store_payload():
    """Valid JSON body for creating a store"""
    return {
        'name': 'Coffee Corner',
        'description': 'Good coffee',
        'tags': ['Wifi', 'Vegetarian'],
        'location': {
            'type': 'Point',
            'coordinates': [-79.38, 43.65],
            'address': '10 Queen St',
        },
    }
