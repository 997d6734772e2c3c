"""
Tests for the users module.
Tests for: User model and manager, registration, login, logout, the
author permission, and the server-rendered account pages.
"""
import pytest
from django.contrib.messages import get_messages
from oauth2_provider.models import AccessToken, RefreshToken
from rest_framework import status
from rest_framework.test import APIRequestFactory

from users.models import User
from users.permissions import IsAuthorOrReadOnly
from users.serializers import RegisterSerializer, flatten_errors


def flashed(response):
    return [str(message) for message in get_messages(response.wsgi_request)]


@pytest.fixture
def registration():
    """Valid registration body"""
    return {
        'name': 'Wes Bos',
        'email': 'New.Person@Example.com',
        'password': 'secret123',
        'password_confirm': 'secret123',
    }


# ============== User Model Tests ==============

@pytest.mark.django_db
class TestUserModel:
    """Test cases for User model"""

    def test_create_user(self):
        user = User.objects.create_user(email='test@example.com', password='testpass123', name='Test')

        assert user.email == 'test@example.com'
        assert user.name == 'Test'
        assert user.check_password('testpass123')
        assert not user.is_staff

    def test_email_is_normalized(self):
        user = User.objects.create_user(email='  Mixed.Case@Example.COM ', password='x', name='Mixed')
        assert user.email == 'mixed.case@example.com'

    def test_email_required(self):
        with pytest.raises(ValueError):
            User.objects.create_user(email='', password='x', name='Nobody')

    def test_create_superuser(self):
        admin = User.objects.create_superuser(email='admin@example.com', password='x', name='Admin')
        assert admin.is_staff
        assert admin.is_superuser

    def test_str(self, user):
        assert str(user) == 'Wes <wes@example.com>'


# ============== Registration Tests ==============

@pytest.mark.django_db
class TestRegisterSerializer:
    """Registration validation messages"""

    def test_valid(self, registration):
        serializer = RegisterSerializer(data=registration)
        assert serializer.is_valid(), serializer.errors
        assert serializer.validated_data['email'] == 'new.person@example.com'

    def test_missing_name(self, registration):
        registration['name'] = ''
        serializer = RegisterSerializer(data=registration)
        assert not serializer.is_valid()
        assert serializer.errors['name'] == ['You must supply a name!']

    def test_markup_only_name(self, registration):
        registration['name'] = '<b></b>'
        serializer = RegisterSerializer(data=registration)
        assert not serializer.is_valid()
        assert serializer.errors['name'] == ['You must supply a name!']

    def test_invalid_email(self, registration):
        registration['email'] = 'not-an-email'
        serializer = RegisterSerializer(data=registration)
        assert not serializer.is_valid()
        assert serializer.errors['email'] == ['That email is not valid!']

    def test_blank_password(self, registration):
        registration['password'] = ''
        serializer = RegisterSerializer(data=registration)
        assert not serializer.is_valid()
        assert serializer.errors['password'] == ['Password can not be blank!']

    def test_missing_confirmation(self, registration):
        del registration['password_confirm']
        serializer = RegisterSerializer(data=registration)
        assert not serializer.is_valid()
        assert serializer.errors['password_confirm'] == ['You must confirm the password!']

    def test_passwords_must_match(self, registration):
        registration['password_confirm'] = 'different'
        serializer = RegisterSerializer(data=registration)
        assert not serializer.is_valid()
        assert serializer.errors['password_confirm'] == ['Ooopss! Your passwords do not match!']

    def test_duplicate_email_any_case(self, user, registration):
        registration['email'] = 'WES@example.com'
        serializer = RegisterSerializer(data=registration)
        assert not serializer.is_valid()
        assert serializer.errors['email'] == ['A user with that email already exists.']

    def test_flatten_errors(self):
        serializer = RegisterSerializer(data={})
        assert not serializer.is_valid()
        assert set(flatten_errors(serializer.errors)) == {
            'You must supply a name!',
            'That email is not valid!',
            'Password can not be blank!',
            'You must confirm the password!',
        }


@pytest.mark.django_db
class TestRegisterAPI:
    """POST /api/auth/register/"""

    def test_register(self, api_client, registration):
        response = api_client.post('/api/auth/register/', registration, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['email'] == 'new.person@example.com'
        assert response.data['name'] == 'Wes Bos'
        assert 'password' not in response.data
        assert User.objects.get(email='new.person@example.com').check_password('secret123')

    def test_register_invalid(self, api_client, registration):
        registration['password_confirm'] = 'nope'
        response = api_client.post('/api/auth/register/', registration, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert not User.objects.filter(email='new.person@example.com').exists()


# ============== Authentication Tests ==============

@pytest.mark.django_db
class TestAuthAPI:
    """Token login, logout and current user"""

    def test_login(self, api_client, user):
        response = api_client.post(
            '/api/auth/login/',
            {'email': 'WES@example.com', 'password': 'testpass123'},
            format='json'
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data['token_type'] == 'Bearer'
        assert response.data['user']['email'] == 'wes@example.com'
        assert AccessToken.objects.filter(token=response.data['access_token'], user=user).exists()
        assert RefreshToken.objects.filter(token=response.data['refresh_token']).exists()

    def test_login_token_authenticates(self, api_client, user):
        response = api_client.post(
            '/api/auth/login/',
            {'email': 'wes@example.com', 'password': 'testpass123'},
            format='json'
        )
        api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {response.data['access_token']}")

        response = api_client.get('/api/auth/me/')
        assert response.status_code == status.HTTP_200_OK
        assert response.data['id'] == user.id

    def test_login_wrong_password(self, api_client, user):
        response = api_client.post(
            '/api/auth/login/',
            {'email': 'wes@example.com', 'password': 'wrong'},
            format='json'
        )
        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.data['error'] == 'Invalid credentials'

    def test_login_missing_fields(self, api_client):
        response = api_client.post('/api/auth/login/', {}, format='json')
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['error'] == 'Email and password are required'

    def test_me_requires_authentication(self, api_client):
        response = api_client.get('/api/auth/me/')
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_me(self, user_client, user):
        response = user_client.get('/api/auth/me/')
        assert response.status_code == status.HTTP_200_OK
        assert response.data['email'] == user.email
        assert response.data['name'] == 'Wes'

    def test_logout_revokes_token(self, user_client, user_token):
        response = user_client.post('/api/auth/logout/')
        assert response.status_code == status.HTTP_200_OK
        assert not AccessToken.objects.filter(pk=user_token.pk).exists()

        response = user_client.get('/api/auth/me/')
        assert response.status_code == status.HTTP_401_UNAUTHORIZED


# ============== Permission Tests ==============

@pytest.mark.django_db
class TestIsAuthorOrReadOnly:
    """Author-only writes"""

    def make_request(self, method, user):
        factory = APIRequestFactory()
        request = getattr(factory, method)('/')
        request.user = user
        return request

    def test_read_allowed_for_anyone(self, store, other_user):
        permission = IsAuthorOrReadOnly()
        request = self.make_request('get', other_user)
        assert permission.has_permission(request, None)
        assert permission.has_object_permission(request, None, store)

    def test_write_allowed_for_author(self, store, user):
        permission = IsAuthorOrReadOnly()
        request = self.make_request('patch', user)
        assert permission.has_object_permission(request, None, store)

    def test_write_denied_for_others(self, store, other_user):
        permission = IsAuthorOrReadOnly()
        request = self.make_request('patch', other_user)
        assert permission.has_permission(request, None)
        assert not permission.has_object_permission(request, None, store)


# ============== Page Tests ==============

@pytest.mark.django_db
class TestAccountPages:
    """Register, login and logout forms"""

    def test_register_form_renders(self, client):
        response = client.get('/register/')
        assert response.status_code == 200
        assert response.context['title'] == 'Register'

    def test_register_logs_in(self, client, registration):
        response = client.post('/register/', registration)

        assert response.status_code == 302
        assert response.url == '/'
        assert 'You are now logged in!' in flashed(response)
        user = User.objects.get(email='new.person@example.com')
        assert int(client.session['_auth_user_id']) == user.pk

    def test_register_errors_are_flashed_and_form_refilled(self, client, registration):
        registration['password_confirm'] = 'different'
        response = client.post('/register/', registration)

        assert response.status_code == 200
        assert response.context['body'] == {'name': 'Wes Bos', 'email': 'New.Person@Example.com'}
        assert b'Ooopss! Your passwords do not match!' in response.content
        assert b'secret123' not in response.content
        assert not User.objects.filter(email='new.person@example.com').exists()

    def test_login_form_renders(self, client):
        response = client.get('/login/')
        assert response.status_code == 200
        assert response.context['title'] == 'Login'

    def test_login(self, client, user):
        response = client.post('/login/', {'email': 'wes@example.com', 'password': 'testpass123'})

        assert response.status_code == 302
        assert response.url == '/'
        assert 'You are now logged in!' in flashed(response)
        assert int(client.session['_auth_user_id']) == user.pk

    def test_failed_login(self, client, user):
        response = client.post('/login/', {'email': 'wes@example.com', 'password': 'wrong'})

        assert response.status_code == 302
        assert response.url == '/login/'
        assert 'Failed Login!' in flashed(response)
        assert '_auth_user_id' not in client.session

    def test_failed_login_message_shown_after_redirect(self, client, user):
        response = client.post(
            '/login/',
            {'email': 'wes@example.com', 'password': 'wrong'},
            follow=True
        )
        assert b'Failed Login!' in response.content

    def test_logout(self, client, user):
        client.force_login(user)
        response = client.get('/logout/')

        assert response.status_code == 302
        assert 'You are now logged out!' in flashed(response)
        assert '_auth_user_id' not in client.session
