import logging
from datetime import timedelta

from django.contrib import messages
from django.contrib.auth import authenticate, login, logout
from django.shortcuts import redirect, render
from django.utils import timezone
from oauth2_provider.models import Application, AccessToken, RefreshToken
from oauth2_provider.settings import oauth2_settings
from oauthlib.common import generate_token
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated, AllowAny
from rest_framework.response import Response

from .serializers import UserSerializer, RegisterSerializer, LoginSerializer, flatten_errors

logger = logging.getLogger(__name__)

OAUTH_APPLICATION_NAME = 'store-frontend'


def get_oauth_application():
    """Get or create the OAuth2 application used for first-party logins."""
    application, _ = Application.objects.get_or_create(
        name=OAUTH_APPLICATION_NAME,
        defaults={
            'client_type': Application.CLIENT_PUBLIC,
            'authorization_grant_type': Application.GRANT_PASSWORD,
        }
    )
    return application


def issue_tokens(user):
    """Create an access/refresh token pair for the given user."""
    application = get_oauth_application()
    expires = timezone.now() + timedelta(
        seconds=oauth2_settings.ACCESS_TOKEN_EXPIRE_SECONDS
    )
    access_token = AccessToken.objects.create(
        user=user,
        application=application,
        token=generate_token(),
        expires=expires,
        scope='read write'
    )
    refresh_token = RefreshToken.objects.create(
        user=user,
        application=application,
        token=generate_token(),
        access_token=access_token
    )
    return access_token, refresh_token


# API Views

@api_view(['POST'])
@permission_classes([AllowAny])
def register_view(request):
    """Register a new account"""
    serializer = RegisterSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    user = serializer.save()
    logger.info(f"Registered user {user.email}")
    return Response(UserSerializer(user).data, status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([AllowAny])
def login_view(request):
    """
    OAuth2 login endpoint that returns access and refresh tokens
    """
    serializer = LoginSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(
            {'error': 'Email and password are required'},
            status=status.HTTP_400_BAD_REQUEST
        )

    user = authenticate(
        request,
        username=serializer.validated_data['email'].lower(),
        password=serializer.validated_data['password']
    )

    if user is None:
        return Response(
            {'error': 'Invalid credentials'},
            status=status.HTTP_401_UNAUTHORIZED
        )

    access_token, refresh_token = issue_tokens(user)
    logger.info(f"Issued API token for {user.email}")

    return Response({
        'access_token': access_token.token,
        'refresh_token': refresh_token.token,
        'expires_in': oauth2_settings.ACCESS_TOKEN_EXPIRE_SECONDS,
        'token_type': 'Bearer',
        'user': UserSerializer(user).data
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def logout_view(request):
    """Logout by revoking tokens"""
    auth_header = request.META.get('HTTP_AUTHORIZATION', '')
    if auth_header.startswith('Bearer '):
        token_string = auth_header.split(' ')[1]
        try:
            access_token = AccessToken.objects.get(token=token_string)
        except AccessToken.DoesNotExist:
            return Response({'message': 'Logged out'})
        RefreshToken.objects.filter(access_token=access_token).delete()
        access_token.delete()
        return Response({'message': 'Successfully logged out'})

    return Response({'message': 'Logged out'})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def current_user_view(request):
    """Get current authenticated user details"""
    serializer = UserSerializer(request.user)
    return Response(serializer.data)


# Page Views

def login_page(request):
    if request.method == 'POST':
        user = authenticate(
            request,
            username=(request.POST.get('email') or '').strip().lower(),
            password=request.POST.get('password') or ''
        )
        if user is None:
            messages.error(request, 'Failed Login!')
            return redirect('login')
        login(request, user)
        logger.info(f"User {user.email} logged in")
        messages.success(request, 'You are now logged in!')
        return redirect('home')

    return render(request, 'login.html', {'title': 'Login'})


def register_page(request):
    if request.method != 'POST':
        return render(request, 'register.html', {'title': 'Register'})

    serializer = RegisterSerializer(data=request.POST)
    if not serializer.is_valid():
        for message in flatten_errors(serializer.errors):
            messages.error(request, message)
        body = {
            key: value for key, value in request.POST.items()
            if key in ('name', 'email')
        }
        return render(request, 'register.html', {'title': 'Register', 'body': body})

    user = serializer.save()
    logger.info(f"Registered user {user.email}")
    login(request, user)
    messages.success(request, 'You are now logged in!')
    return redirect('home')


def logout_page(request):
    logout(request)
    messages.success(request, 'You are now logged out!')
    return redirect('home')
