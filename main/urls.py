"""
URL configuration for the store catalog project.

JSON API lives under /api/, server-rendered pages at the root.
"""
from django.contrib import admin
from django.urls import path, include
from django.conf import settings
from django.conf.urls.static import static
from django.http import JsonResponse
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView

from stores import views as store_views
from users import views as user_views


# Simple health check view - no database required
def health_check(request):
    """Health check endpoint for container orchestration.
    Returns 200 OK without database queries for fast response.
    """
    return JsonResponse({
        'status': 'healthy',
        'service': 'store-catalog'
    })


urlpatterns = [
    # Health check endpoint (no auth required, no DB queries)
    path('api/health/', health_check, name='health-check'),

    path('admin/', admin.site.urls),

    # OAuth2
    path('o/', include('oauth2_provider.urls', namespace='oauth2_provider')),

    # API Documentation
    path('api/schema/', SpectacularAPIView.as_view(), name='schema'),
    path('api/docs/', SpectacularSwaggerView.as_view(url_name='schema'), name='swagger-ui'),

    # API endpoints
    path('api/auth/', include('users.urls')),
    path('api/', include('reviews.urls')),
    path('api/', include('stores.urls')),

    # Pages
    path('', store_views.stores_page, name='home'),
    path('stores/', store_views.stores_page, name='stores-page'),
    path('store/<slug:slug>/', store_views.store_page, name='store-page'),
    path('tags/', store_views.tags_page, name='tags-page'),
    path('tags/<path:tag>/', store_views.tags_page, name='tag-page'),
    path('top/', store_views.top_stores_page, name='top-stores-page'),
    path('login/', user_views.login_page, name='login'),
    path('register/', user_views.register_page, name='register'),
    path('logout/', user_views.logout_page, name='logout'),
]

# Serve media files in development
if settings.DEBUG:
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
