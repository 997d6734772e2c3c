from django.urls import path
from . import views

urlpatterns = [
    # Auth endpoints
    path('register/', views.register_view, name='api-register'),
    path('login/', views.login_view, name='api-login'),
    path('logout/', views.logout_view, name='api-logout'),
    path('me/', views.current_user_view, name='current-user'),
]
