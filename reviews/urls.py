from django.urls import path
from . import views

urlpatterns = [
    path('stores/<int:store_id>/reviews/', views.StoreReviewListCreateView.as_view(), name='store-reviews'),
]
