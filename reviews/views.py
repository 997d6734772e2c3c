import logging

from django.shortcuts import get_object_or_404
from rest_framework import generics
from rest_framework.permissions import IsAuthenticatedOrReadOnly
from stores.models import Store
from .models import Review
from .serializers import ReviewSerializer

logger = logging.getLogger(__name__)


class StoreReviewListCreateView(generics.ListCreateAPIView):
    """List a store's reviews or add one"""
    serializer_class = ReviewSerializer
    permission_classes = [IsAuthenticatedOrReadOnly]

    def get_store(self):
        return get_object_or_404(Store, pk=self.kwargs['store_id'])

    def get_queryset(self):
        return Review.objects.select_related('author').filter(store_id=self.kwargs['store_id'])

    def perform_create(self, serializer):
        review = serializer.save(store=self.get_store(), author=self.request.user)
        logger.info(f"User {self.request.user.pk} reviewed store {review.store_id} ({review.rating}/5)")
