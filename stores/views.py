from django.shortcuts import get_object_or_404, render
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import viewsets, filters
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from users.permissions import IsAuthorOrReadOnly
from . import services
from .serializers import StoreSerializer, TagCountSerializer, TopStoreSerializer


def wants_reviews(request):
    return 'reviews' in request.query_params.get('expand', '').split(',')


# API Views

class StoreViewSet(viewsets.ModelViewSet):
    """
    Stores. Anyone may read; authenticated users create stores they author,
    and only the author may change or delete one.
    """
    serializer_class = StoreSerializer
    permission_classes = [IsAuthorOrReadOnly]
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_fields = ['author']
    search_fields = ['name', 'description']
    ordering_fields = ['name', 'created']
    ordering = ['-created']

    def get_queryset(self):
        queryset = services.store_queryset(expand_reviews=wants_reviews(self.request))

        tag = self.request.query_params.get('tag', None)
        if tag:
            queryset = services.stores_with_tag(tag, queryset)

        return queryset

    def perform_create(self, serializer):
        serializer.save(author=self.request.user)

    @action(detail=False, methods=['get'], permission_classes=[AllowAny], pagination_class=None)
    def tags(self, request):
        """Tag usage counts, most used first"""
        return Response(TagCountSerializer(services.get_tags_list(), many=True).data)

    @action(detail=False, methods=['get'], permission_classes=[AllowAny], pagination_class=None)
    def top(self, request):
        """Best-rated stores with at least two reviews"""
        return Response(TopStoreSerializer(services.get_top_stores(), many=True).data)

    @action(
        detail=False,
        methods=['get'],
        url_path=r'slug/(?P<slug>[-\w]+)',
        permission_classes=[AllowAny],
    )
    def by_slug(self, request, slug=None):
        """Look up one store by slug, reviews included"""
        store = get_object_or_404(services.store_queryset(expand_reviews=True), slug=slug)
        return Response(self.get_serializer(store).data)


# Page Views

def stores_page(request):
    stores = services.store_queryset()
    return render(request, 'stores.html', {'title': 'Stores', 'stores': stores})


def store_page(request, slug):
    store = get_object_or_404(services.store_queryset(expand_reviews=True), slug=slug)
    return render(request, 'store.html', {'title': store.name, 'store': store})


def tags_page(request, tag=None):
    tags = services.get_tags_list()
    stores = services.stores_with_tag(tag) if tag else services.store_queryset()
    return render(request, 'tags.html', {
        'title': 'Tags',
        'tags': tags,
        'tag': tag,
        'stores': stores,
    })


def top_stores_page(request):
    stores = services.get_top_stores()
    return render(request, 'top.html', {'title': 'Top Stores', 'stores': stores})
