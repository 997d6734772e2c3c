from rest_framework import serializers
from reviews.serializers import ReviewSerializer
from users.serializers import UserMinimalSerializer
from .models import Store
from .services import save_store
from .utils import sanitize_text, sanitize_tags


class LocationSerializer(serializers.Serializer):
    """
    GeoJSON-style point: {"type": "Point", "coordinates": [lng, lat], "address": "..."}.
    Maps onto the store's location_type/longitude/latitude/address columns.
    """
    type = serializers.ChoiceField(choices=Store.LocationType.choices, default=Store.LocationType.POINT)
    coordinates = serializers.ListField(
        child=serializers.FloatField(),
        min_length=2,
        max_length=2,
        error_messages={
            'required': 'You must supply the coordinates!',
            'min_length': 'You must supply the coordinates!',
            'max_length': 'Coordinates must be a [longitude, latitude] pair.',
        }
    )
    address = serializers.CharField(
        max_length=255,
        error_messages={
            'required': 'You must supply an address!',
            'blank': 'You must supply an address!',
        }
    )

    def validate_coordinates(self, value):
        longitude, latitude = value
        if not -180 <= longitude <= 180:
            raise serializers.ValidationError('Longitude must be between -180 and 180.')
        if not -90 <= latitude <= 90:
            raise serializers.ValidationError('Latitude must be between -90 and 90.')
        return value

    def validate_address(self, value):
        value = sanitize_text(value)
        if not value:
            raise serializers.ValidationError('You must supply an address!')
        return value

    def to_representation(self, instance):
        return {
            'type': instance.location_type,
            'coordinates': instance.coordinates,
            'address': instance.address,
        }

    def to_internal_value(self, data):
        value = super().to_internal_value(data)
        columns = {}
        if 'type' in value:
            columns['location_type'] = value['type']
        if 'coordinates' in value:
            columns['longitude'], columns['latitude'] = value['coordinates']
        if 'address' in value:
            columns['address'] = value['address']
        return columns


class StoreSerializer(serializers.ModelSerializer):
    """
    Read/write serializer for stores. Writes go through save_store so the
    slug is resolved; `reviews` is included only when they were joined.
    """
    name = serializers.CharField(
        max_length=255,
        error_messages={
            'required': 'Please enter a store name!',
            'blank': 'Please enter a store name!',
        }
    )
    tags = serializers.ListField(
        child=serializers.CharField(max_length=50, allow_blank=True),
        required=False,
    )
    location = LocationSerializer(source='*')
    author = UserMinimalSerializer(read_only=True)
    reviews = serializers.SerializerMethodField()

    class Meta:
        model = Store
        fields = [
            'id', 'name', 'slug', 'description', 'tags', 'created',
            'location', 'photo', 'author', 'reviews'
        ]
        read_only_fields = ['id', 'slug', 'created', 'author']

    @staticmethod
    def reviews_joined(obj):
        return 'reviews' in getattr(obj, '_prefetched_objects_cache', {})

    def get_reviews(self, obj):
        if not self.reviews_joined(obj):
            return None
        return ReviewSerializer(obj.reviews.all(), many=True).data

    def to_representation(self, instance):
        data = super().to_representation(instance)
        if not self.reviews_joined(instance):
            data.pop('reviews', None)
        return data

    def validate_name(self, value):
        value = sanitize_text(value)
        if not value:
            raise serializers.ValidationError('Please enter a store name!')
        return value

    def validate_description(self, value):
        return sanitize_text(value)

    def validate_tags(self, value):
        return sanitize_tags(value)

    def validate_photo(self, value):
        return sanitize_text(value)

    def create(self, validated_data):
        return save_store(Store(**validated_data))

    def update(self, instance, validated_data):
        for attr, value in validated_data.items():
            setattr(instance, attr, value)
        return save_store(instance)


class TagCountSerializer(serializers.Serializer):
    tag = serializers.CharField()
    count = serializers.IntegerField()


class ReviewRecordSerializer(serializers.Serializer):
    """A review as joined into a top-rated store record."""
    id = serializers.IntegerField()
    author = serializers.IntegerField(source='author_id')
    rating = serializers.IntegerField()
    text = serializers.CharField()
    created = serializers.DateTimeField()


class TopStoreSerializer(serializers.Serializer):
    """Top-rated store record produced by services.get_top_stores."""
    id = serializers.IntegerField()
    name = serializers.CharField()
    slug = serializers.CharField()
    description = serializers.CharField()
    photo = serializers.CharField()
    tags = serializers.ListField(child=serializers.CharField())
    created = serializers.DateTimeField()
    location = serializers.SerializerMethodField()
    author = serializers.IntegerField(source='author_id')
    average_rating = serializers.FloatField()
    review_count = serializers.SerializerMethodField()
    reviews = ReviewRecordSerializer(many=True)

    def get_location(self, record):
        return {
            'type': record['location_type'],
            'coordinates': [record['longitude'], record['latitude']],
            'address': record['address'],
        }

    def get_review_count(self, record):
        return len(record['reviews'])
