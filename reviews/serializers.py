from rest_framework import serializers
from stores.utils import sanitize_text
from users.serializers import UserMinimalSerializer
from .models import Review


class ReviewSerializer(serializers.ModelSerializer):
    author = UserMinimalSerializer(read_only=True)
    rating = serializers.IntegerField(min_value=1, max_value=5)

    class Meta:
        model = Review
        fields = ['id', 'store', 'author', 'text', 'rating', 'created']
        read_only_fields = ['id', 'store', 'author', 'created']

    def validate_text(self, value):
        value = sanitize_text(value)
        if not value:
            raise serializers.ValidationError('Your review must have text!')
        return value
