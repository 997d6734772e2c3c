from django.conf import settings
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models
from django.utils import timezone


class Review(models.Model):
    """A user's rating of a store, 1 to 5."""
    store = models.ForeignKey(
        'stores.Store',
        on_delete=models.CASCADE,
        related_name='reviews',
        error_messages={'null': 'You must supply a store!'},
    )
    author = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='reviews',
        error_messages={'null': 'You must supply an author!'},
    )
    text = models.TextField(error_messages={'blank': 'Your review must have text!'})
    rating = models.PositiveSmallIntegerField(
        validators=[MinValueValidator(1), MaxValueValidator(5)],
    )
    created = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'reviews'
        ordering = ['-created']
        indexes = [
            models.Index(fields=['store'], name='review_store_idx'),
        ]

    def __str__(self):
        return f"{self.rating}/5 for store {self.store_id}"
