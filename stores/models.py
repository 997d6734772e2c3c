from django.conf import settings
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models
from django.utils import timezone


class Store(models.Model):
    """
    A catalog entry with a location and tags.

    The slug is not computed here: write stores through
    stores.services.save_store, which resolves a unique slug whenever the
    name changes. Reviews are joined on request via services.with_reviews.
    """

    class LocationType(models.TextChoices):
        POINT = 'Point', 'Point'

    name = models.CharField(
        max_length=255,
        error_messages={'blank': 'Please enter a store name!'},
    )
    slug = models.SlugField(max_length=255, unique=True, blank=True)
    description = models.TextField(blank=True, default='')
    tags = models.JSONField(default=list, blank=True)
    created = models.DateTimeField(default=timezone.now)

    location_type = models.CharField(
        max_length=10,
        choices=LocationType.choices,
        default=LocationType.POINT,
    )
    longitude = models.FloatField(
        validators=[MinValueValidator(-180), MaxValueValidator(180)],
    )
    latitude = models.FloatField(
        validators=[MinValueValidator(-90), MaxValueValidator(90)],
    )
    address = models.CharField(
        max_length=255,
        error_messages={'blank': 'You must supply an address!'},
    )

    photo = models.CharField(max_length=255, blank=True, default='')
    author = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='stores',
        help_text='User who created the store',
    )

    class Meta:
        db_table = 'stores'
        ordering = ['-created']
        indexes = [
            models.Index(fields=['name', 'description'], name='store_text_idx'),
            models.Index(fields=['longitude', 'latitude'], name='store_location_idx'),
        ]

    def __str__(self):
        return self.name

    @classmethod
    def from_db(cls, db, field_names, values):
        instance = super().from_db(db, field_names, values)
        instance._saved_name = instance.__dict__.get('name')
        return instance

    def name_has_changed(self):
        """True for unsaved stores and for stores whose name differs from the stored one."""
        if self._state.adding:
            return True
        return self.name != getattr(self, '_saved_name', None)

    def mark_name_saved(self):
        self._saved_name = self.name

    @property
    def coordinates(self):
        return [self.longitude, self.latitude]
