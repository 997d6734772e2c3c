from django.contrib import admin
from .models import Review


@admin.register(Review)
class ReviewAdmin(admin.ModelAdmin):
    list_display = ['store', 'author', 'rating', 'created']
    list_filter = ['rating', 'created']
    search_fields = ['store__name', 'author__email', 'text']
    readonly_fields = ['created']
