from django.contrib import admin
from .models import Store
from .services import save_store


@admin.register(Store)
class StoreAdmin(admin.ModelAdmin):
    list_display = ['name', 'slug', 'author', 'address', 'created']
    list_filter = ['created']
    search_fields = ['name', 'slug', 'description', 'address']
    readonly_fields = ['slug']

    def save_model(self, request, obj, form, change):
        save_store(obj)
