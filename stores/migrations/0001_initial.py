import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Store',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(error_messages={'blank': 'Please enter a store name!'}, max_length=255)),
                ('slug', models.SlugField(blank=True, max_length=255, unique=True)),
                ('description', models.TextField(blank=True, default='')),
                ('tags', models.JSONField(blank=True, default=list)),
                ('created', models.DateTimeField(default=django.utils.timezone.now)),
                ('location_type', models.CharField(choices=[('Point', 'Point')], default='Point', max_length=10)),
                ('longitude', models.FloatField(validators=[django.core.validators.MinValueValidator(-180), django.core.validators.MaxValueValidator(180)])),
                ('latitude', models.FloatField(validators=[django.core.validators.MinValueValidator(-90), django.core.validators.MaxValueValidator(90)])),
                ('address', models.CharField(error_messages={'blank': 'You must supply an address!'}, max_length=255)),
                ('photo', models.CharField(blank=True, default='', max_length=255)),
                ('author', models.ForeignKey(help_text='User who created the store', on_delete=django.db.models.deletion.CASCADE, related_name='stores', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'stores',
                'ordering': ['-created'],
                'indexes': [
                    models.Index(fields=['name', 'description'], name='store_text_idx'),
                    models.Index(fields=['longitude', 'latitude'], name='store_location_idx'),
                ],
            },
        ),
    ]
