# Generated manually for the initial storefront schema

from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='MasterDataItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('kind', models.CharField(choices=[('age-groups', 'Age Groups'), ('fits', 'Fits'), ('lengths', 'Lengths'), ('necklines', 'Necklines'), ('colors', 'Colors'), ('color-families', 'Color Families'), ('materials', 'Materials'), ('occasions', 'Occasions'), ('patterns', 'Patterns'), ('seasons', 'Seasons'), ('sizes', 'Sizes'), ('sleeve-lengths', 'Sleeve Lengths'), ('care-instructions', 'Care Instructions'), ('coupon-types', 'Coupon Types'), ('features', 'Features'), ('product-statuses', 'Product Statuses'), ('styles', 'Styles')], db_index=True, max_length=30)),
                ('name', models.CharField(max_length=100)),
                ('slug', models.SlugField(max_length=100)),
                ('description', models.TextField(blank=True)),
                ('extra', models.JSONField(blank=True, default=dict, help_text='Kind-specific values such as hex_code, image_url or size_type')),
                ('sort_order', models.PositiveIntegerField(default=0)),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'master_data_items',
                'ordering': ['kind', 'sort_order', 'name'],
                'constraints': [models.UniqueConstraint(fields=('kind', 'slug'), name='unique_master_data_kind_slug')],
            },
        ),
    ]
