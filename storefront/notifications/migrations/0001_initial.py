# Generated manually for the initial storefront schema

from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
    ]

    operations = [
        migrations.CreateModel(
            name='Alert',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('alert_type', models.CharField(choices=[('customer', 'Customer'), ('inventory', 'Inventory'), ('order', 'Order'), ('price', 'Price'), ('product', 'Product'), ('stock', 'Stock'), ('system', 'System')], max_length=20)),
                ('name', models.CharField(max_length=100)),
                ('description', models.TextField(blank=True)),
                ('threshold', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ('direction', models.CharField(blank=True, choices=[('increase', 'Increase'), ('decrease', 'Decrease')], help_text='Only used by price alerts', max_length=10)),
                ('severity', models.CharField(choices=[('info', 'Info'), ('warning', 'Warning'), ('critical', 'Critical')], default='info', max_length=10)),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'alerts',
                'ordering': ['alert_type', 'name'],
                'indexes': [models.Index(fields=['alert_type', 'is_active'], name='alerts_type_active_idx')],
            },
        ),
        migrations.CreateModel(
            name='NotificationTemplate',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('channel', models.CharField(choices=[('email', 'Email'), ('sms', 'SMS'), ('push', 'Push'), ('webhook', 'Webhook')], max_length=10)),
                ('name', models.CharField(max_length=100)),
                ('event_type', models.CharField(blank=True, max_length=50)),
                ('subject', models.CharField(blank=True, help_text='Email subject line', max_length=200)),
                ('body', models.TextField(blank=True)),
                ('title', models.CharField(blank=True, help_text='Push notification title', max_length=100)),
                ('url', models.URLField(blank=True, help_text='Webhook endpoint', max_length=500)),
                ('method', models.CharField(blank=True, choices=[('GET', 'GET'), ('POST', 'POST'), ('PUT', 'PUT'), ('DELETE', 'DELETE')], max_length=10)),
                ('headers', models.JSONField(blank=True, default=dict)),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'notification_templates',
                'ordering': ['channel', 'name'],
            },
        ),
    ]
