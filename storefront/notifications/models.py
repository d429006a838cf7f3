from django.db import models


class Alert(models.Model):
    """Threshold alerts raised to back-office staff"""
    ALERT_TYPE_CHOICES = [
        ('customer', 'Customer'),
        ('inventory', 'Inventory'),
        ('order', 'Order'),
        ('price', 'Price'),
        ('product', 'Product'),
        ('stock', 'Stock'),
        ('system', 'System'),
    ]

    DIRECTION_CHOICES = [
        ('increase', 'Increase'),
        ('decrease', 'Decrease'),
    ]

    SEVERITY_CHOICES = [
        ('info', 'Info'),
        ('warning', 'Warning'),
        ('critical', 'Critical'),
    ]

    alert_type = models.CharField(max_length=20, choices=ALERT_TYPE_CHOICES)
    name = models.CharField(max_length=100)
    description = models.TextField(blank=True)
    threshold = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    direction = models.CharField(max_length=10, choices=DIRECTION_CHOICES, blank=True,
                                 help_text="Only used by price alerts")
    severity = models.CharField(max_length=10, choices=SEVERITY_CHOICES, default='info')
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.name} ({self.get_alert_type_display()})"

    class Meta:
        db_table = 'alerts'
        ordering = ['alert_type', 'name']
        indexes = [
            models.Index(fields=['alert_type', 'is_active'], name='alerts_type_active_idx'),
        ]


class NotificationTemplate(models.Model):
    """Message templates per delivery channel"""
    CHANNEL_CHOICES = [
        ('email', 'Email'),
        ('sms', 'SMS'),
        ('push', 'Push'),
        ('webhook', 'Webhook'),
    ]

    EMAIL_EVENT_CHOICES = [
        ('order-confirmation', 'Order Confirmation'),
        ('order-shipped', 'Order Shipped'),
        ('order-delivered', 'Order Delivered'),
        ('welcome', 'Welcome'),
        ('password-reset', 'Password Reset'),
    ]

    METHOD_CHOICES = [
        ('GET', 'GET'),
        ('POST', 'POST'),
        ('PUT', 'PUT'),
        ('DELETE', 'DELETE'),
    ]

    channel = models.CharField(max_length=10, choices=CHANNEL_CHOICES)
    name = models.CharField(max_length=100)
    event_type = models.CharField(max_length=50, blank=True)
    subject = models.CharField(max_length=200, blank=True, help_text="Email subject line")
    body = models.TextField(blank=True)
    title = models.CharField(max_length=100, blank=True, help_text="Push notification title")
    url = models.URLField(max_length=500, blank=True, help_text="Webhook endpoint")
    method = models.CharField(max_length=10, choices=METHOD_CHOICES, blank=True)
    headers = models.JSONField(default=dict, blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.name} ({self.get_channel_display()})"

    class Meta:
        db_table = 'notification_templates'
        ordering = ['channel', 'name']
