import hashlib
import secrets

from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    """Extended user model with additional fields"""
    email = models.EmailField(unique=True)
    phone = models.CharField(max_length=20, blank=True, null=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'users'


class Setting(models.Model):
    """System settings"""
    key = models.CharField(max_length=100, unique=True)
    value = models.TextField()
    description = models.TextField(blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.key

    class Meta:
        db_table = 'settings'


class AuditLog(models.Model):
    """Audit log for critical operations"""
    ACTION_CHOICES = [
        ('create', 'Create'),
        ('update', 'Update'),
        ('delete', 'Delete'),
        ('login', 'Login'),
        ('logout', 'Logout'),
        ('cart_add', 'Add to Cart'),
        ('cart_remove', 'Remove from Cart'),
        ('cart_update', 'Cart Update'),
        ('order_create', 'Order Created'),
        ('order_status', 'Order Status Changed'),
        ('order_cancel', 'Order Cancelled'),
        ('api_key_issue', 'API Key Issued'),
    ]

    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, related_name='audit_logs')
    action = models.CharField(max_length=50, choices=ACTION_CHOICES)
    model_name = models.CharField(max_length=100)
    object_id = models.CharField(max_length=100)
    object_name = models.CharField(max_length=255, blank=True, null=True, help_text="Human-readable name of the object (e.g., brand name, order number)")
    changes = models.JSONField(default=dict, blank=True)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'audit_logs'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['-created_at'], name='audit_logs_created_idx'),
            models.Index(fields=['action'], name='audit_logs_action_idx'),
            models.Index(fields=['model_name'], name='audit_logs_model_idx'),
        ]


class AdminRole(models.Model):
    """Back-office role: a named set of resource.action permissions"""
    AVAILABLE_PERMISSIONS = [
        'products.create', 'products.read', 'products.update', 'products.delete',
        'categories.create', 'categories.read', 'categories.update', 'categories.delete',
        'brands.create', 'brands.read', 'brands.update', 'brands.delete',
        'orders.read', 'orders.update',
        'customers.read', 'customers.update',
        'analytics.read',
        'settings.read', 'settings.update',
    ]

    name = models.CharField(max_length=100, unique=True)
    description = models.TextField(blank=True)
    permissions = models.JSONField(default=list, blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'admin_roles'
        ordering = ['name']


class ApiKey(models.Model):
    """API keys for server-to-server access. Only a hash of the key is stored."""
    AVAILABLE_PERMISSIONS = [
        'products.read', 'products.write',
        'categories.read', 'categories.write',
        'brands.read', 'brands.write',
        'orders.read', 'orders.write',
        'customers.read', 'customers.write',
        'analytics.read',
        'settings.read', 'settings.write',
    ]
    KEY_PREFIX = 'sk_'

    name = models.CharField(max_length=100)
    key_prefix = models.CharField(max_length=16, db_index=True)
    hashed_key = models.CharField(max_length=64, unique=True)
    permissions = models.JSONField(default=list, blank=True)
    is_active = models.BooleanField(default=True)
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='api_keys')
    last_used_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.name} ({self.key_prefix}...)"

    @staticmethod
    def hash_key(raw_key: str) -> str:
        return hashlib.sha256(raw_key.encode()).hexdigest()

    @classmethod
    def generate_key(cls) -> str:
        return f"{cls.KEY_PREFIX}{secrets.token_urlsafe(32)}"

    def set_key(self, raw_key: str):
        self.key_prefix = raw_key[:8]
        self.hashed_key = self.hash_key(raw_key)

    def check_key(self, raw_key: str) -> bool:
        return secrets.compare_digest(self.hashed_key, self.hash_key(raw_key))

    class Meta:
        db_table = 'api_keys'
        ordering = ['-created_at']
