from decimal import Decimal, InvalidOperation

from rest_framework import serializers

from storefront.core.serializers import RuleValidatedSerializer
from storefront.core.validation import COMMON_RULES, rule
from .models import Alert, NotificationTemplate

SMS_MAX_LENGTH = 160

NAME_RULE = rule(COMMON_RULES['required'], min_length=2, max_length=100)


def _threshold_check(maximum=None):
    def check(value):
        try:
            threshold = Decimal(str(value))
        except (InvalidOperation, ValueError):
            return 'Threshold must be a number'
        if not threshold.is_finite():
            return 'Threshold must be a number'
        if threshold < 0:
            return 'Threshold must be 0 or greater'
        if maximum is not None and threshold > maximum:
            return f'Threshold must be no more than {maximum}'
        return None
    return check


def _one_of(choices, message):
    allowed = [choice[0] for choice in choices]
    return lambda value: None if value in allowed else message


class AlertSerializer(RuleValidatedSerializer):
    alert_type_display = serializers.CharField(source='get_alert_type_display', read_only=True)

    class Meta:
        model = Alert
        fields = ['id', 'alert_type', 'alert_type_display', 'name', 'description', 'threshold',
                  'direction', 'severity', 'is_active', 'created_at', 'updated_at']

    dependent_fields = {'alert_type': ['direction', 'threshold']}

    def get_validation_rules(self, data):
        alert_type = data.get('alert_type') or getattr(self.instance, 'alert_type', None)
        rules = {
            'name': NAME_RULE,
            'alert_type': rule(
                COMMON_RULES['required'],
                custom=_one_of(Alert.ALERT_TYPE_CHOICES, 'Please select a valid alert type'),
            ),
            'threshold': rule(custom=_threshold_check()),
            'description': rule(max_length=500),
        }
        if alert_type == 'price':
            # Price thresholds are percentages
            rules['threshold'] = rule(custom=_threshold_check(maximum=100))
            rules['direction'] = rule(
                COMMON_RULES['required'],
                custom=_one_of(Alert.DIRECTION_CHOICES, 'Direction must be increase or decrease'),
            )
        return rules

    def validate(self, attrs):
        alert_type = attrs.get('alert_type', getattr(self.instance, 'alert_type', None))
        if alert_type != 'price':
            attrs['direction'] = ''
        return attrs


class NotificationTemplateSerializer(RuleValidatedSerializer):
    channel_display = serializers.CharField(source='get_channel_display', read_only=True)

    class Meta:
        model = NotificationTemplate
        fields = ['id', 'channel', 'channel_display', 'name', 'event_type', 'subject', 'body', 'title',
                  'url', 'method', 'headers', 'is_active', 'created_at', 'updated_at']

    dependent_fields = {'channel': ['subject', 'body', 'title', 'event_type', 'url', 'method', 'headers']}

    def get_validation_rules(self, data):
        channel = data.get('channel') or getattr(self.instance, 'channel', None)
        rules = {
            'name': NAME_RULE,
            'channel': rule(
                COMMON_RULES['required'],
                custom=_one_of(NotificationTemplate.CHANNEL_CHOICES, 'Please select a valid channel'),
            ),
        }
        if channel == 'email':
            rules['subject'] = rule(COMMON_RULES['required'], max_length=200)
            rules['body'] = COMMON_RULES['required']
            rules['event_type'] = rule(
                custom=_one_of(NotificationTemplate.EMAIL_EVENT_CHOICES, 'Please select a valid email type'),
            )
        elif channel == 'sms':
            rules['body'] = rule(COMMON_RULES['required'], max_length=SMS_MAX_LENGTH)
        elif channel == 'push':
            rules['title'] = rule(COMMON_RULES['required'], max_length=100)
            rules['body'] = COMMON_RULES['required']
        elif channel == 'webhook':
            rules['url'] = rule(COMMON_RULES['url'], required=True)
            rules['method'] = rule(
                COMMON_RULES['required'],
                custom=_one_of(NotificationTemplate.METHOD_CHOICES, 'Method must be GET, POST, PUT or DELETE'),
            )
            rules['headers'] = rule(
                custom=lambda value: None if isinstance(value, dict) else 'Headers must be an object',
            )
        return rules
