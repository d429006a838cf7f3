"""
Declarative form validation

A rule set maps field names to ValidationRule objects. Rules are evaluated
against a snapshot of submitted data and produce one message per failing
field. Validation failures are returned as data, never raised.

Usage:
    rules = {
        'name': rule(COMMON_RULES['required'], min_length=2, max_length=100),
        'slug': COMMON_RULES['slug'],
    }
    result = validate_form(request.data, rules)
    if not result.is_valid:
        return api_error('Validation failed', errors=result.errors)
"""
import math
import re
from dataclasses import dataclass, field, replace
from decimal import Decimal, ROUND_HALF_UP
from numbers import Number
from typing import Any, Callable, Dict, Optional, Pattern, Union

EMAIL_REGEX = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+\Z')
URL_REGEX = re.compile(r'^https?://.+')


@dataclass(frozen=True)
class ValidationRule:
    """Validation options for a single field. Every option is independent."""
    required: bool = False
    min: Optional[Number] = None
    max: Optional[Number] = None
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    pattern: Optional[Union[str, Pattern]] = None
    email: bool = False
    url: bool = False
    positive: bool = False
    non_negative: bool = False
    custom: Optional[Callable[[Any], Optional[str]]] = field(default=None, compare=False)

    def extend(self, **overrides) -> 'ValidationRule':
        """Return a copy of this rule with some options replaced"""
        return replace(self, **overrides)


@dataclass
class ValidationResult:
    errors: Dict[str, str] = field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def as_dict(self):
        return {'is_valid': self.is_valid, 'errors': dict(self.errors)}


def rule(base: Optional[ValidationRule] = None, **options) -> ValidationRule:
    """Build a rule, optionally starting from a preset"""
    if base is None:
        return ValidationRule(**options)
    return base.extend(**options)


def _is_number(value) -> bool:
    return isinstance(value, Number) and not isinstance(value, bool)


def _is_empty(value) -> bool:
    """Falsy in the form-state sense: None, '', False, 0 and NaN.

    Empty lists and dicts are values, not absence.
    """
    if value is None or value is False:
        return True
    if isinstance(value, str):
        return value == ''
    if _is_number(value):
        if isinstance(value, Decimal):
            return value.is_nan() or value == 0
        if isinstance(value, float) and math.isnan(value):
            return True
        return value == 0
    return False


def _matches(pattern, value: str) -> bool:
    if isinstance(pattern, str):
        pattern = re.compile(pattern)
    return pattern.search(value) is not None


def validate_field(value: Any, rules: ValidationRule, field_name: str) -> Optional[str]:
    """Return the first failing check's message for value, or None"""
    if rules.required and (value is None or value == ''):
        return f'{field_name} is required'

    if _is_empty(value) and not rules.required:
        return None

    if isinstance(value, str):
        if rules.min_length and len(value) < rules.min_length:
            return f'{field_name} must be at least {rules.min_length} characters'
        if rules.max_length and len(value) > rules.max_length:
            return f'{field_name} must be no more than {rules.max_length} characters'
        if rules.email and not EMAIL_REGEX.search(value):
            return f'{field_name} must be a valid email address'
        if rules.url and not URL_REGEX.search(value):
            return f'{field_name} must be a valid URL'
        if rules.pattern is not None and not _matches(rules.pattern, value):
            return f'{field_name} format is invalid'

    if _is_number(value):
        if rules.min is not None and value < rules.min:
            return f'{field_name} must be at least {rules.min}'
        if rules.max is not None and value > rules.max:
            return f'{field_name} must be no more than {rules.max}'
        if rules.positive and value <= 0:
            return f'{field_name} must be greater than 0'
        if rules.non_negative and value < 0:
            return f'{field_name} must be 0 or greater'

    if isinstance(value, (list, tuple)):
        if rules.min is not None and len(value) < rules.min:
            return f'{field_name} must have at least {rules.min} item(s)'
        if rules.max is not None and len(value) > rules.max:
            return f'{field_name} must have no more than {rules.max} item(s)'

    if rules.custom is not None:
        custom_error = rules.custom(value)
        if custom_error:
            return custom_error

    return None


def validate_form(data, rules: Dict[str, ValidationRule]) -> ValidationResult:
    """Validate every field named in rules. Fields without a rule are ignored."""
    data = data or {}
    result = ValidationResult()
    for field_name, field_rule in rules.items():
        error = validate_field(data.get(field_name), field_rule, field_name)
        if error:
            result.errors[field_name] = error
    return result


COMMON_RULES = {
    'required': ValidationRule(required=True),
    'email': ValidationRule(required=True, email=True),
    'url': ValidationRule(url=True),
    'positive_number': ValidationRule(required=True, positive=True),
    'non_negative_number': ValidationRule(required=True, non_negative=True),
    'slug': ValidationRule(
        required=True,
        pattern=re.compile(r'^[a-z0-9]+(?:-[a-z0-9]+)*\Z'),
        min_length=1,
        max_length=100,
    ),
    'sku': ValidationRule(
        required=True,
        pattern=re.compile(r'^[A-Z0-9\-_]+\Z'),
        min_length=1,
        max_length=50,
    ),
    'phone': ValidationRule(
        pattern=re.compile(r'^[\d\s\-+()]+\Z'),
        min_length=10,
        max_length=20,
    ),
    'postal_code': ValidationRule(
        pattern=re.compile(r'^[A-Z0-9\s-]+\Z'),
        min_length=4,
        max_length=10,
    ),
}


# Helpers shared by the entity rule sets

def integer_in_range(minimum=None, maximum=None, message=None):
    """Custom check for integer-like input that may arrive as a string"""
    def check(value):
        if _is_empty(value):
            return None
        try:
            number = int(str(value).strip())
        except (TypeError, ValueError):
            return message
        if minimum is not None and number < minimum:
            return message
        if maximum is not None and number > maximum:
            return message
        return None
    return check


def non_negative_integer(message):
    return integer_in_range(minimum=0, message=message)


_SLUG_STRIP = re.compile(r'[^a-z0-9\s-]')
_SLUG_SPACES = re.compile(r'\s+')
_SLUG_HYPHENS = re.compile(r'-+')


def slugify(text: str) -> str:
    """Slug generator used by the brand and category forms.

    "Men's  Shoes -- 2024" -> "mens-shoes-2024"
    """
    if not text:
        return ''
    slug = _SLUG_STRIP.sub('', text.lower())
    slug = _SLUG_SPACES.sub('-', slug.strip())
    slug = _SLUG_HYPHENS.sub('-', slug)
    return slug.strip('-')


def discount_percentage(base_price, sale_price) -> Optional[Decimal]:
    """Percent off the base price, one decimal place. None when there is no discount."""
    if base_price is None or sale_price is None:
        return None
    base_price = Decimal(str(base_price))
    sale_price = Decimal(str(sale_price))
    if base_price <= 0 or sale_price <= 0 or sale_price >= base_price:
        return None
    percent = (Decimal('1') - sale_price / base_price) * Decimal('100')
    return percent.quantize(Decimal('0.1'), rounding=ROUND_HALF_UP)
