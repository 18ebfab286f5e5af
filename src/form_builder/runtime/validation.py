"""
Field validation for form-fill sessions.

Rules are evaluated in the order supplied and the first failing rule's
message is returned; later rules are never evaluated. Content rules
(min_length, max_length, is_email, custom_password) only apply to values
that are present, so an empty value can only fail ``not_empty``.
"""

import logging
import re
from typing import Any, Callable, Dict, List, Optional, Sequence

from form_builder.schemas.form_schema import (
    FormField,
    FormSchema,
    ValidationRule,
    ValidationRuleType,
)

logger = logging.getLogger(__name__)

# local@domain.tld: one @, no whitespace, a dot after the @ with text after it
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

# Passwords need a letter and a digit; other characters are allowed
PASSWORD_LETTER = re.compile(r"[A-Za-z]")
PASSWORD_DIGIT = re.compile(r"[0-9]")

MESSAGES = {
    ValidationRuleType.NOT_EMPTY: "This field is required.",
    ValidationRuleType.MIN_LENGTH: "Must be at least {value} characters.",
    ValidationRuleType.MAX_LENGTH: "Must be no more than {value} characters.",
    ValidationRuleType.IS_EMAIL: "Please enter a valid email address.",
    ValidationRuleType.CUSTOM_PASSWORD: "Password must be at least 8 characters and include a number.",
}

# A checker returns True when the value passes the rule
RuleChecker = Callable[[str, ValidationRule], bool]


def is_present(value: Any) -> bool:
    """Whether a value counts as filled in for content rules.

    None, False (an unchecked checkbox) and values whose string form is
    empty are absent. Zero is present.
    """
    if value is None or value is False:
        return False
    return str(value) != ""


def _check_min_length(text: str, rule: ValidationRule) -> bool:
    return len(text) >= rule.value


def _check_max_length(text: str, rule: ValidationRule) -> bool:
    return len(text) <= rule.value


def _check_email(text: str, rule: ValidationRule) -> bool:
    return EMAIL_PATTERN.match(text) is not None


def _check_password(text: str, rule: ValidationRule) -> bool:
    return (
        len(text) >= 8
        and PASSWORD_LETTER.search(text) is not None
        and PASSWORD_DIGIT.search(text) is not None
    )


# Content rules keyed by type; not_empty is handled before dispatch
RULE_CHECKERS: Dict[ValidationRuleType, RuleChecker] = {
    ValidationRuleType.MIN_LENGTH: _check_min_length,
    ValidationRuleType.MAX_LENGTH: _check_max_length,
    ValidationRuleType.IS_EMAIL: _check_email,
    ValidationRuleType.CUSTOM_PASSWORD: _check_password,
}


def get_rule_checker(rule_type: ValidationRuleType) -> RuleChecker:
    """
    Look up the content checker for a rule type.

    Raises:
        KeyError: If the rule type has no content checker (not_empty)
    """
    return RULE_CHECKERS[rule_type]


def rule_message(rule: ValidationRule) -> str:
    """Render the error message for a failed rule."""
    return MESSAGES[rule.type].format(value=rule.value)


def validate(value: Any, rules: Sequence[ValidationRule]) -> Optional[str]:
    """
    Validate a value against an ordered rule list.

    Args:
        value: Current field value (string, number, boolean or None)
        rules: Rules in evaluation order

    Returns:
        Message of the first failing rule, or None if all rules pass
    """
    present = is_present(value)
    text = str(value) if present else ""

    for rule in rules:
        if rule.type == ValidationRuleType.NOT_EMPTY:
            if not present or text.strip() == "":
                return rule_message(rule)
            continue

        if not present:
            continue

        checker = get_rule_checker(rule.type)
        if not checker(text, rule):
            return rule_message(rule)

    return None


def effective_rules(field: FormField) -> List[ValidationRule]:
    """Rules for session validation: implicit not_empty first when required."""
    rules = list(field.validation_rules)
    if field.required:
        rules.insert(0, ValidationRule(type=ValidationRuleType.NOT_EMPTY))
    return rules


def validate_field(field: FormField, value: Any) -> Optional[str]:
    """Validate one field's value with its effective rule set."""
    return validate(value, effective_rules(field))


def validate_values(schema: FormSchema, values: Dict[str, Any]) -> Dict[str, Optional[str]]:
    """
    Validate every field of a schema against a value map.

    Args:
        schema: Form schema
        values: Mapping of field id -> current value

    Returns:
        Mapping of field id -> error message or None, in schema order
    """
    results: Dict[str, Optional[str]] = {}
    for field in schema.fields:
        results[field.id] = validate_field(field, values.get(field.id))

    failed = sum(1 for error in results.values() if error)
    logger.debug(f"Validated {len(results)} fields of form '{schema.id}': {failed} failing")
    return results
