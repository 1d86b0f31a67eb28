"""Built-in redaction rules and sensitive-site detection."""

import re
from urllib.parse import urlparse

from ..recording.models import RedactionRule, RuleType

# Input-type rules first: they replace whole values and win over regexes
DEFAULT_REDACTION_RULES: list[RedactionRule] = [
    RedactionRule(
        id="input-password",
        name="Password fields",
        type=RuleType.INPUT_TYPE,
        pattern="password",
        replacement="[PASSWORD]",
    ),
    RedactionRule(
        id="input-hidden",
        name="Hidden inputs",
        type=RuleType.INPUT_TYPE,
        pattern="hidden",
        replacement="[HIDDEN]",
    ),
    RedactionRule(
        id="regex-email",
        name="Email addresses",
        type=RuleType.REGEX,
        pattern=r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}",
        replacement="[EMAIL]",
    ),
    RedactionRule(
        id="regex-phone",
        name="Phone numbers",
        type=RuleType.REGEX,
        pattern=r"(\+?1?[-.\s]?)?(\(?\d{3}\)?[-.\s]?)?\d{3}[-.\s]?\d{4}",
        replacement="[PHONE]",
    ),
    RedactionRule(
        id="regex-ssn",
        name="Social Security Numbers",
        type=RuleType.REGEX,
        pattern=r"\b\d{3}-\d{2}-\d{4}\b",
        replacement="[SSN]",
    ),
    RedactionRule(
        id="regex-credit-card",
        name="Credit card numbers",
        type=RuleType.REGEX,
        pattern=r"\b(?:\d{4}[- ]?){3}\d{4}\b",
        replacement="[CARD]",
    ),
    RedactionRule(
        id="regex-ip-address",
        name="IP addresses",
        type=RuleType.REGEX,
        pattern=r"\b(?:\d{1,3}\.){3}\d{1,3}\b",
        replacement="[IP]",
        enabled=False,
    ),
    RedactionRule(
        id="selector-cvv",
        name="CVV fields",
        type=RuleType.SELECTOR,
        pattern='input[name*="cvv"], input[name*="cvc"], input[autocomplete="cc-csc"]',
        replacement="[CVV]",
    ),
    RedactionRule(
        id="attr-auth-token",
        name="Auth tokens",
        type=RuleType.ATTRIBUTE,
        pattern="data-token,data-auth,data-session,data-csrf",
        replacement="[TOKEN]",
    ),
]


SENSITIVE_DOMAINS: list[re.Pattern] = [
    # Banking & finance
    re.compile(r".*\.bank\..*", re.IGNORECASE),
    re.compile(r".*banking.*", re.IGNORECASE),
    re.compile(r"paypal\.com", re.IGNORECASE),
    re.compile(r"venmo\.com", re.IGNORECASE),
    re.compile(r"stripe\.com", re.IGNORECASE),
    re.compile(r"square\.com", re.IGNORECASE),

    # Healthcare
    re.compile(r".*\.health\..*", re.IGNORECASE),
    re.compile(r".*medical.*", re.IGNORECASE),
    re.compile(r".*patient.*", re.IGNORECASE),

    # Auth providers
    re.compile(r"accounts\.google\.com", re.IGNORECASE),
    re.compile(r"login\.microsoftonline\.com", re.IGNORECASE),
    re.compile(r"auth0\.com", re.IGNORECASE),
    re.compile(r"okta\.com", re.IGNORECASE),
    re.compile(r"login\.salesforce\.com", re.IGNORECASE),

    # Password managers
    re.compile(r".*lastpass.*", re.IGNORECASE),
    re.compile(r".*1password.*", re.IGNORECASE),
    re.compile(r".*bitwarden.*", re.IGNORECASE),
    re.compile(r".*dashlane.*", re.IGNORECASE),

    # Government
    re.compile(r".*\.gov$", re.IGNORECASE),
    re.compile(r".*\.mil$", re.IGNORECASE),
]


def is_sensitive_domain(url: str) -> bool:
    """Check if a URL's host matches any sensitive domain pattern."""
    try:
        hostname = urlparse(url).hostname
    except ValueError:
        return False

    if not hostname:
        return False

    return any(pattern.search(hostname) for pattern in SENSITIVE_DOMAINS)
