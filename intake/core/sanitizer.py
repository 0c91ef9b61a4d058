import re

_EMAIL_RE = re.compile(r"[\w.+-]+@[\w.-]+\.\w+")
# Nine or more digits, optionally grouped with spaces, dots, dashes or parens.
# Runs shaped like a UUID (8 hex, dash, 4 hex) are ids, not phone numbers.
_PHONE_RE = re.compile(
    r"(?<![\w-])(?![0-9a-fA-F]{8}-[0-9a-fA-F]{4}-)\+?\d(?:[\s().-]?\d){8,}(?![\w-])"
)


def redact_pii(message: str) -> str:
    """Redact personally identifiable information from log messages.

    Applicants submit names, emails and phone numbers; emails are reduced to
    their first character and domain, phone numbers keep only the last two
    digits.
    """
    if not isinstance(message, str):
        return str(message)

    # Emails: jane.doe@example.com -> j***@example.com
    message = _EMAIL_RE.sub(
        lambda m: m.group()[0] + "***@" + m.group().split("@")[1],
        message,
    )

    # Phones: +44 7700 900123 -> [PHONE_REDACTED:23]
    message = _PHONE_RE.sub(
        lambda m: "[PHONE_REDACTED:" + re.sub(r"\D", "", m.group())[-2:] + "]",
        message,
    )

    return message
