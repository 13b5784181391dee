MIN_DIGITS = 7
MAX_DIGITS = 15


def _digits_only(value: str) -> str:
    return "".join(ch for ch in value if ch.isdigit())


def normalize_phone(phone: str) -> str:
    """Return phone as +<digits> (or bare digits when no + was given).

    Separators such as spaces, dashes and parentheses are dropped. Returns an
    empty string when the value does not look like a phone number (fewer than
    7 or more than 15 digits, E.164 limits).
    """
    if phone is None:
        return ""
    raw = str(phone).strip()
    if not raw:
        return ""

    digits = _digits_only(raw)
    if not (MIN_DIGITS <= len(digits) <= MAX_DIGITS):
        return ""

    if raw.startswith("+"):
        return f"+{digits}"
    if raw.startswith("00"):
        return f"+{digits[2:]}"
    return digits
