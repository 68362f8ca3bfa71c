from typing import Any

REDACTED = "********"


def censor_passwords(value: Any) -> Any:
    """
    Return a copy of ``value`` with every password-like key redacted.

    Keys are matched case-insensitively on the substring "password" and the
    search recurses through nested dicts and lists, so request data can be
    logged safely.
    """
    if isinstance(value, dict):
        censored = {}
        for key, item in value.items():
            if isinstance(key, str) and "password" in key.lower():
                censored[key] = REDACTED
            else:
                censored[key] = censor_passwords(item)
        return censored
    if isinstance(value, list):
        return [censor_passwords(item) for item in value]
    return value
