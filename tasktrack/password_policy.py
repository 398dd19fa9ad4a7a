"""Password complexity rules applied at registration."""

MIN_LENGTH = 8


def is_valid(password: str) -> bool:
    """
    Check a password against the complexity rules.

    A valid password is at least 8 characters long and contains an uppercase
    letter, a lowercase letter, a digit and a character that is neither a
    letter nor a digit. There is no maximum length.
    """
    if not password or password.isspace() or len(password) < MIN_LENGTH:
        return False
    return (
        any(ch.isupper() for ch in password)
        and any(ch.islower() for ch in password)
        and any(ch.isdigit() for ch in password)
        and any(not ch.isalnum() for ch in password)
    )
