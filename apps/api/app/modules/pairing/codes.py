import secrets

# Uppercase letters and digits minus the look-alikes 0/O and 1/I/L.
CODE_ALPHABET = "ABCDEFGHJKMNPQRSTUVWXYZ23456789"
CODE_LENGTH = 6

_ALPHABET_SET = frozenset(CODE_ALPHABET)


def generate_code() -> str:
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(CODE_LENGTH))


def normalize_code(raw: str) -> str:
    return raw.strip().upper()


def is_well_formed(code: str) -> bool:
    return len(code) == CODE_LENGTH and all(char in _ALPHABET_SET for char in code)


def mask_code(code: str) -> str:
    """Log-safe rendering that keeps only the last two characters."""
    return "*" * max(0, len(code) - 2) + code[-2:]
