"""Mini README: Credential hashing, input scrubbing and login throttling.

See ``helpers`` for the individual functions; the classes here keep their
state in the local store so they survive restarts.
"""

from .helpers import (
    LockoutStatus,
    LoginThrottle,
    PasswordStrength,
    SecurityEventLog,
    contains_malicious_content,
    generate_salt,
    generate_secure_random,
    has_sequential_chars,
    hash_password,
    password_strength,
    sanitize_input,
    verify_password,
)

__all__ = [
    "LockoutStatus",
    "LoginThrottle",
    "PasswordStrength",
    "SecurityEventLog",
    "contains_malicious_content",
    "generate_salt",
    "generate_secure_random",
    "has_sequential_chars",
    "hash_password",
    "password_strength",
    "sanitize_input",
    "verify_password",
]
