"""
Input Validation - checks for values that reach the store from outside.

Validators return (is_valid, error_message) so callers decide which
exception to raise; normalize_commitment() is the one helper that raises
directly because every caller wants the same InvalidInputError.
"""

import re
from typing import Any, Optional, Tuple, Union

from zkgroups.core.errors import InvalidInputError
from zkgroups.crypto import FIELD_PRIME

# =============================================================================
# Constants
# =============================================================================

MAX_GROUP_NAME_LENGTH = 64
MAX_DESCRIPTION_LENGTH = 1024
MAX_ADMIN_LENGTH = 256
MAX_COMMITMENT_DIGITS = 78  # len(str(FIELD_PRIME - 1)) + slack for leading zeros

# Absolute bounds for tree depth. Configuration narrows them further.
MIN_TREE_DEPTH = 1
MAX_TREE_DEPTH = 32

GROUP_NAME_PATTERN = r"^[A-Za-z0-9][A-Za-z0-9 _.-]*$"
DECIMAL_PATTERN = r"^[0-9]+$"


# =============================================================================
# Validation Functions
# =============================================================================


def validate_integer(
    value: Any,
    name: str,
    min_val: int,
    max_val: int,
) -> Tuple[bool, str]:
    """
    Validate integer within bounds.

    Args:
        value: Value to validate
        name: Field name for errors
        min_val: Minimum allowed value
        max_val: Maximum allowed value

    Returns:
        (is_valid, error_message)
    """
    if isinstance(value, bool) or not isinstance(value, int):
        return False, f"{name} must be int, got {type(value).__name__}"

    if value < min_val:
        return False, f"{name} must be >= {min_val}, got {value}"

    if value > max_val:
        return False, f"{name} must be <= {max_val}, got {value}"

    return True, ""


def validate_field_element(value: Any, name: str = "field_element") -> Tuple[bool, str]:
    """Validate a field element (< FIELD_PRIME)."""
    return validate_integer(value, name, 0, FIELD_PRIME - 1)


def validate_string(
    value: Any,
    name: str,
    max_length: int,
    pattern: Optional[str] = None,
    allow_empty: bool = False,
) -> Tuple[bool, str]:
    """
    Validate string input.

    Args:
        value: Value to validate
        name: Field name for errors
        max_length: Maximum string length
        pattern: Optional regex pattern
        allow_empty: Whether "" is acceptable

    Returns:
        (is_valid, error_message)
    """
    if not isinstance(value, str):
        return False, f"{name} must be str, got {type(value).__name__}"

    if not value and not allow_empty:
        return False, f"{name} must not be empty"

    if len(value) > max_length:
        return False, f"{name} exceeds max length {max_length}"

    if pattern and not re.fullmatch(pattern, value):
        return False, f"{name} does not match required pattern"

    return True, ""


def validate_group_name(name: Any) -> Tuple[bool, str]:
    """Validate a group name."""
    return validate_string(name, "name", MAX_GROUP_NAME_LENGTH, GROUP_NAME_PATTERN)


def validate_admin(admin: Any) -> Tuple[bool, str]:
    """Validate an admin identifier."""
    return validate_string(admin, "admin", MAX_ADMIN_LENGTH)


def validate_tree_depth(
    depth: Any,
    min_depth: int = MIN_TREE_DEPTH,
    max_depth: int = MAX_TREE_DEPTH,
) -> Tuple[bool, str]:
    """Validate a Merkle tree depth."""
    return validate_integer(depth, "tree_depth", min_depth, max_depth)


def validate_commitment(value: Any) -> Tuple[bool, str]:
    """
    Validate an identity commitment.

    Accepts a non-negative int or a decimal string; either way the value
    must be a BN254 field element.
    """
    if isinstance(value, str):
        if not re.fullmatch(DECIMAL_PATTERN, value):
            return False, "commitment must be a decimal numeric string"
        if len(value) > MAX_COMMITMENT_DIGITS:
            return False, f"commitment exceeds max length {MAX_COMMITMENT_DIGITS}"
        value = int(value)

    return validate_field_element(value, "commitment")


def validate_invite_code(code: Any) -> Tuple[bool, str]:
    """Validate an invite code (lowercase hex)."""
    return validate_string(code, "invite_code", 128, r"^[0-9a-f]+$")


# =============================================================================
# Normalization
# =============================================================================


def normalize_commitment(value: Union[str, int]) -> str:
    """
    Return the canonical decimal form of a commitment.

    "00123" and 123 both become "123", so membership checks do not depend on
    how the caller spelled the number.

    Raises:
        InvalidInputError: If the value is not a valid commitment
    """
    valid, err = validate_commitment(value)
    if not valid:
        raise InvalidInputError(err)
    return str(int(value))


# =============================================================================
# Module Exports
# =============================================================================

__all__ = [
    "validate_integer",
    "validate_field_element",
    "validate_string",
    "validate_group_name",
    "validate_admin",
    "validate_tree_depth",
    "validate_commitment",
    "validate_invite_code",
    "normalize_commitment",
    "MAX_GROUP_NAME_LENGTH",
    "MAX_DESCRIPTION_LENGTH",
    "MIN_TREE_DEPTH",
    "MAX_TREE_DEPTH",
]
