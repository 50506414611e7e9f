"""
Error kinds raised by the ledger, trade and troop administration layers.

All derive from ValueError so callers that treat bad input generically keep
working; the API layer maps each kind to its own status code.
"""

from typing import Optional


class TroopError(ValueError):
    """Base class for troop domain errors"""


class ValidationError(TroopError):
    """Malformed input: unknown product, negative quantity, empty message, ..."""


class OverSellError(TroopError):
    """Sale quantity exceeds the member's remaining boxes"""

    def __init__(self, member_id: str, product_code: str, requested: int, remaining: int):
        self.member_id = member_id
        self.product_code = product_code
        self.requested = requested
        self.remaining = remaining
        super().__init__(
            f"Cannot sell {requested} boxes of {product_code}: only {remaining} remaining"
        )


class InsufficientStockError(TroopError):
    """A transfer, trade or field edit would leave a member with negative remaining"""

    def __init__(self, member_id: str, product_code: str, requested: int, remaining: int):
        self.member_id = member_id
        self.product_code = product_code
        self.requested = requested
        self.remaining = remaining
        super().__init__(
            f"Member {member_id} has {remaining} boxes of {product_code}, {requested} required"
        )


class NotFoundError(TroopError):
    """Referenced member, trade, booth or meeting does not exist"""

    def __init__(self, entity_type: str, entity_id: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type.capitalize()} {entity_id} not found")


class UnauthorizedError(TroopError):
    """Actor lacks the capability for this operation, or credentials were rejected"""


class PersistenceError(TroopError):
    """The backing store failed to commit a write"""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        self.cause = cause
        super().__init__(message)
