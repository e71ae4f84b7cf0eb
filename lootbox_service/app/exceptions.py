from __future__ import annotations


class LootboxServiceError(Exception):
    """Base exception for all lootbox-service errors.

    status_code/public_message are what the HTTP layer renders. The exception's
    own message is for logs and may contain internal detail.
    """

    status_code: int = 500
    public_message: str = "Internal server error"

    def to_payload(self) -> dict[str, object]:
        return {"error": self.public_message}


class InvalidInput(LootboxServiceError):
    """Missing or malformed request fields."""

    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.public_message = message


class UnknownBox(LootboxServiceError):
    """Requested lootbox id is not in the catalog."""

    status_code = 400

    def __init__(self, box_id: str) -> None:
        super().__init__(f"Unknown lootbox '{box_id}'")
        self.box_id = box_id
        self.public_message = f"Unknown lootbox '{box_id}'"


class InsufficientCredits(LootboxServiceError):
    """Balance is lower than the box price. No mutation was performed."""

    status_code = 400
    public_message = "Not enough credits"

    def __init__(self, required: int, current: int) -> None:
        super().__init__(f"not enough credits: required={required} current={current}")
        self.required = required
        self.current = current

    def to_payload(self) -> dict[str, object]:
        return {
            "error": self.public_message,
            "required": self.required,
            "current": self.current,
        }


class StoreUnavailable(LootboxServiceError):
    """Balance store could not be read or written (transport, auth, HTTP error)."""

    status_code = 500
    public_message = "Credit store unavailable"


class FulfillmentFailed(LootboxServiceError):
    """Order creation for a won prize failed. Captured on the spin outcome."""

    public_message = "Unable to create prize order"


class InvalidConfiguration(LootboxServiceError):
    """Lootbox table is unusable (empty items, non-positive weights, duplicates)."""


class LedgerUnavailable(LootboxServiceError):
    """Spin ledger is disabled or its storage failed."""

    status_code = 503
    public_message = "Spin ledger unavailable"
