"""Pointman exceptions."""


class PointmanError(Exception):
    """
    Structured exception for loyalty operations.

    Carries a stable ``code``, a human-readable ``message`` and a ``data``
    dict with the values that explain the failure.

    Usage:
        try:
            LoyaltyService.use_points("USER-001", 500)
        except PointmanError as e:
            if e.code == "INSUFFICIENT_BALANCE":
                handle_insufficient(e.data["available"])
    """

    _default_messages = {
        "INSUFFICIENT_BALANCE": "Insufficient points for redemption",
        "INVALID_AMOUNT": "Invalid amount",
        "BENEFIT_NOT_FOUND": "Benefit not found",
        "INELIGIBLE_STAGE": "Current stage is not eligible for this benefit",
        "BENEFIT_EXPIRED": "Benefit is outside its validity window",
        "STORE_UNAVAILABLE": "Loyalty store unavailable",
    }

    def __init__(self, code: str, message: str | None = None, **data):
        self.code = code
        self.message = message or self._default_messages.get(code, code)
        self.data = data
        super().__init__(f"[{code}] {self.message}")

    def as_dict(self) -> dict:
        return {"error": self.code, "message": self.message, "details": self.data}
