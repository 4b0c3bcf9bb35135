"""
Django Pointman - Loyalty points, stages and benefits.

Usage:
    INSTALLED_APPS = [
        ...
        "pointman",
    ]

    from pointman import LoyaltyService, PointmanError

    LoyaltyService.add_points("USER-001", Decimal("250.00"))
    LoyaltyService.use_points("USER-001", 10)
    stage = LoyaltyService.update_stage("USER-001")
    LoyaltyService.apply_benefit("USER-001", benefit_id=3)
"""


def __getattr__(name):
    if name == "LoyaltyService":
        from pointman.service import LoyaltyService

        return LoyaltyService
    if name == "LoyaltyEngine":
        from pointman.engine import LoyaltyEngine

        return LoyaltyEngine
    if name == "PointmanError":
        from pointman.exceptions import PointmanError

        return PointmanError
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = ["LoyaltyService", "LoyaltyEngine", "PointmanError"]
__version__ = "0.1.0"
