"""
Loyalty JSON endpoints.

Thin request layer over LoyaltyService. Engine errors are returned as
{"error": code, "message": ..., "details": {...}} with the status from
ERROR_STATUS.
"""

from __future__ import annotations

import json
import logging

from django.http import JsonResponse
from django.utils.decorators import method_decorator
from django.views import View
from django.views.decorators.csrf import csrf_exempt

from pointman.exceptions import PointmanError
from pointman.service import LoyaltyService

logger = logging.getLogger("pointman.views")

ERROR_STATUS = {
    "INVALID_AMOUNT": 400,
    "BENEFIT_NOT_FOUND": 404,
    "INSUFFICIENT_BALANCE": 409,
    "INELIGIBLE_STAGE": 409,
    "BENEFIT_EXPIRED": 409,
    "STORE_UNAVAILABLE": 503,
}


class BadRequest(Exception):
    pass


def _entry_payload(entry) -> dict:
    return {
        "id": entry.id,
        "points": entry.points,
        "reason": str(entry.reason),
        "description": entry.description,
        "reference": entry.reference,
        "date": entry.entry_date.isoformat(),
        "expires_on": entry.expires_on.isoformat() if entry.expires_on else None,
    }


def _benefit_payload(benefit) -> dict:
    return {
        "id": benefit.id,
        "description": benefit.description,
        "eligible_stages": sorted(benefit.eligible_stages),
        "valid_from": benefit.valid_from.isoformat(),
        "valid_until": benefit.valid_until.isoformat(),
    }


def _json_body(request) -> dict:
    if not request.body:
        return {}
    try:
        data = json.loads(request.body)
    except (json.JSONDecodeError, ValueError):
        raise BadRequest("Invalid JSON")
    if not isinstance(data, dict):
        raise BadRequest("JSON body must be an object")
    return data


@method_decorator(csrf_exempt, name="dispatch")
class LoyaltyView(View):
    """Base view: maps PointmanError and BadRequest to JSON error responses."""

    def dispatch(self, request, *args, **kwargs):
        try:
            return super().dispatch(request, *args, **kwargs)
        except BadRequest as exc:
            return JsonResponse({"error": "INVALID_REQUEST", "message": str(exc)}, status=400)
        except PointmanError as exc:
            return JsonResponse(exc.as_dict(), status=ERROR_STATUS.get(exc.code, 400))
        except Exception:
            logger.exception("Loyalty endpoint failed: %s %s", request.method, request.path)
            return JsonResponse({"error": "INTERNAL_ERROR", "message": "Internal error"}, status=500)


class BalanceView(LoyaltyView):
    def get(self, request, user_id):
        return JsonResponse({"user_id": user_id, "balance": LoyaltyService.get_balance(user_id)})


class HistoryView(LoyaltyView):
    def get(self, request, user_id):
        limit = request.GET.get("limit")
        if limit is not None:
            try:
                limit = int(limit)
            except ValueError:
                raise BadRequest("limit must be an integer")
            if limit <= 0:
                raise BadRequest("limit must be positive")

        entries = LoyaltyService.get_history(user_id, limit)
        return JsonResponse(
            {"user_id": user_id, "entries": [_entry_payload(entry) for entry in entries]}
        )


class UsePointsView(LoyaltyView):
    def post(self, request, user_id):
        data = _json_body(request)
        if "points" not in data:
            raise BadRequest("points is required")

        entry = LoyaltyService.use_points(
            user_id,
            data["points"],
            reference=str(data.get("reference", "")),
        )
        return JsonResponse(
            {
                "status": "used",
                "entry": _entry_payload(entry),
                "balance": LoyaltyService.get_balance(user_id),
            }
        )


class StageView(LoyaltyView):
    """
    Recorded stage for a user.

    404 until the stage is first recomputed. Benefit checks treat such a
    user as the lowest rung, but nothing is recorded until then.
    """

    def get(self, request, user_id):
        stage = LoyaltyService.get_stage(user_id)
        if stage is None:
            return JsonResponse(
                {"error": "STAGE_NOT_FOUND", "message": "No stage recorded for user"},
                status=404,
            )
        return JsonResponse(
            {
                "user_id": stage.user_id,
                "stage": stage.stage,
                "promotion_threshold": stage.promotion_threshold,
                "applied_at": stage.applied_at.isoformat() if stage.applied_at else None,
                "updated_at": stage.updated_at.isoformat() if stage.updated_at else None,
            }
        )


class RecomputeStageView(LoyaltyView):
    def post(self, request, user_id):
        return JsonResponse({"user_id": user_id, "stage": LoyaltyService.update_stage(user_id)})


class BenefitListView(LoyaltyView):
    def get(self, request):
        benefits = LoyaltyService.list_benefits()
        return JsonResponse({"benefits": [_benefit_payload(benefit) for benefit in benefits]})


class ApplyBenefitView(LoyaltyView):
    def post(self, request, benefit_id):
        data = _json_body(request)
        user_id = data.get("user_id") or request.GET.get("user_id")
        if not user_id:
            raise BadRequest("user_id is required")

        application = LoyaltyService.apply_benefit(str(user_id), benefit_id)
        return JsonResponse(
            {
                "status": "applied" if application.created else "already_applied",
                "benefit_id": application.benefit_id,
                "user_id": application.user_id,
            }
        )


class NotifyExpirationView(LoyaltyView):
    def post(self, request, user_id):
        return JsonResponse(
            {"user_id": user_id, "notified": LoyaltyService.notify_expiration(user_id)}
        )
