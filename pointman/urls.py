from django.urls import path

from .views import (
    ApplyBenefitView,
    BalanceView,
    BenefitListView,
    HistoryView,
    NotifyExpirationView,
    RecomputeStageView,
    StageView,
    UsePointsView,
)

app_name = "pointman"

urlpatterns = [
    path("users/<str:user_id>/balance/", BalanceView.as_view(), name="balance"),
    path("users/<str:user_id>/history/", HistoryView.as_view(), name="history"),
    path("users/<str:user_id>/points/use/", UsePointsView.as_view(), name="use-points"),
    path("users/<str:user_id>/stage/", StageView.as_view(), name="stage"),
    path(
        "users/<str:user_id>/stage/recompute/",
        RecomputeStageView.as_view(),
        name="recompute-stage",
    ),
    path(
        "users/<str:user_id>/notify-expiration/",
        NotifyExpirationView.as_view(),
        name="notify-expiration",
    ),
    path("benefits/", BenefitListView.as_view(), name="benefits"),
    path("benefits/<int:benefit_id>/apply/", ApplyBenefitView.as_view(), name="apply-benefit"),
]
