"""Pointman admin."""

from django.contrib import admin
from django.utils.html import format_html

from pointman.models import (
    Benefit,
    BenefitApplication,
    LedgerEntry,
    PointAccount,
    StageRecord,
)

_STAGE_COLORS = {
    "Bronze": "#cd7f32",
    "Silver": "#c0c0c0",
    "Gold": "#ffd700",
}


@admin.register(PointAccount)
class PointAccountAdmin(admin.ModelAdmin):
    list_display = ["user_id", "balance", "created_at", "updated_at"]
    search_fields = ["user_id"]
    readonly_fields = ["user_id", "balance", "created_at", "updated_at"]

    def has_add_permission(self, request):
        return False


@admin.register(LedgerEntry)
class LedgerEntryAdmin(admin.ModelAdmin):
    list_display = [
        "created_at",
        "user_id",
        "reason",
        "points_display",
        "entry_date",
        "expires_on",
        "description",
    ]
    list_filter = ["reason"]
    search_fields = ["user_id", "description", "reference"]
    readonly_fields = [
        "user_id",
        "points",
        "reason",
        "description",
        "reference",
        "entry_date",
        "expires_on",
        "created_at",
    ]
    date_hierarchy = "created_at"

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    def points_display(self, obj):
        if obj.points > 0:
            return format_html('<span style="color:green">+{}</span>', obj.points)
        return format_html('<span style="color:red">{}</span>', obj.points)

    points_display.short_description = "Pontos"


@admin.register(StageRecord)
class StageRecordAdmin(admin.ModelAdmin):
    list_display = ["user_id", "stage_badge", "promotion_threshold", "applied_at", "updated_at"]
    list_filter = ["stage"]
    search_fields = ["user_id"]
    readonly_fields = ["applied_at", "updated_at"]

    def stage_badge(self, obj):
        color = _STAGE_COLORS.get(obj.stage, "#6c757d")
        return format_html(
            '<span style="background:{}; color:#000; padding:2px 8px; '
            'border-radius:3px; font-size:11px;">{}</span>',
            color,
            obj.stage,
        )

    stage_badge.short_description = "Estágio"


class BenefitApplicationInline(admin.TabularInline):
    model = BenefitApplication
    extra = 0
    readonly_fields = ["user_id", "applied_at"]

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Benefit)
class BenefitAdmin(admin.ModelAdmin):
    list_display = ["description", "stages_display", "valid_from", "valid_until", "is_active_now"]
    search_fields = ["description"]
    readonly_fields = ["created_at"]
    inlines = [BenefitApplicationInline]

    def stages_display(self, obj):
        return ", ".join(obj.eligible_stages or [])

    stages_display.short_description = "Estágios"

    @admin.display(boolean=True, description="Ativo")
    def is_active_now(self, obj):
        return obj.is_active_at()
