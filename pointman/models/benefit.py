"""Benefit models — stage-gated, time-bounded perks."""

from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _


class Benefit(models.Model):
    """
    Benefit definition.

    Reference data maintained through the admin. A benefit is active
    while valid_from <= now < valid_until.
    """

    description = models.CharField(_("descrição"), max_length=255)
    eligible_stages = models.JSONField(
        _("estágios elegíveis"),
        default=list,
        help_text=_('Lista de estágios (ex: ["Gold", "Silver"])'),
    )
    valid_from = models.DateTimeField(_("válido a partir de"))
    valid_until = models.DateTimeField(_("válido até"))

    created_at = models.DateTimeField(_("criado em"), auto_now_add=True)

    class Meta:
        verbose_name = _("benefício")
        verbose_name_plural = _("benefícios")
        ordering = ["valid_until", "id"]

    def __str__(self):
        return self.description

    def clean(self):
        stages = self.eligible_stages
        if not isinstance(stages, list) or not all(
            isinstance(stage, str) and stage for stage in stages
        ):
            raise ValidationError(
                {"eligible_stages": _("Informe uma lista de nomes de estágio.")}
            )
        if self.valid_from and self.valid_until and self.valid_from >= self.valid_until:
            raise ValidationError(
                {"valid_until": _("Deve ser posterior a \"válido a partir de\".")}
            )

    def is_active_at(self, when=None) -> bool:
        """Whether ``when`` (default: now) falls in [valid_from, valid_until)."""
        when = when or timezone.now()
        return self.valid_from <= when < self.valid_until


class BenefitApplication(models.Model):
    """Fact that a benefit was applied for a user. One per (benefit, user)."""

    benefit = models.ForeignKey(
        Benefit,
        on_delete=models.PROTECT,
        related_name="applications",
        verbose_name=_("benefício"),
    )
    user_id = models.CharField(_("usuário"), max_length=100, db_index=True)
    applied_at = models.DateTimeField(_("aplicado em"), auto_now_add=True)

    class Meta:
        verbose_name = _("aplicação de benefício")
        verbose_name_plural = _("aplicações de benefício")
        ordering = ["-applied_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["benefit", "user_id"],
                name="pointman_unique_benefit_application",
            ),
        ]

    def __str__(self):
        return f"{self.user_id} ← {self.benefit_id}"
