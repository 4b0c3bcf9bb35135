"""StageRecord model."""

from django.db import models
from django.utils.translation import gettext_lazy as _


class StageRecord(models.Model):
    """
    Current membership stage of a user.

    One record per user. Mutated in place when a recomputation yields a
    different label.
    """

    user_id = models.CharField(_("usuário"), max_length=100, unique=True)
    stage = models.CharField(_("estágio"), max_length=50, db_index=True)
    promotion_threshold = models.IntegerField(
        _("limite de promoção"),
        default=0,
        help_text=_("Saldo mínimo da faixa do estágio atual"),
    )

    applied_at = models.DateTimeField(_("aplicado em"), auto_now_add=True)
    updated_at = models.DateTimeField(_("atualizado em"), auto_now=True)

    class Meta:
        verbose_name = _("estágio de fidelidade")
        verbose_name_plural = _("estágios de fidelidade")
        ordering = ["user_id"]

    def __str__(self):
        return f"{self.user_id}: {self.stage}"
