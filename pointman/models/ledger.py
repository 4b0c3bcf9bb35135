"""Ledger models — point entries and per-user accounts.

Data architecture:
    LedgerEntry
        Source of truth. Append-only; the balance of a user is the sum of
        their entries' points.

    PointAccount
        One row per user. Row-locked for every ledger write and carries a
        cached running balance updated in the same transaction as the entry.
"""

from django.db import models
from django.utils.translation import gettext_lazy as _


class EntryReason(models.TextChoices):
    """Why the points moved."""

    PURCHASE_ACCRUAL = "purchase_accrual", _("purchase accrual")
    REDEMPTION = "redemption", _("point redemption")


class PointAccount(models.Model):
    """
    Per-user point account.

    ``balance`` is a cache of the ledger sum, maintained by
    DjangoLedgerStore.append_entry(). ``pointman_reconcile`` checks it.
    """

    user_id = models.CharField(
        _("usuário"),
        max_length=100,
        unique=True,
        help_text=_("Identificador do usuário no sistema de origem"),
    )
    balance = models.IntegerField(_("saldo de pontos"), default=0)

    created_at = models.DateTimeField(_("criado em"), auto_now_add=True)
    updated_at = models.DateTimeField(_("atualizado em"), auto_now=True)

    class Meta:
        verbose_name = _("conta de pontos")
        verbose_name_plural = _("contas de pontos")

    def __str__(self):
        return f"{self.user_id}: {self.balance}pts"


class LedgerEntry(models.Model):
    """
    Immutable record of one point movement.

    Entries are append-only. They are never modified or deleted.
    """

    user_id = models.CharField(_("usuário"), max_length=100, db_index=True)
    points = models.IntegerField(
        _("pontos"),
        help_text=_("Positivo para acúmulo, negativo para resgate"),
    )
    reason = models.CharField(
        _("motivo"),
        max_length=30,
        choices=EntryReason.choices,
    )
    description = models.CharField(_("descrição"), max_length=200, blank=True)
    reference = models.CharField(
        _("referência"),
        max_length=100,
        blank=True,
        help_text=_("ID externo (ex: order:123)"),
    )

    entry_date = models.DateField(_("data"))
    expires_on = models.DateField(
        _("expira em"),
        null=True,
        blank=True,
        db_index=True,
        help_text=_("Somente para acúmulos"),
    )

    created_at = models.DateTimeField(_("criado em"), auto_now_add=True, db_index=True)

    class Meta:
        verbose_name = _("lançamento de pontos")
        verbose_name_plural = _("lançamentos de pontos")
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["user_id", "-created_at"], name="pointman_ledger_user_created"),
            models.Index(fields=["user_id", "expires_on"], name="pointman_ledger_user_expires"),
        ]

    def __str__(self):
        sign = "+" if self.points > 0 else ""
        return f"{self.user_id}: {sign}{self.points}pts ({self.reason})"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValueError("Ledger entries are immutable")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValueError("Ledger entries cannot be deleted")
