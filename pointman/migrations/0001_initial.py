# Generated migration for the loyalty ledger, stages and benefits

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="PointAccount",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "user_id",
                    models.CharField(
                        help_text="Identificador do usuário no sistema de origem",
                        max_length=100,
                        unique=True,
                        verbose_name="usuário",
                    ),
                ),
                ("balance", models.IntegerField(default=0, verbose_name="saldo de pontos")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="criado em")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="atualizado em")),
            ],
            options={
                "verbose_name": "conta de pontos",
                "verbose_name_plural": "contas de pontos",
            },
        ),
        migrations.CreateModel(
            name="LedgerEntry",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("user_id", models.CharField(db_index=True, max_length=100, verbose_name="usuário")),
                (
                    "points",
                    models.IntegerField(
                        help_text="Positivo para acúmulo, negativo para resgate",
                        verbose_name="pontos",
                    ),
                ),
                (
                    "reason",
                    models.CharField(
                        choices=[
                            ("purchase_accrual", "purchase accrual"),
                            ("redemption", "point redemption"),
                        ],
                        max_length=30,
                        verbose_name="motivo",
                    ),
                ),
                ("description", models.CharField(blank=True, max_length=200, verbose_name="descrição")),
                (
                    "reference",
                    models.CharField(
                        blank=True,
                        help_text="ID externo (ex: order:123)",
                        max_length=100,
                        verbose_name="referência",
                    ),
                ),
                ("entry_date", models.DateField(verbose_name="data")),
                (
                    "expires_on",
                    models.DateField(
                        blank=True,
                        db_index=True,
                        help_text="Somente para acúmulos",
                        null=True,
                        verbose_name="expira em",
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, verbose_name="criado em")),
            ],
            options={
                "verbose_name": "lançamento de pontos",
                "verbose_name_plural": "lançamentos de pontos",
                "ordering": ["-created_at", "-id"],
                "indexes": [
                    models.Index(fields=["user_id", "-created_at"], name="pointman_ledger_user_created"),
                    models.Index(fields=["user_id", "expires_on"], name="pointman_ledger_user_expires"),
                ],
            },
        ),
        migrations.CreateModel(
            name="StageRecord",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("user_id", models.CharField(max_length=100, unique=True, verbose_name="usuário")),
                ("stage", models.CharField(db_index=True, max_length=50, verbose_name="estágio")),
                (
                    "promotion_threshold",
                    models.IntegerField(
                        default=0,
                        help_text="Saldo mínimo da faixa do estágio atual",
                        verbose_name="limite de promoção",
                    ),
                ),
                ("applied_at", models.DateTimeField(auto_now_add=True, verbose_name="aplicado em")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="atualizado em")),
            ],
            options={
                "verbose_name": "estágio de fidelidade",
                "verbose_name_plural": "estágios de fidelidade",
                "ordering": ["user_id"],
            },
        ),
        migrations.CreateModel(
            name="Benefit",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("description", models.CharField(max_length=255, verbose_name="descrição")),
                (
                    "eligible_stages",
                    models.JSONField(
                        default=list,
                        help_text='Lista de estágios (ex: ["Gold", "Silver"])',
                        verbose_name="estágios elegíveis",
                    ),
                ),
                ("valid_from", models.DateTimeField(verbose_name="válido a partir de")),
                ("valid_until", models.DateTimeField(verbose_name="válido até")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="criado em")),
            ],
            options={
                "verbose_name": "benefício",
                "verbose_name_plural": "benefícios",
                "ordering": ["valid_until", "id"],
            },
        ),
        migrations.CreateModel(
            name="BenefitApplication",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("user_id", models.CharField(db_index=True, max_length=100, verbose_name="usuário")),
                ("applied_at", models.DateTimeField(auto_now_add=True, verbose_name="aplicado em")),
                (
                    "benefit",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="applications",
                        to="pointman.benefit",
                        verbose_name="benefício",
                    ),
                ),
            ],
            options={
                "verbose_name": "aplicação de benefício",
                "verbose_name_plural": "aplicações de benefício",
                "ordering": ["-applied_at"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("benefit", "user_id"),
                        name="pointman_unique_benefit_application",
                    ),
                ],
            },
        ),
    ]
