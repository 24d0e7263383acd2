"""Customer profile attached to an authenticated user.

Business rules implemented:
- The profile's ``role`` decides the ordering channel (B2B vs B2C).
- B2B customers must carry company name, business type and tax id.
- Sensitive data (tax id) masked in ``__str__`` and logs.
"""

from __future__ import annotations

import structlog
from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models

from modules.core.models import BaseModel

logger = structlog.get_logger(__name__)


class CustomerRole(models.TextChoices):
    ADMIN = "admin", "Admin"
    B2B_CUSTOMER = "b2b_customer", "B2B customer"
    B2C_CUSTOMER = "b2c_customer", "B2C customer"


class BusinessType(models.TextChoices):
    RETAILER = "retailer", "Retailer"
    WHOLESALER = "wholesaler", "Wholesaler"
    DISTRIBUTOR = "distributor", "Distributor"
    MANUFACTURER = "manufacturer", "Manufacturer"
    OTHER = "other", "Other"


class Customer(BaseModel):
    """Commercial profile of a user.

    Identity (credentials, login) stays in ``django.contrib.auth``; this
    row only carries what order intake needs to know about the account.
    """

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="customer",
    )
    role = models.CharField(
        max_length=20,
        choices=CustomerRole.choices,
        default=CustomerRole.B2C_CUSTOMER,
    )
    phone = models.CharField(max_length=20, blank=True, default="")
    company_name = models.CharField(max_length=255, blank=True, default="")
    business_type = models.CharField(
        max_length=20,
        choices=BusinessType.choices,
        blank=True,
        default="",
    )
    tax_id = models.CharField(max_length=32, blank=True, default="")

    class Meta:
        db_table = "customers"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["role"], name="customers_role_idx"),
        ]

    def clean(self) -> None:
        super().clean()
        if self.role != CustomerRole.B2B_CUSTOMER:
            return
        errors = {}
        if not self.company_name:
            errors["company_name"] = "Company name is required for B2B customers."
        if not self.business_type:
            errors["business_type"] = "Business type is required for B2B customers."
        if not self.tax_id:
            errors["tax_id"] = "Tax ID is required for B2B customers."
        if errors:
            raise ValidationError(errors)

    @property
    def masked_tax_id(self) -> str:
        if len(self.tax_id) <= 4:
            return "***"
        return f"***{self.tax_id[-4:]}"

    def __str__(self) -> str:
        return f"{self.user} ({self.role}, tax id {self.masked_tax_id})"
