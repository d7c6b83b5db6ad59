from typing import Optional

from pydantic import BaseModel
from pydantic.alias_generators import to_camel

PROPERTY_TYPES = ("single_family", "duplex", "triplex", "fourplex", "condo", "townhouse")
INVESTMENT_EXPERIENCE_LEVELS = ("first_time", "some_experience", "experienced", "professional")


class BuyerProfile(BaseModel):
    """
    Normalized investor profile. Numeric fields are numbers or None, text fields are
    trimmed non-empty strings or None; build instances with services.normalizer.normalize_profile.
    """
    property_value: Optional[float] = None
    property_type: Optional[str] = None
    property_location: Optional[str] = None
    down_payment_percent: Optional[float] = None
    property_vacant: Optional[str] = None
    current_rent: Optional[float] = None
    credit_score: Optional[float] = None
    investment_experience: Optional[str] = None
    help_query: Optional[str] = None
    additional_details: Optional[str] = None

    model_config = {"alias_generator": to_camel, "populate_by_name": True}

    @property
    def loan_amount(self) -> Optional[float]:
        """Financed amount implied by value and down payment (0% down finances the full value)."""
        if self.property_value and self.down_payment_percent is not None:
            return self.property_value * (1 - self.down_payment_percent / 100)
        return None
