"""
Reputation Policy - Marketplace parameters for trust weighting and suspension

The ReputationPolicy defines the thresholds that turn customer ratings into
supplier and transporter reputations, and reputations into suspensions.

Fun fact: Medieval fruit markets in Seville kept a "libro de fieles" (book of
the trustworthy) of vendors whose scales had passed inspection. Same idea,
fewer quill pens.
"""

from pydantic import BaseModel, Field, model_validator


class ReputationPolicy(BaseModel):
    """
    Reputation and suspension parameters

    Trust weights follow a step function of how many qualifying orders the
    rating customer has placed with the rated supplier:

    - fewer than ``repeat_purchase_min`` orders: ``weight_first_time``
    - ``repeat_purchase_min`` up to ``loyal_purchase_min - 1``: ``weight_repeat``
    - ``loyal_purchase_min`` or more: ``weight_loyal``
    """

    policy_version: str = Field(default="1.0", description="Policy version")

    # Trust weights
    weight_first_time: float = Field(default=0.05, gt=0.0, le=1.0)
    weight_repeat: float = Field(default=0.15, gt=0.0, le=1.0)
    weight_loyal: float = Field(default=0.80, gt=0.0, le=1.0)
    repeat_purchase_min: int = Field(
        default=2, ge=1, description="Purchase count where repeat weighting starts"
    )
    loyal_purchase_min: int = Field(
        default=11, ge=2, description="Purchase count where loyal weighting starts"
    )

    # Suspension
    min_ratings_for_suspension: int = Field(
        default=10,
        ge=1,
        description="Minimum number of ratings before a user can be suspended",
    )
    suspension_rating_threshold: float = Field(
        default=1.5,
        ge=0.0,
        description="Average rating strictly below this suspends the user",
    )

    # Rating scale accepted at assessment time
    rating_min: int = Field(default=1, ge=0)
    rating_max: int = Field(default=5, ge=1)

    # Seeded manager account
    default_manager_username: str = Field(default="Nhom1")
    default_manager_password: str = Field(default="123")
    default_manager_address: str = Field(
        default="1 Management Plaza, Admin City, AC 10001"
    )
    default_manager_ethereum_address: str = Field(
        default="0xManagerEthAddressPlaceholder"
    )

    @model_validator(mode="after")
    def validate_ordering(self) -> "ReputationPolicy":
        """Weights must increase with purchase history and tiers must not overlap"""
        if not (self.weight_first_time < self.weight_repeat < self.weight_loyal):
            raise ValueError(
                "Trust weights must be strictly increasing: "
                f"{self.weight_first_time} < {self.weight_repeat} < {self.weight_loyal}"
            )
        if self.loyal_purchase_min <= self.repeat_purchase_min:
            raise ValueError("loyal_purchase_min must be greater than repeat_purchase_min")
        if self.rating_max <= self.rating_min:
            raise ValueError("rating_max must be greater than rating_min")
        return self


default_reputation_policy = ReputationPolicy()
