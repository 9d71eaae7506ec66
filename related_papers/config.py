"""Tuning configuration for the related-papers engine."""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .core.models import RelatedPapersParams
from .services.anchor_service import AnchorPolicy
from .services.cocitation_service import CoCitationModel


class RelatedPapersConfig(BaseSettings):  # type: ignore[misc]
    """Algorithm defaults, overridable through ``RELATED_PAPERS_*`` variables."""

    max_anchors: int = Field(15, description="Seed references used as coupling anchors (K)")
    per_anchor: int = Field(25, description="Citing papers fetched per anchor (N)")
    max_results: int = Field(50, description="Ranked results returned (M)")
    exclude_review_articles: bool = Field(
        True, description="Drop review articles from anchors and results"
    )
    concurrency: int = Field(2, description="Maximum in-flight INSPIRE requests")
    cocitation_top_n: int = Field(
        30, description="Coupling candidates re-ranked with co-citation counts"
    )

    anchor_min_citations: int = Field(5, description="Lower bound of the preferred anchor range")
    anchor_max_citations: int = Field(300, description="Upper bound of the preferred anchor range")
    anchor_too_high_citations: int = Field(
        1500, description="Anchors above this count are considered too generic"
    )
    anchor_target_citations: int = Field(50, description="Ideal anchor citation count")

    cocitation_max_weight: float = Field(0.5, description="Cap of the co-citation blend weight")
    cocitation_min_citations: int = Field(
        5, description="Seed citing count below which co-citation is skipped"
    )
    cocitation_sigmoid_center: float = Field(20.0, description="Seed citing count at half weight")
    cocitation_sigmoid_slope: float = Field(0.15, description="Steepness of the blend curve")

    model_config = SettingsConfigDict(env_prefix="RELATED_PAPERS_", env_file=".env", extra="ignore")

    @field_validator(
        "max_anchors",
        "per_anchor",
        "max_results",
        "concurrency",
        "cocitation_top_n",
        "anchor_target_citations",
    )
    @classmethod
    def validate_positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("must be a positive integer")
        return value

    @field_validator("cocitation_max_weight")
    @classmethod
    def validate_max_weight(cls, value: float) -> float:
        if not 0.0 <= value <= 0.5:
            raise ValueError("cocitation_max_weight must be within [0, 0.5]")
        return value

    def to_params(self) -> RelatedPapersParams:
        return RelatedPapersParams(
            max_anchors=self.max_anchors,
            per_anchor=self.per_anchor,
            max_results=self.max_results,
            exclude_review_articles=self.exclude_review_articles,
            concurrency=self.concurrency,
            cocitation_top_n=self.cocitation_top_n,
        )

    def anchor_policy(self) -> AnchorPolicy:
        return AnchorPolicy(
            min_citations=self.anchor_min_citations,
            max_citations=self.anchor_max_citations,
            too_high_citations=self.anchor_too_high_citations,
            target_citations=self.anchor_target_citations,
        )

    def cocitation_model(self) -> CoCitationModel:
        return CoCitationModel(
            max_weight=self.cocitation_max_weight,
            min_citations=self.cocitation_min_citations,
            sigmoid_center=self.cocitation_sigmoid_center,
            sigmoid_slope=self.cocitation_sigmoid_slope,
        )
