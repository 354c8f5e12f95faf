"""Vision grader output."""

from pydantic import BaseModel, Field

from storefront_audit.models.model_audit import CategoryResult, ExpertSummary, PurchaseFlowTrace
from storefront_audit.models.model_category import CategoryId


class GradeOutput(BaseModel):
    """Per-category AI scores plus optional summary and purchase-flow trace."""

    url: str
    categories: list[CategoryResult] = Field(default_factory=list)
    expert_summary: ExpertSummary | None = None
    purchase_flow: PurchaseFlowTrace | None = None
    model: str | None = Field(default=None, description="Model that produced the grades")

    def category_ids(self) -> set[CategoryId]:
        """Ids present in this output."""
        return {result.id for result in self.categories}
