"""Grader protocol and inputs."""

from dataclasses import dataclass, field
from typing import Protocol

from storefront_audit.models.model_grading import GradeOutput
from storefront_audit.models.model_platform import Platform


@dataclass
class GraderScreenshots:
    """Screenshots handed to the grader (URLs or data URIs)."""

    first_view: str | None = None
    actions: list[str] = field(default_factory=list)


class Grader(Protocol):
    """Vision-capable grader contract.

    On success the output must contain exactly the ten fixed category ids.
    """

    name: str

    async def grade(
        self,
        url: str,
        platform: Platform,
        html: str | None,
        screenshots: GraderScreenshots,
    ) -> GradeOutput:
        """Grade a storefront.

        Args:
            url: Audited URL
            platform: Detected platform label
            html: Collected markup (may be truncated by the grader)
            screenshots: First-view and action screenshots

        Returns:
            GradeOutput with category scores, evidence and insights
        """
        ...
