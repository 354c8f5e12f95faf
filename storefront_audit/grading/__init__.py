"""Vision graders producing per-category AI scores."""

from storefront_audit.grading.base import Grader, GraderScreenshots
from storefront_audit.grading.mock_grader import MOCK_SCORES, MockGrader
from storefront_audit.grading.vision_grader import VisionGrader, parse_grade_payload

__all__ = [
    "Grader",
    "GraderScreenshots",
    "MOCK_SCORES",
    "MockGrader",
    "VisionGrader",
    "parse_grade_payload",
]
