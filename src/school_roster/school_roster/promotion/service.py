from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from ..core.constants import PROMOTION_TERMINAL_RANK
from ..core.enums import PromotionOutcome
from ..roster.model import SchoolClass
from ..roster.repository import ClassRepository, StudentRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClassPromotion:
    class_id: int
    class_name: str
    outcome: PromotionOutcome
    student_count: int
    target_class_id: Optional[int] = None
    message: str = ""


@dataclass
class PromotionReport:
    results: list[ClassPromotion] = field(default_factory=list)

    @property
    def logs(self) -> list[str]:
        return [r.message for r in self.results]

    def count(self, outcome: PromotionOutcome) -> int:
        return sum(1 for r in self.results if r.outcome == outcome)


class PromotionService:
    """Use case: advance every ranked class one grade in a single call.

    Classes are processed highest rank first. A roster pushed into rank
    ``r + 1`` must not be seen again while rank ``r + 1`` is still pending,
    so the descending order is what keeps one pass from promoting twice.

    There is no cross-class transaction: each class is promoted on its own
    and a failure is reported in the result instead of aborting the batch.
    """

    def __init__(
        self,
        students: StudentRepository,
        classes: ClassRepository,
        *,
        terminal_rank: int = PROMOTION_TERMINAL_RANK,
    ):
        self._students = students
        self._classes = classes
        self._terminal_rank = int(terminal_rank)

    def promote_all(self) -> PromotionReport:
        report = PromotionReport()
        ranked = [c for c in self._classes.list_promotable() if c.promotion_rank is not None and c.section]
        ranked.sort(key=lambda c: c.promotion_rank, reverse=True)

        for current in ranked:
            try:
                result = self._promote_one(current)
            except Exception as e:
                logger.exception("promotion of class %s failed", current.class_id)
                result = ClassPromotion(
                    class_id=current.class_id,
                    class_name=current.name,
                    outcome=PromotionOutcome.FAILED,
                    student_count=len(current.roster),
                    message=f"Failed {current.name}: {e}",
                )
            if result is not None:
                logger.info(result.message)
                report.results.append(result)

        logger.info(
            "promotion finished: promoted=%d graduated=%d skipped=%d failed=%d",
            report.count(PromotionOutcome.PROMOTED),
            report.count(PromotionOutcome.GRADUATED),
            report.count(PromotionOutcome.SKIPPED),
            report.count(PromotionOutcome.FAILED),
        )
        return report

    def _promote_one(self, current: SchoolClass) -> Optional[ClassPromotion]:
        # The listing snapshot may be stale by now.
        fresh = self._classes.get_by_id(current.class_id)
        if fresh is None:
            return ClassPromotion(
                class_id=current.class_id,
                class_name=current.name,
                outcome=PromotionOutcome.SKIPPED,
                student_count=0,
                message=f"Skipped {current.name}: class no longer exists",
            )
        members = list(fresh.roster)
        if not members:
            return None

        next_rank = int(fresh.promotion_rank) + 1
        target = self._classes.find_by_section_and_rank(fresh.section, next_rank)

        if target is not None:
            self._students.set_class_bulk(members, target.class_id)
            self._classes.push_students(target.class_id, members)
            self._classes.clear_roster(fresh.class_id)
            return ClassPromotion(
                class_id=fresh.class_id,
                class_name=fresh.name,
                outcome=PromotionOutcome.PROMOTED,
                student_count=len(members),
                target_class_id=target.class_id,
                message=f"Promoted {len(members)} students from {fresh.name} to {target.name}",
            )

        if fresh.promotion_rank == self._terminal_rank:
            self._students.set_class_bulk(members, None)
            self._classes.clear_roster(fresh.class_id)
            return ClassPromotion(
                class_id=fresh.class_id,
                class_name=fresh.name,
                outcome=PromotionOutcome.GRADUATED,
                student_count=len(members),
                message=f"Graduated {len(members)} students from {fresh.name}",
            )

        return ClassPromotion(
            class_id=fresh.class_id,
            class_name=fresh.name,
            outcome=PromotionOutcome.SKIPPED,
            student_count=len(members),
            message=(
                f"Skipped {fresh.name}: next class (rank {next_rank}, section {fresh.section}) "
                f"not found; {len(members)} students left in place"
            ),
        )
