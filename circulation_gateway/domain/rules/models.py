"""Structured circulation rule table"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Tuple

from circulation_gateway.domain.models import Item, Patron
from circulation_gateway.domain.policy_kinds import PolicyKind

WILDCARD_VALUES = frozenset({"all", "*"})


class CriterionType(str, Enum):
    """Rule criteria letters and the request attribute each one restricts"""

    LOAN_TYPE = "t"
    SHELVING_LOCATION = "s"
    CAMPUS = "c"
    LIBRARY = "b"
    INSTITUTION = "a"
    MATERIAL_TYPE = "m"
    PATRON_GROUP = "g"

    @property
    def attribute(self) -> str:
        return _ATTRIBUTES[self]

    @property
    def label(self) -> str:
        return self.name.lower().replace("_", "-")


_ATTRIBUTES = {
    CriterionType.LOAN_TYPE: "loan_type_id",
    CriterionType.SHELVING_LOCATION: "location_id",
    CriterionType.CAMPUS: "campus_id",
    CriterionType.LIBRARY: "library_id",
    CriterionType.INSTITUTION: "institution_id",
    CriterionType.MATERIAL_TYPE: "material_type_id",
    CriterionType.PATRON_GROUP: "patron_group_id",
}

DEFAULT_PRIORITY: Tuple[CriterionType, ...] = (
    CriterionType.LOAN_TYPE,
    CriterionType.SHELVING_LOCATION,
    CriterionType.CAMPUS,
    CriterionType.LIBRARY,
    CriterionType.INSTITUTION,
    CriterionType.MATERIAL_TYPE,
    CriterionType.PATRON_GROUP,
)


@dataclass(frozen=True)
class MatchCriteria:
    """Attributes of an item and patron that rules are evaluated against"""

    loan_type_id: Optional[str]
    location_id: Optional[str]
    material_type_id: Optional[str]
    patron_group_id: Optional[str]
    campus_id: Optional[str] = None
    library_id: Optional[str] = None
    institution_id: Optional[str] = None

    @classmethod
    def from_item_and_patron(cls, item: Item, patron: Patron) -> "MatchCriteria":
        location = item.location
        return cls(
            loan_type_id=item.loan_type_id,
            location_id=item.location_id,
            material_type_id=item.material_type_id,
            patron_group_id=patron.patron_group_id,
            campus_id=location.campus_id if location else None,
            library_id=location.library_id if location else None,
            institution_id=location.institution_id if location else None,
        )

    def value_for(self, criterion_type: CriterionType) -> Optional[str]:
        return getattr(self, criterion_type.attribute)


@dataclass(frozen=True)
class Criterion:
    """One letter of a rule line with the values it accepts"""

    type: CriterionType
    values: FrozenSet[str]

    @property
    def is_wildcard(self) -> bool:
        return bool(self.values & WILDCARD_VALUES)

    def matches(self, criteria: MatchCriteria) -> bool:
        if self.is_wildcard:
            return True
        return criteria.value_for(self.type) in self.values


@dataclass(frozen=True)
class CirculationRule:
    """A rule line: criteria that must all hold, and the policies it assigns"""

    criteria: Tuple[Criterion, ...]
    policy_ids: Dict[PolicyKind, str]
    line: int
    is_fallback: bool = False

    def matches(self, criteria: MatchCriteria) -> bool:
        return all(criterion.matches(criteria) for criterion in self.criteria)

    def explicit_types(self) -> FrozenSet[CriterionType]:
        return frozenset(c.type for c in self.criteria if not c.is_wildcard)

    def specificity(self, priority: Tuple[CriterionType, ...]) -> Tuple[int, Tuple[bool, ...]]:
        """
        Sort key, higher is more specific.

        Number of explicitly valued letters first, then the letters present
        in priority order. A wildcard value does not count.
        """
        explicit = self.explicit_types()
        return len(explicit), tuple(letter in explicit for letter in priority)

    def conditions(self) -> List[str]:
        return [criterion.type.label for criterion in self.criteria if not criterion.is_wildcard]


@dataclass(frozen=True)
class AppliedRule:
    """Policy id selected for one policy kind, with the conditions that matched"""

    kind: PolicyKind
    policy_id: str
    conditions: List[str] = field(default_factory=list)
