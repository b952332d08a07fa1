"""Kinds of circulation policy a rule can assign"""

from enum import Enum


class PolicyKind(str, Enum):
    """Policy kinds with their rule-text letter and rules endpoint name"""

    LOAN = "loan"
    REQUEST = "request"
    NOTICE = "notice"
    OVERDUE_FINE = "overdue-fine"
    LOST_ITEM_FEE = "lost-item-fee"

    @property
    def letter(self) -> str:
        return _LETTERS[self]

    @property
    def label(self) -> str:
        return _LABELS[self]

    @property
    def id_property(self) -> str:
        """Property carrying the policy id in a rules-application response"""
        return _ID_PROPERTIES[self]

    @classmethod
    def from_letter(cls, letter: str) -> "PolicyKind":
        for kind, kind_letter in _LETTERS.items():
            if kind_letter == letter:
                return kind
        raise ValueError(f"Unknown policy type letter: {letter}")


_LETTERS = {
    PolicyKind.LOAN: "l",
    PolicyKind.REQUEST: "r",
    PolicyKind.NOTICE: "n",
    PolicyKind.OVERDUE_FINE: "o",
    PolicyKind.LOST_ITEM_FEE: "i",
}

_LABELS = {
    PolicyKind.LOAN: "Loan",
    PolicyKind.REQUEST: "Request",
    PolicyKind.NOTICE: "Notice",
    PolicyKind.OVERDUE_FINE: "Overdue fine",
    PolicyKind.LOST_ITEM_FEE: "Lost item fee",
}

_ID_PROPERTIES = {
    PolicyKind.LOAN: "loanPolicyId",
    PolicyKind.REQUEST: "requestPolicyId",
    PolicyKind.NOTICE: "noticePolicyId",
    PolicyKind.OVERDUE_FINE: "overdueFinePolicyId",
    PolicyKind.LOST_ITEM_FEE: "lostItemPolicyId",
}
