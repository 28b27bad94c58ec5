"""
Enum definitions for constrained text columns and request fields.
Uses (str, Enum) pattern so values serialize correctly in Pydantic.
"""

from enum import Enum


class UserRoleEnum(str, Enum):
    admin = "admin"
    staff = "staff"


class ScreeningOutcome(str, Enum):
    success = "success"
    failure = "failure"


class VoucherStatus(str, Enum):
    given = "given"
    not_given = "not_given"


class RandomizationCode(str, Enum):
    A = "A"
    B = "B"


class FundCategory(str, Enum):
    travel = "travel"
    stationary = "stationary"


class ExpenseCategory(str, Enum):
    travel = "travel"
    stationary = "stationary"
    misc = "misc"


class PaidBy(str, Enum):
    funds = "funds"
    out_of_pocket = "out of pocket"


class VisitDocumentField(str, Enum):
    ecg = "ecg"
    echo = "echo"
    efficacy = "efficacy"
    safety = "safety"
    prescription = "prescription"
    signature = "signature"
    upt = "upt"


class ExtractionPanel(str, Enum):
    echo = "echo"
    screening_efficacy = "screening_efficacy"
    efficacy = "efficacy"
    safety = "safety"
