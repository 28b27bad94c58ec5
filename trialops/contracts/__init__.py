"""
This module contains the contracts for the application.
"""

from .base import BaseContract, ErrorResponse, TimestampedContract
from .user import CurrentUser
from .visit import (
    ClinicalDataPatch,
    ConcludeVisitRequest,
    ConcludeVisitResponse,
    DueDateUpdate,
    ExtractionResponse,
    NextVisitResult,
    ScheduleVisitRequest,
    ScreeningConcludeRequest,
    ScreeningConcludeResponse,
    VisitCreate,
    VisitDetailResponse,
    VisitDocumentAttach,
    VisitResponse,
    VoucherUpdate,
)
from .participant import (
    MasterChartRow,
    ParticipantCreate,
    ParticipantDetailResponse,
    ParticipantResponse,
    ParticipantUpdate,
    RandomizationCodeUpdate,
)
from .finance import ExpenseCreate, ExpenseResponse, FinanceSummary, FundCreate, FundResponse
from .lead import LeadCreate, LeadExtractRequest, LeadExtractResponse, LeadResponse, LeadUpdate
from .storage import DownloadUrlResponse, PresignRequest, PresignResponse
