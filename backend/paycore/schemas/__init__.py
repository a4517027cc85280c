# backend/paycore/schemas/__init__.py
from paycore.schemas.payroll import (  # noqa: F401
    AttendanceInterval,
    CompensationTerms,
    DeductionSet,
    EmployerContributions,
    GrossPay,
    HourBreakdown,
    NonTaxableAllowances,
    PayResult,
    PayrollBatchEntry,
    PayrollBatchResult,
    PayWarning,
)
from paycore.schemas.rules import RuleOverrides, RuleRecord, StatutoryRuleSet  # noqa: F401
from paycore.schemas.severance import (  # noqa: F401
    ExclusionPeriod,
    MonthlyWageRecord,
    SeveranceRequest,
    SeveranceResult,
)
