from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .settings import settings

_MESSAGES: dict[str, dict[str, str]] = {
    "no_risk_data": {
        "fa": "داده جرمی موجود نیست. لطفاً فیلترها را تنظیم کنید.",
        "en": "No risk data available. Please adjust the filters.",
    },
    "no_points_in_region": {
        "fa": "نقاط ریسک در این منطقه یافت نشد.",
        "en": "No risk points were found in this region.",
    },
    "no_routes_produced": {
        "fa": "نتوانست مسیر گشت در محدوده انتخاب شده ایجاد کند.",
        "en": "Could not create any patrol route inside the selected area.",
    },
    "unknown_region": {
        "fa": "منطقه انتخاب شده معتبر نیست.",
        "en": "The selected region does not exist.",
    },
    "routing_service_failed": {
        "fa": "سرویس مسیریابی پاسخ نداد.",
        "en": "The routing service did not respond.",
    },
}

REASON_CODES: frozenset[str] = frozenset(_MESSAGES)


def localized_message(reason_code: str, *, locale: str | None = None) -> str:
    loc = (locale or settings.locale or "fa").strip().lower()
    table = _MESSAGES.get(reason_code)
    if table is None:
        return reason_code
    return table.get(loc) or table["en"]


@dataclass
class RiskMapError(ValueError):
    """User-facing, non-fatal condition; the operation is aborted and prior state kept."""

    reason_code: str
    message: str
    details: dict[str, Any] | None = None

    def __str__(self) -> str:
        return self.message

    def as_detail(self) -> dict[str, Any]:
        out: dict[str, Any] = {"reason_code": self.reason_code, "message": self.message}
        if self.details:
            out["details"] = self.details
        return out


def _init(err: RiskMapError, reason_code: str, details: dict[str, Any] | None) -> None:
    RiskMapError.__init__(
        err,
        reason_code=reason_code,
        message=localized_message(reason_code),
        details=details,
    )


class EmptyInputError(RiskMapError):
    def __init__(self, details: dict[str, Any] | None = None) -> None:
        _init(self, "no_risk_data", details)


class NoRegionMatchError(RiskMapError):
    def __init__(self, details: dict[str, Any] | None = None) -> None:
        _init(self, "no_points_in_region", details)


class PartitionExhaustedError(RiskMapError):
    def __init__(self, details: dict[str, Any] | None = None) -> None:
        _init(self, "no_routes_produced", details)


class UnknownRegionError(RiskMapError):
    def __init__(self, region_id: str) -> None:
        _init(self, "unknown_region", {"region_id": region_id})


class RoutingServiceError(RuntimeError):
    """Routing collaborator failure. Always recovered per route, never user-facing."""

    reason_code = "routing_service_failed"
