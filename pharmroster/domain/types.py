from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum


class JobType(str, Enum):
    PHARMACIST = "Pharmacist"
    ASSISTANT = "Assistant"
    PART_TIME = "PartTime"
    OTHER = "Other"

    @property
    def label(self) -> str:
        return JOB_TYPE_LABELS[self]


JOB_TYPE_LABELS: dict[JobType, str] = {
    JobType.PHARMACIST: "薬剤師",
    JobType.ASSISTANT: "薬剤助手",
    JobType.PART_TIME: "非常勤",
    JobType.OTHER: "その他",
}


class ShiftType(str, Enum):
    REST_FULL = "休み(終日)"
    REST_AM = "午前休み"
    REST_PM = "午後休み"
    HOPE_REST_FULL = "希望休み(終日)"
    HOPE_REST_AM = "希望午前休み"
    HOPE_REST_PM = "希望午後休み"
    HOLIDAY_WORK_FULL = "休日出勤(1日)"
    HOLIDAY_WORK_AM = "休日出勤(午前)"
    HOLIDAY_WORK_PM = "休日出勤(午後)"
    WORK_FULL = "出勤(1日)"
    WORK_AM = "出勤(午前)"
    WORK_PM = "出勤(午後)"
    TRIP_FULL = "出張(終日)"
    TRIP_AM = "出張(午前)"
    TRIP_PM = "出張(午後)"
    SPECIAL_LEAVE = "特別休暇"


class GenerationReason(str, Enum):
    STREAK_PREVENTION = "連勤防止"
    QUOTA_FILL = "日数調整"


class AbsenceMarker(str, Enum):
    REST = "休"
    TRIP = "出張"
    SPECIAL_LEAVE = "特別休暇"


@dataclass(frozen=True)
class Employee:
    id: int
    name: str
    job_type: JobType = JobType.PHARMACIST


@dataclass(frozen=True)
class ShiftRecord:
    employee_id: int
    date: date
    type: str  # ShiftType の値だが、旧データの自由記述も許容する


@dataclass(frozen=True)
class GeneratedShift:
    employee_id: int
    date: date
    type: str
    reason: GenerationReason


@dataclass(frozen=True)
class RestGoal:
    min: float
    max: float


@dataclass(frozen=True)
class ScheduleEntry:
    employee_id: int | None  # None は全体予定(休み配置をブロックしない)
    date: date
    text: str = ""


@dataclass
class ScheduleRule:
    """日付指定 or 毎月第N X曜日 の予定"""

    text: str
    employee_id: int | None = None
    date: date | None = None
    week_number: int | None = None  # 1-5
    day_of_week: int | None = None  # 0=日 ... 6=土


@dataclass
class TaskOption:
    id: str
    name: str
    order: int
    bg_color: str = "bg-slate-100"
    text_color: str = "text-slate-800"
    is_fallback: bool = False
    exclude_from_auto: bool = False


@dataclass(frozen=True)
class AMAssignment:
    employee_id: int
    date: date
    task_name: str
    is_auto_assigned: bool = False


@dataclass(frozen=True)
class CalendarDay:
    date: date
    is_current_month: bool
    is_sunday: bool
    is_saturday: bool
    is_holiday: bool
    holiday_name: str | None = None

    @property
    def is_closed(self) -> bool:
        """日曜・祝日(薬局の休業日)"""
        return self.is_sunday or self.is_holiday
