from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from praise_admin.domain.records import AdminPageRecord
from praise_admin.session.context import Outcome, ZoneStateView, ZoneSwitch


# ============================================================================
# Data models
# ============================================================================


class ZoneOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    theme_color: str
    is_hq: bool = False
    slug: str = ""
    region: str = ""


class ZoneStateOut(BaseModel):
    phase: str
    current_zone: Optional[ZoneOut] = None
    user_zones: List[ZoneOut] = Field(default_factory=list)
    role: str
    role_label: str
    is_super_admin: bool = False
    no_zone_access: bool = False
    stale: bool = False
    permissions: Dict[str, bool] = Field(default_factory=dict)

    @classmethod
    def from_view(cls, view: ZoneStateView) -> "ZoneStateOut":
        payload = view.to_dict()
        return cls.model_validate(payload)


class ZoneSwitchOut(BaseModel):
    switched: bool
    zone: ZoneStateOut


class CountdownOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    days: int = 0
    hours: int = 0
    minutes: int = 0
    seconds: int = 0


class PageOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    date: str
    location: str
    category: str
    song_count: int = 0
    countdown: CountdownOut
    page_category: Optional[str] = None
    banner_image: Optional[str] = None

    @classmethod
    def from_record(cls, record: AdminPageRecord) -> "PageOut":
        return cls.model_validate(record)


# ============================================================================
# Envelopes
# ============================================================================


class Envelope(BaseModel):
    loading: bool = False
    error: Optional[str] = None
    retryable: bool = False

    @staticmethod
    def flags(outcome: Outcome[Any]) -> Dict[str, Any]:
        return {"loading": outcome.loading, "error": outcome.error, "retryable": outcome.retryable}


class ProfileResponse(Envelope):
    data: Optional[Dict[str, Any]] = None


class ZoneStateResponse(Envelope):
    data: Optional[ZoneStateOut] = None

    @classmethod
    def from_outcome(cls, outcome: Outcome[ZoneStateView]) -> "ZoneStateResponse":
        data = ZoneStateOut.from_view(outcome.data) if outcome.data is not None else None
        return cls(data=data, **cls.flags(outcome))


class ZoneSwitchResponse(Envelope):
    data: Optional[ZoneSwitchOut] = None

    @classmethod
    def from_outcome(cls, outcome: Outcome[ZoneSwitch]) -> "ZoneSwitchResponse":
        data = None
        if outcome.data is not None:
            data = ZoneSwitchOut(
                switched=outcome.data.switched,
                zone=ZoneStateOut.from_view(outcome.data.zone),
            )
        return cls(data=data, **cls.flags(outcome))


class PageListResponse(Envelope):
    data: List[PageOut] = Field(default_factory=list)

    @classmethod
    def from_outcome(cls, outcome: Outcome[List[AdminPageRecord]]) -> "PageListResponse":
        return cls(data=[PageOut.from_record(page) for page in outcome.data or []], **cls.flags(outcome))


class PageResponse(Envelope):
    data: Optional[PageOut] = None


class SongListResponse(Envelope):
    data: List[Dict[str, Any]] = Field(default_factory=list)


class EmptyResponse(Envelope):
    data: None = None


# ============================================================================
# Request models
# ============================================================================


class SwitchZoneRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    zone_id: str = Field(..., min_length=1)
