"""
Legislative domain models.

Normalized LegiScan records (sessions, bills, legislators, roll calls)
plus the lookup tables used to render them for humans.

Responsibility: Typed legislative entities shared by adapter, repositories and feeds
"""

import datetime as dt
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


BILL_STATUS_TEXT: Dict[int, str] = {
    1: "Introduced",
    2: "Engrossed",
    3: "Enrolled",
    4: "Passed",
    5: "Vetoed",
    6: "Failed/Dead",
}

CHAMBER_NAMES: Dict[str, str] = {
    "H": "House",
    "S": "Senate",
    "E": "Executive",
}

PARTY_NAMES: Dict[str, str] = {
    "D": "Democratic",
    "R": "Republican",
    "I": "Independent",
    "L": "Libertarian",
    "G": "Green",
    "N": "Nonpartisan",
}


def get_status_text(status: Optional[int]) -> str:
    """Human-readable bill status ("Unknown" for unmapped codes)."""
    return BILL_STATUS_TEXT.get(status, "Unknown") if status is not None else "Unknown"


def get_chamber_name(chamber: Optional[str]) -> str:
    if not chamber:
        return ""
    return CHAMBER_NAMES.get(chamber, chamber)


def get_party_name(party: Optional[str]) -> str:
    if not party:
        return ""
    return PARTY_NAMES.get(party, party)


def parse_district(role: Optional[str], district: Optional[str], level: str = "state", state: str = "NV") -> str:
    """
    Canonical district code for a legislator.

    Federal: ``NV-03``; state senate: ``SD-05``; state assembly: ``HD-012``.
    Anything else is returned unchanged.
    """
    raw = (district or "").strip()
    digits = "".join(ch for ch in raw if ch.isdigit())

    if not digits:
        return raw

    if level == "federal":
        return f"{state}-{digits.zfill(2)}"
    if role == "Sen":
        return f"SD-{digits.zfill(2)}"
    if role == "Rep":
        return f"HD-{digits.zfill(3)}"
    return raw


def district_affects_user(district: str, user_districts: List[str]) -> bool:
    """True when ``district`` equals or contains (or is contained in) any user district."""
    for user_district in user_districts:
        if not user_district:
            continue
        if district == user_district or user_district in district or district in user_district:
            return True
    return False


def _coerce_date(value: Any) -> Any:
    # LegiScan uses "" and "0000-00-00" for unknown dates
    if value in (None, "", "0000-00-00"):
        return None
    return value


class _LegiScanRecord(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class LegislativeSession(_LegiScanRecord):
    """A legislative session as listed by ``getSessionList``."""

    session_id: int
    state_id: int
    year_start: int
    year_end: int
    prefile: int = 0
    sine_die: int = 0
    prior: int = 0
    special: int = 0
    session_name: str
    session_title: Optional[str] = None
    session_tag: Optional[str] = None
    session_hash: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return not self.sine_die

    @property
    def is_current(self) -> bool:
        """Neither a prior session nor adjourned sine die."""
        return not self.prior and not self.sine_die


class BillSummary(_LegiScanRecord):
    """One masterlist entry; ``change_hash`` flips whenever the bill changes upstream."""

    bill_id: int
    number: str
    change_hash: str
    url: Optional[str] = None
    status_date: Optional[dt.date] = None
    status: Optional[int] = None
    last_action_date: Optional[dt.date] = None
    last_action: Optional[str] = None
    title: str = ""
    description: Optional[str] = None

    @field_validator("status_date", "last_action_date", mode="before")
    @classmethod
    def _blank_dates(cls, value: Any) -> Any:
        return _coerce_date(value)


class Committee(_LegiScanRecord):
    committee_id: int
    chamber: Optional[str] = None
    name: str


class Sponsor(_LegiScanRecord):
    people_id: int
    party: Optional[str] = None
    role: Optional[str] = None
    name: str = ""
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    district: Optional[str] = None
    sponsor_type_id: int = 0
    sponsor_order: int = 0


class VoteReference(_LegiScanRecord):
    """Roll call summary embedded in a bill detail."""

    roll_call_id: int
    date: Optional[dt.date] = None
    desc: str = ""
    yea: int = 0
    nay: int = 0
    nv: int = 0
    absent: int = 0
    total: int = 0
    passed: int = 0
    chamber: Optional[str] = None
    url: Optional[str] = None
    state_url: Optional[str] = Field(default=None, validation_alias=AliasChoices("state_url", "state_link"))

    @field_validator("date", mode="before")
    @classmethod
    def _blank_dates(cls, value: Any) -> Any:
        return _coerce_date(value)


class BillText(_LegiScanRecord):
    doc_id: int
    date: Optional[dt.date] = None
    type: Optional[str] = None
    mime: Optional[str] = None
    url: Optional[str] = None
    state_url: Optional[str] = Field(default=None, validation_alias=AliasChoices("state_url", "state_link"))

    @field_validator("date", mode="before")
    @classmethod
    def _blank_dates(cls, value: Any) -> Any:
        return _coerce_date(value)


class BillDetail(_LegiScanRecord):
    """Full bill record from ``getBill``."""

    bill_id: int
    session_id: int
    bill_number: str
    bill_type: Optional[str] = None
    title: str = ""
    description: Optional[str] = None
    status: Optional[int] = None
    status_date: Optional[dt.date] = None
    last_action: Optional[str] = None
    last_action_date: Optional[dt.date] = None
    chamber: Optional[str] = Field(default=None, validation_alias=AliasChoices("chamber", "body"))
    committee: Optional[Committee] = None
    subjects: List[str] = Field(default_factory=list)
    sponsors: List[Sponsor] = Field(default_factory=list)
    votes: List[VoteReference] = Field(default_factory=list)
    texts: List[BillText] = Field(default_factory=list)
    change_hash: str
    url: Optional[str] = None
    state_url: Optional[str] = Field(default=None, validation_alias=AliasChoices("state_url", "state_link"))

    @field_validator("status_date", "last_action_date", mode="before")
    @classmethod
    def _blank_dates(cls, value: Any) -> Any:
        return _coerce_date(value)

    @field_validator("committee", mode="before")
    @classmethod
    def _empty_committee(cls, value: Any) -> Any:
        # LegiScan sends [] when a bill is not in committee
        if not value:
            return None
        return value

    @field_validator("subjects", mode="before")
    @classmethod
    def _subject_names(cls, value: Any) -> Any:
        if not value:
            return []
        return [
            item.get("subject_name", "") if isinstance(item, dict) else str(item)
            for item in value
        ]

    @property
    def number(self) -> str:
        return self.bill_number

    @property
    def status_text(self) -> str:
        return get_status_text(self.status)


class Legislator(_LegiScanRecord):
    """A person from ``getPerson`` / ``getSessionPeople``."""

    people_id: int
    person_hash: Optional[str] = None
    party: Optional[str] = None
    role: Optional[str] = None
    name: str = ""
    first_name: Optional[str] = None
    middle_name: Optional[str] = None
    last_name: Optional[str] = None
    suffix: Optional[str] = None
    nickname: Optional[str] = None
    district: Optional[str] = None
    votesmart_id: Optional[int] = None
    ballotpedia: Optional[str] = None

    @field_validator("votesmart_id", mode="before")
    @classmethod
    def _zero_is_none(cls, value: Any) -> Any:
        if value in (0, "0", ""):
            return None
        return value

    @property
    def chamber(self) -> str:
        return "S" if self.role == "Sen" else "H"

    @property
    def full_name(self) -> str:
        if self.name:
            return self.name
        return " ".join(part for part in (self.first_name, self.last_name) if part)


class IndividualVoteRecord(_LegiScanRecord):
    people_id: int
    vote_id: int
    vote_text: str


class RollCall(_LegiScanRecord):
    """Full roll call from ``getRollCall`` with individual votes."""

    roll_call_id: int
    bill_id: int
    date: Optional[dt.date] = None
    desc: str = ""
    yea: int = 0
    nay: int = 0
    nv: int = 0
    absent: int = 0
    total: int = 0
    passed: int = 0
    chamber: Optional[str] = None
    votes: List[IndividualVoteRecord] = Field(default_factory=list)
    url: Optional[str] = None
    state_url: Optional[str] = Field(default=None, validation_alias=AliasChoices("state_url", "state_link"))

    @field_validator("date", mode="before")
    @classmethod
    def _blank_dates(cls, value: Any) -> Any:
        return _coerce_date(value)

    @property
    def did_pass(self) -> bool:
        return self.passed == 1

    @property
    def margin(self) -> int:
        return self.yea - self.nay


class MasterList(BaseModel):
    """``getMasterListRaw`` result: session header plus bill summaries."""

    session: Optional[Dict[str, Any]] = None
    bills: List[BillSummary] = Field(default_factory=list)
