"""Pydantic models for user profiles as stored and as returned to clients."""

from __future__ import annotations

from datetime import date
from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator


class Gender(str, Enum):
    """Closed set of gender identities a user can declare."""

    MAN = "man"
    WOMAN = "woman"
    NON_BINARY = "non_binary"
    TRANS_MAN = "trans_man"
    TRANS_WOMAN = "trans_woman"
    GENDERFLUID = "genderfluid"
    AGENDER = "agender"
    PREFER_NOT_TO_SAY = "prefer_not_to_say"


class Interest(str, Enum):
    """Genders a user can be interested in; ``ALL`` is the wildcard."""

    MAN = "man"
    WOMAN = "woman"
    NON_BINARY = "non_binary"
    TRANS_MAN = "trans_man"
    TRANS_WOMAN = "trans_woman"
    GENDERFLUID = "genderfluid"
    AGENDER = "agender"
    ALL = "all"


class Mood(str, Enum):
    ZEN = "zen"
    ADVENTUROUS = "adventurous"
    ROMANTIC = "romantic"
    CHILL = "chill"
    SOCIAL = "social"
    CREATIVE = "creative"
    SPORTY = "sporty"
    CURIOUS = "curious"
    PLAYFUL = "playful"
    FOODIE = "foodie"
    PARTY = "party"
    INTELLECTUAL = "intellectual"
    COZY = "cozy"
    SPONTANEOUS = "spontaneous"
    NOSTALGIC = "nostalgic"
    ENERGETIC = "energetic"
    MYSTERIOUS = "mysterious"
    FESTIVE = "festive"
    MELANCHOLIC = "melancholic"


MIN_SIGNUP_AGE = 18
MAX_SIGNUP_AGE = 100
DEFAULT_SEARCH_RADIUS_M = 50_000
DEFAULT_MOOD_EXPIRY_HOURS = 24


class GeoPoint(BaseModel):
    """GeoJSON point; coordinates are ``[longitude, latitude]`` in degrees."""

    type: Literal["Point"] = "Point"
    coordinates: List[float] = Field(min_length=2, max_length=2)

    @field_validator("coordinates")
    @classmethod
    def _check_ranges(cls, value: List[float]) -> List[float]:
        lon, lat = value
        if not -180.0 <= lon <= 180.0:
            raise ValueError("longitude must be within [-180, 180]")
        if not -90.0 <= lat <= 90.0:
            raise ValueError("latitude must be within [-90, 90]")
        return [float(lon), float(lat)]

    @classmethod
    def from_lon_lat(cls, longitude: float, latitude: float) -> "GeoPoint":
        return cls(coordinates=[longitude, latitude])

    @property
    def longitude(self) -> float:
        return self.coordinates[0]

    @property
    def latitude(self) -> float:
        return self.coordinates[1]


class GenderIdentity(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    my_gender: Gender = Field(alias="myGender")
    interested_in: List[Interest] = Field(default_factory=list, alias="interestedIn")

    @field_validator("interested_in")
    @classmethod
    def _dedupe(cls, value: List[Interest]) -> List[Interest]:
        return list(dict.fromkeys(value))


class AgeRange(BaseModel):
    min: int = Field(default=MIN_SIGNUP_AGE, ge=MIN_SIGNUP_AGE, le=MAX_SIGNUP_AGE)
    max: int = Field(default=MAX_SIGNUP_AGE, ge=MIN_SIGNUP_AGE, le=MAX_SIGNUP_AGE)

    @model_validator(mode="after")
    def _ordered(self) -> "AgeRange":
        if self.min > self.max:
            raise ValueError("ageRange.min must not exceed ageRange.max")
        return self


class Preferences(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    search_radius: int = Field(default=DEFAULT_SEARCH_RADIUS_M, gt=0, alias="searchRadius")
    age_range: AgeRange = Field(default_factory=AgeRange, alias="ageRange")
    mood_expiry_hours: int = Field(default=DEFAULT_MOOD_EXPIRY_HOURS, gt=0, alias="moodExpiryHours")


class MoodEntry(BaseModel):
    """One immutable snapshot in a user's mood history."""

    model_config = ConfigDict(frozen=True)

    mood: Mood
    timestamp: int
    location: Optional[GeoPoint] = None


class UserProfileDocument(BaseModel):
    """Canonical user profile as persisted by every store backend."""

    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(alias="userId")
    email: str
    password_hash: str = Field(alias="passwordHash")
    first_name: str = Field(alias="firstName")
    last_name: str = Field(alias="lastName")
    date_of_birth: date = Field(alias="dateOfBirth")
    gender_identity: GenderIdentity = Field(alias="genderIdentity")
    location: Optional[GeoPoint] = None
    location_updated_at: Optional[int] = Field(default=None, alias="locationUpdatedAt")
    current_mood: Optional[Mood] = Field(default=None, alias="currentMood")
    mood_updated_at: Optional[int] = Field(default=None, alias="moodUpdatedAt")
    mood_history: List[MoodEntry] = Field(default_factory=list, alias="moodHistory")
    preferences: Preferences = Field(default_factory=Preferences)
    photos: List[str] = Field(default_factory=list)
    is_active: bool = Field(default=True, alias="isActive")
    is_banned: bool = Field(default=False, alias="isBanned")
    is_verified: bool = Field(default=False, alias="isVerified")
    last_seen: int = Field(default=0, alias="lastSeen")
    created_at: int = Field(alias="createdAt")
    updated_at: int = Field(alias="updatedAt")

    def to_mongo(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


class UserProfile(BaseModel):
    """Profile of the authenticated user, without credentials."""

    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(alias="userId")
    email: str
    first_name: str = Field(alias="firstName")
    last_name: str = Field(alias="lastName")
    date_of_birth: date = Field(alias="dateOfBirth")
    gender_identity: GenderIdentity = Field(alias="genderIdentity")
    location: Optional[GeoPoint] = None
    location_updated_at: Optional[int] = Field(default=None, alias="locationUpdatedAt")
    current_mood: Optional[Mood] = Field(default=None, alias="currentMood")
    mood_updated_at: Optional[int] = Field(default=None, alias="moodUpdatedAt")
    preferences: Preferences = Field(default_factory=Preferences)
    photos: List[str] = Field(default_factory=list)
    is_active: bool = Field(default=True, alias="isActive")
    is_verified: bool = Field(default=False, alias="isVerified")
    created_at: int = Field(alias="createdAt")
    updated_at: int = Field(alias="updatedAt")


class PublicProfile(BaseModel):
    """What other users get to see."""

    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(alias="userId")
    first_name: str = Field(alias="firstName")
    age: int
    gender_identity: GenderIdentity = Field(alias="genderIdentity")
    current_mood: Optional[Mood] = Field(default=None, alias="currentMood")
    photos: List[str] = Field(default_factory=list)
    is_verified: bool = Field(default=False, alias="isVerified")
    last_seen: int = Field(default=0, alias="lastSeen")


class CandidateProfile(PublicProfile):
    distance: Optional[int] = None


class RegisterRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email: EmailStr
    password: str = Field(min_length=8, max_length=128)
    first_name: str = Field(min_length=1, max_length=80, alias="firstName")
    last_name: str = Field(min_length=1, max_length=80, alias="lastName")
    date_of_birth: date = Field(alias="dateOfBirth")
    gender_identity: GenderIdentity = Field(alias="genderIdentity")


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class AuthTokenResponse(BaseModel):
    token: str
    profile: UserProfile


class UserProfilePatch(BaseModel):
    """Mutable fields for partial profile updates."""

    model_config = ConfigDict(populate_by_name=True)

    first_name: Optional[str] = Field(default=None, min_length=1, max_length=80, alias="firstName")
    last_name: Optional[str] = Field(default=None, min_length=1, max_length=80, alias="lastName")
    photos: Optional[List[str]] = None
    gender_identity: Optional[GenderIdentity] = Field(default=None, alias="genderIdentity")
    preferences: Optional[Preferences] = None


class LocationUpdate(BaseModel):
    longitude: float = Field(ge=-180.0, le=180.0)
    latitude: float = Field(ge=-90.0, le=90.0)


class MoodUpdate(BaseModel):
    mood: Mood


class MoodHistoryResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    current_mood: Optional[Mood] = Field(default=None, alias="currentMood")
    is_fresh: bool = Field(default=False, alias="isFresh")
    history: List[MoodEntry] = Field(default_factory=list)


__all__ = [
    "AgeRange",
    "AuthTokenResponse",
    "CandidateProfile",
    "DEFAULT_MOOD_EXPIRY_HOURS",
    "DEFAULT_SEARCH_RADIUS_M",
    "Gender",
    "GenderIdentity",
    "GeoPoint",
    "Interest",
    "LocationUpdate",
    "LoginRequest",
    "MAX_SIGNUP_AGE",
    "MIN_SIGNUP_AGE",
    "Mood",
    "MoodEntry",
    "MoodHistoryResponse",
    "MoodUpdate",
    "Preferences",
    "PublicProfile",
    "RegisterRequest",
    "UserProfile",
    "UserProfileDocument",
    "UserProfilePatch",
]
