"""Pydantic models for REST API request/response validation."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field


# --- Auth ---

class RegisterBody(BaseModel):
    username: str = Field(..., min_length=3, max_length=50)
    password: str = Field(..., min_length=6)
    email: Optional[str] = None
    phone_number: Optional[str] = None
    age: Optional[int] = Field(None, ge=0, le=150)
    medical_history: Optional[str] = None


class LoginBody(BaseModel):
    identifier: str = Field(..., description="Username, email or phone number")
    password: str


class RefreshBody(BaseModel):
    token: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: int
    display_name: str
    expires_at: datetime


# --- Consultation ---

class TurnIn(BaseModel):
    role: str
    content: str


class ConsultBody(BaseModel):
    # Left optional so an empty message reaches the service and is reported
    # as {error, details} like every other consultation failure.
    message: str = ""
    history: Optional[list[TurnIn]] = None


class ConsultOut(BaseModel):
    reply: str


class ErrorOut(BaseModel):
    error: str
    details: str = ""


# --- Profile ---

class ProfileBody(BaseModel):
    age: Optional[int] = Field(None, ge=0, le=150)
    medical_history: Optional[str] = None


class ProfileOut(BaseModel):
    username: str
    email: Optional[str]
    phone_number: Optional[str]
    age: Optional[int]
    medical_history: Optional[str]


# --- Medication history ---

class RecordBody(BaseModel):
    medicines: list[dict[str, Any]] = Field(..., min_length=1)


class RecordOut(BaseModel):
    id: int
    created_at: str
    medicines: list[dict[str, Any]]
