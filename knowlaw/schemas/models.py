from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

GUEST_OWNER_ID = "guest"
GUEST_NAME = "Guest User"
GUEST_EMAIL = "guest@knowlaw.com"


@dataclass(frozen=True)
class RegisteredOwner:
    user_id: int

    def storage_key(self) -> str:
        return str(self.user_id)


@dataclass(frozen=True)
class GuestOwner:
    def storage_key(self) -> str:
        return GUEST_OWNER_ID


OwnerRef = Union[RegisteredOwner, GuestOwner]


@dataclass(frozen=True)
class Identity:
    """Who is behind a session. Guests share the single ``guest`` owner key."""

    owner: OwnerRef
    name: str
    email: str
    created_at: datetime | None = None

    @property
    def is_guest(self) -> bool:
        return isinstance(self.owner, GuestOwner)

    @property
    def owner_id(self) -> str:
        return self.owner.storage_key()


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FileInfo(ApiModel):
    name: str
    size: int
    mimetype: str


class Conversation(ApiModel):
    id: int
    title: str
    created_at: datetime
    updated_at: datetime


class Message(ApiModel):
    id: int
    conversation_id: int
    role: str
    content: str
    file_info: List[FileInfo] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class Booking(ApiModel):
    id: int
    lawyer_id: int
    lawyer_name: str
    lawyer_specialty: str
    client_name: str
    client_email: str
    client_phone: str
    appointment_date: str
    appointment_time: str
    case_description: str
    status: str = "pending"
    created_at: datetime


class Lawyer(ApiModel):
    id: int
    name: str
    specialty: str


# Request bodies. Fields are optional so that missing values surface as the
# product's own validation messages rather than framework errors.


class RegisterRequest(ApiModel):
    name: str = ""
    email: str = ""
    password: str = ""
    confirm_password: str = ""


class LoginRequest(ApiModel):
    email: str = ""
    password: str = ""


class ConversationCreateRequest(ApiModel):
    title: Optional[str] = None


class ConversationRenameRequest(ApiModel):
    title: str = ""


class MessageEditRequest(ApiModel):
    content: str = ""


class BookingRequest(ApiModel):
    lawyer_id: Optional[Union[int, str]] = None
    client_name: str = ""
    client_email: str = ""
    client_phone: str = ""
    appointment_date: str = ""
    appointment_time: str = ""
    case_description: str = ""


# Response bodies.


class Envelope(ApiModel):
    success: bool = True
    message: Optional[str] = None


class UserView(ApiModel):
    id: str
    name: str
    email: str
    is_guest: bool = False


class SessionResponse(Envelope):
    user: Optional[UserView] = None
    allow_guest: Optional[bool] = None


class ConversationListResponse(Envelope):
    conversations: List[Conversation] = Field(default_factory=list)


class ConversationResponse(Envelope):
    conversation: Conversation


class ConversationDetailResponse(Envelope):
    conversation: Conversation
    messages: List[Message] = Field(default_factory=list)


class MessageResponse(Envelope):
    data: Message


class ChatResponse(Envelope):
    response: str
    conversation_id: int
    user_message_id: int
    assistant_message_id: int


class BookingConfirmation(ApiModel):
    id: int
    lawyer_name: str
    appointment_date: str
    appointment_time: str
    status: str


class BookingResponse(Envelope):
    booking: BookingConfirmation


class BookingListResponse(Envelope):
    bookings: List[Booking] = Field(default_factory=list)


class DashboardUser(UserView):
    created_at: Optional[datetime] = None


class DashboardStats(ApiModel):
    total_users: int
    days_active: int


class DashboardResponse(Envelope):
    user: DashboardUser
    stats: DashboardStats
