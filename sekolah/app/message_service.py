"""
Contact & consultation messages from the public site.
"""

import logging
import re
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from sekolah.app.exceptions import NotFoundError

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class MessageType(str, Enum):
    CONTACT = "contact"
    CONSULTATION = "consultation"


class ContactForm(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., max_length=100)
    message: str = Field(..., min_length=1)

    class Config:
        str_strip_whitespace = True

    @field_validator("email")
    @classmethod
    def check_email(cls, value):
        if not EMAIL_PATTERN.match(value):
            raise ValueError("Email tidak valid")
        return value


class ConsultationForm(ContactForm):
    phone: str = Field(..., min_length=1, max_length=20)
    consultation_type: str = Field(..., alias="consultationType", min_length=1, max_length=100)

    class Config:
        str_strip_whitespace = True
        populate_by_name = True


def submit_contact(db, form: ContactForm) -> Dict[str, Any]:
    message = db.create_contact_message({
        "message_type": MessageType.CONTACT.value,
        "name": form.name,
        "email": form.email,
        "message": form.message,
    })
    logger.info(f"✉️ New contact message from {form.email}")
    return message


def submit_consultation(db, form: ConsultationForm) -> Dict[str, Any]:
    message = db.create_contact_message({
        "message_type": MessageType.CONSULTATION.value,
        "name": form.name,
        "email": form.email,
        "phone": form.phone,
        "consultation_type": form.consultation_type,
        "message": form.message,
    })
    logger.info(f"💬 New consultation request ({form.consultation_type}) from {form.email}")
    return message


def list_messages(db, message_type: Optional[str] = None, unread_only: bool = False) -> List[Dict[str, Any]]:
    return db.get_contact_messages(message_type=message_type, unread_only=unread_only)


def mark_read(db, message_id: int):
    if not db.mark_contact_message_read(message_id):
        raise NotFoundError("Pesan tidak ditemukan")


def delete_message(db, message_id: int):
    if not db.delete_contact_message(message_id):
        raise NotFoundError("Pesan tidak ditemukan")
