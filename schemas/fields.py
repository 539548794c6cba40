from enum import Enum
from typing import Annotated, List, Literal, Optional, Union
import uuid

from pydantic import Field, model_validator

from .base import CamelModel


class FieldType(str, Enum):
    TEXT = "text"
    EMAIL = "email"
    NUMBER = "number"
    DATE = "date"
    DROPDOWN = "dropdown"
    CHECKBOX = "checkbox"
    TEXTAREA = "textarea"
    FILE = "file"
    PHONE = "phone"
    URL = "url"
    RATING = "rating"
    RADIO = "radio"


def new_field_id() -> str:
    return uuid.uuid4().hex


class FieldBase(CamelModel):
    id: str = Field(default_factory=new_field_id, min_length=1)
    label: str = ""
    placeholder: Optional[str] = None
    required: bool = False


class TextField(FieldBase):
    type: Literal["text", "textarea"]
    max_length: Optional[int] = Field(default=None, ge=0)


class EmailField(FieldBase):
    type: Literal["email"]


class UrlField(FieldBase):
    type: Literal["url"]


class PhoneField(FieldBase):
    type: Literal["phone"]


class DateField(FieldBase):
    type: Literal["date"]


class CheckboxField(FieldBase):
    type: Literal["checkbox"]


class NumberField(FieldBase):
    type: Literal["number", "rating"]
    min_value: Optional[float] = None
    max_value: Optional[float] = None

    @model_validator(mode="after")
    def check_bounds(self):
        if self.min_value is not None and self.max_value is not None and self.min_value > self.max_value:
            raise ValueError("minValue must not exceed maxValue")
        return self


class ChoiceField(FieldBase):
    type: Literal["dropdown", "radio"]
    options: List[str] = Field(min_length=1)


class FileField(FieldBase):
    type: Literal["file"]
    max_file_size: Optional[float] = Field(default=None, gt=0)  # MB
    allowed_file_types: List[str] = []  # MIME patterns, "image/*" allowed


FIELD_VARIANTS = (
    TextField,
    EmailField,
    UrlField,
    PhoneField,
    DateField,
    CheckboxField,
    NumberField,
    ChoiceField,
    FileField,
)

FieldSchema = Annotated[
    Union[
        TextField,
        EmailField,
        UrlField,
        PhoneField,
        DateField,
        CheckboxField,
        NumberField,
        ChoiceField,
        FileField,
    ],
    Field(discriminator="type"),
]
