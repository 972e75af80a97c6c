"""Form schemas.

Each form is a frozen pydantic model. :meth:`Form.parse` validates raw
input and raises :class:`avtokontrol.exceptions.ValidationError` with one
Russian message per failing field, before any network call is made.
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Any, Self

from pydantic import BaseModel, ConfigDict, ValidationInfo, field_validator
from pydantic import ValidationError as PydanticValidationError

from avtokontrol.exceptions import ValidationError

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
MIN_PASSWORD_LENGTH = 6
MIN_YEAR = 1900

_GENERIC_MESSAGES = {
    "missing": "Обязательное поле",
}


def _field_errors(exc: PydanticValidationError) -> dict[str, str]:
    errors: dict[str, str] = {}
    for error in exc.errors():
        field = str(error["loc"][0]) if error["loc"] else "__root__"
        if field in errors:
            continue
        if error["type"] == "value_error":
            message = str(error["ctx"]["error"])
        else:
            message = _GENERIC_MESSAGES.get(error["type"], "Некорректное значение")
        errors[field] = message
    return errors


def _check_email(value: str) -> str:
    value = value.strip()
    if not EMAIL_RE.match(value):
        raise ValueError("Введите корректный email")
    return value


def _optional(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip() or None
    return value


class Form(BaseModel):
    model_config = ConfigDict(frozen=True)

    @classmethod
    def parse(cls, **data: Any) -> Self:
        try:
            return cls.model_validate(data)
        except PydanticValidationError as exc:
            raise ValidationError(_field_errors(exc)) from exc


class SignInForm(Form):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def check_email(cls, value: str) -> str:
        return _check_email(value)

    @field_validator("password")
    @classmethod
    def check_password(cls, value: str) -> str:
        if not value:
            raise ValueError("Введите пароль")
        return value


class SignUpForm(Form):
    name: str
    email: str
    password: str
    confirm_password: str

    @field_validator("email")
    @classmethod
    def check_email(cls, value: str) -> str:
        return _check_email(value)

    @field_validator("name")
    @classmethod
    def check_name(cls, value: str) -> str:
        value = value.strip()
        if len(value) < 2:
            raise ValueError("Имя должно содержать минимум 2 символа")
        return value

    @field_validator("password")
    @classmethod
    def check_password(cls, value: str) -> str:
        if len(value) < MIN_PASSWORD_LENGTH:
            raise ValueError(f"Пароль должен содержать минимум {MIN_PASSWORD_LENGTH} символов")
        return value

    @field_validator("confirm_password")
    @classmethod
    def check_confirm(cls, value: str, info: ValidationInfo) -> str:
        if "password" in info.data and value != info.data["password"]:
            raise ValueError("Пароли не совпадают")
        return value


class VehicleForm(Form):
    """Add-vehicle dialog."""

    name: str
    model: str
    year: int
    color: str | None = None
    license_plate: str | None = None

    @field_validator("name")
    @classmethod
    def check_name(cls, value: str) -> str:
        value = value.strip()
        if len(value) < 2:
            raise ValueError("Название должно содержать минимум 2 символа")
        return value

    @field_validator("model")
    @classmethod
    def check_model(cls, value: str) -> str:
        value = value.strip()
        if len(value) < 2:
            raise ValueError("Модель должна содержать минимум 2 символа")
        return value

    @field_validator("year", mode="before")
    @classmethod
    def check_year(cls, value: Any) -> int:
        try:
            year = int(str(value).strip())
        except ValueError:
            raise ValueError("Год должен быть числом") from None
        latest = datetime.now().year + 1
        if year < MIN_YEAR:
            raise ValueError(f"Год должен быть не менее {MIN_YEAR}")
        if year > latest:
            raise ValueError(f"Год не может быть больше {latest}")
        return year

    @field_validator("color", "license_plate", mode="before")
    @classmethod
    def check_blank_to_none(cls, value: Any) -> Any:
        return _optional(value)

    def to_row(self) -> dict[str, Any]:
        """Insert payload without owner and status.

        The plate stays client-side; the ``vehicles`` table has no column for it.
        """
        row: dict[str, Any] = {"name": self.name, "model": self.model, "year": self.year}
        if self.color:
            row["color"] = self.color
        return row


class ProfileForm(Form):
    name: str
    username: str | None = None
    email: str

    @field_validator("email")
    @classmethod
    def check_email(cls, value: str) -> str:
        return _check_email(value)

    @field_validator("name")
    @classmethod
    def check_name(cls, value: str) -> str:
        value = value.strip()
        if len(value) < 2:
            raise ValueError("Имя должно содержать минимум 2 символа")
        return value

    @field_validator("username", mode="before")
    @classmethod
    def check_blank_to_none(cls, value: Any) -> Any:
        return _optional(value)


class PasswordChangeForm(Form):
    current_password: str
    new_password: str
    confirm_password: str

    @field_validator("current_password")
    @classmethod
    def check_current(cls, value: str) -> str:
        if not value:
            raise ValueError("Введите текущий пароль")
        return value

    @field_validator("new_password")
    @classmethod
    def check_new(cls, value: str) -> str:
        if len(value) < MIN_PASSWORD_LENGTH:
            raise ValueError(f"Пароль должен содержать минимум {MIN_PASSWORD_LENGTH} символов")
        return value

    @field_validator("confirm_password")
    @classmethod
    def check_confirm(cls, value: str, info: ValidationInfo) -> str:
        if "new_password" in info.data and value != info.data["new_password"]:
            raise ValueError("Новый пароль и подтверждение не совпадают")
        return value
