from __future__ import annotations

from datetime import datetime

import pytest

from avtokontrol.exceptions import ValidationError
from avtokontrol.validation import PasswordChangeForm, ProfileForm, SignInForm, SignUpForm, VehicleForm


def test_sign_up_form_accepts_ivan() -> None:
    form = SignUpForm.parse(
        name=" Иван Петров ",
        email=" ivan@example.com",
        password="Passw0rd!",
        confirm_password="Passw0rd!",
    )
    assert form.name == "Иван Петров"
    assert form.email == "ivan@example.com"


def test_sign_up_password_mismatch() -> None:
    with pytest.raises(ValidationError) as excinfo:
        SignUpForm.parse(name="Иван", email="ivan@example.com", password="Passw0rd!", confirm_password="other")
    assert excinfo.value.errors == {"confirm_password": "Пароли не совпадают"}
    assert str(excinfo.value) == "Пароли не совпадают"


def test_sign_up_collects_every_failing_field() -> None:
    with pytest.raises(ValidationError) as excinfo:
        SignUpForm.parse(name="И", email="not-an-email", password="123", confirm_password="123")
    assert set(excinfo.value.errors) == {"name", "email", "password"}
    assert excinfo.value.errors["password"] == "Пароль должен содержать минимум 6 символов"


def test_sign_in_requires_password_and_email() -> None:
    with pytest.raises(ValidationError) as excinfo:
        SignInForm.parse(email="", password="")
    assert set(excinfo.value.errors) == {"email", "password"}


def test_missing_field_message() -> None:
    with pytest.raises(ValidationError) as excinfo:
        SignInForm.parse(email="ivan@example.com")
    assert excinfo.value.errors == {"password": "Обязательное поле"}


class TestVehicleForm:
    def test_valid_form_and_row(self) -> None:
        form = VehicleForm.parse(name="Моя машина", model="Camry", year="2020", color=" ", license_plate="А123БВ77")
        assert form.year == 2020
        assert form.color is None
        assert form.license_plate == "А123БВ77"
        assert form.to_row() == {"name": "Моя машина", "model": "Camry", "year": 2020}

    @pytest.mark.parametrize(
        ("field", "value", "message"),
        [
            ("name", "A", "Название должно содержать минимум 2 символа"),
            ("model", " X ", "Модель должна содержать минимум 2 символа"),
            ("year", 1899, "Год должен быть не менее 1900"),
            ("year", "двадцать", "Год должен быть числом"),
        ],
    )
    def test_field_errors(self, field: str, value: object, message: str) -> None:
        data = {"name": "Машина", "model": "Camry", "year": 2020, field: value}
        with pytest.raises(ValidationError) as excinfo:
            VehicleForm.parse(**data)
        assert excinfo.value.errors[field] == message

    def test_year_upper_bound_is_next_year(self) -> None:
        next_year = datetime.now().year + 1
        assert VehicleForm.parse(name="Машина", model="Camry", year=next_year).year == next_year
        with pytest.raises(ValidationError, match=f"больше {next_year}"):
            VehicleForm.parse(name="Машина", model="Camry", year=next_year + 1)


def test_profile_form() -> None:
    form = ProfileForm.parse(name="Иван Петров", email="ivan@example.com", username="")
    assert form.username is None
    with pytest.raises(ValidationError):
        ProfileForm.parse(name="Иван Петров", email="ivan@")


def test_password_change_form() -> None:
    form = PasswordChangeForm.parse(current_password="old", new_password="Passw0rd!", confirm_password="Passw0rd!")
    assert form.new_password == "Passw0rd!"
    with pytest.raises(ValidationError) as excinfo:
        PasswordChangeForm.parse(current_password="old", new_password="Passw0rd!", confirm_password="x")
    assert excinfo.value.errors == {"confirm_password": "Новый пароль и подтверждение не совпадают"}


def test_passwords_are_not_stripped() -> None:
    form = SignInForm.parse(email="ivan@example.com", password=" secret ")
    assert form.password == " secret "
