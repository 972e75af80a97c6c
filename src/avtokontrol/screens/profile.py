"""Profile screen: personal data and password change."""

from __future__ import annotations

import logging

from avtokontrol._constants import TABLE_PROFILES
from avtokontrol.exceptions import AuthError, BackendError, TransportError, ValidationError
from avtokontrol.models._base import isoformat
from avtokontrol.models.profile import Profile
from avtokontrol.routing import RouteName
from avtokontrol.screens._base import Screen, ScreenContext
from avtokontrol.validation import PasswordChangeForm, ProfileForm

_logger = logging.getLogger(__name__)


class ProfileScreen(Screen[Profile]):
    route = RouteName.PROFILE

    def __init__(self, context: ScreenContext) -> None:
        super().__init__(context)
        self.form_errors: dict[str, str] = {}

    @property
    def profile(self) -> Profile | None:
        return self._data

    async def _load(self) -> Profile:
        backend = self._ctx.backend
        session = await backend.ensure_session()
        row = await backend.select_one_owned(TABLE_PROFILES, filters={}, owner_column="id")
        if row:
            return Profile.model_validate(row)
        return Profile.from_auth_metadata(session.user_id, session.email, {})

    def _invalid(self, exc: ValidationError) -> None:
        self.form_errors = exc.errors
        self._ctx.notifier.error("Ошибка", str(exc))

    async def update_profile(self, *, name: str, email: str, username: str | None = None) -> Profile | None:
        try:
            form = ProfileForm.parse(name=name, email=email, username=username)
        except ValidationError as exc:
            self._invalid(exc)
            return None
        self.form_errors = {}

        values = {
            "name": form.name,
            "email": form.email,
            "updated_at": isoformat(self._ctx.now()),
        }
        if form.username:
            values["username"] = form.username
        try:
            row = await self._ctx.backend.upsert_owned(TABLE_PROFILES, values, on_conflict="id", owner_column="id")
        except (BackendError, TransportError) as exc:
            _logger.warning("Profile update failed: %s", exc)
            self._ctx.notifier.error("Не удалось сохранить профиль", str(exc))
            return None

        profile = Profile.model_validate(row)
        self._set_data(profile)
        self._ctx.notifier.success("Профиль обновлен", "Ваши данные успешно сохранены")
        return profile

    async def change_password(self, *, current_password: str, new_password: str, confirm_password: str) -> bool:
        """Verify the current password, then set the new one."""
        try:
            form = PasswordChangeForm.parse(
                current_password=current_password,
                new_password=new_password,
                confirm_password=confirm_password,
            )
        except ValidationError as exc:
            self._invalid(exc)
            return False
        self.form_errors = {}

        backend = self._ctx.backend
        try:
            if not await backend.verify_password(form.current_password):
                self.form_errors = {"current_password": "Текущий пароль указан неверно"}
                self._ctx.notifier.error("Ошибка", "Текущий пароль указан неверно")
                return False
            await backend.update_user({"password": form.new_password})
        except (AuthError, TransportError) as exc:
            _logger.warning("Password change failed: %s", exc)
            self._ctx.notifier.error("Ошибка", str(exc))
            return False

        self._ctx.notifier.success("Пароль изменен", "Ваш пароль успешно обновлен")
        return True
