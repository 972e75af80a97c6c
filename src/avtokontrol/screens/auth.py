"""Login and registration screens."""

from __future__ import annotations

import logging

from avtokontrol.exceptions import (
    AuthError,
    EmailNotConfirmedError,
    InvalidCredentialsError,
    TransportError,
    UserAlreadyRegisteredError,
    ValidationError,
)
from avtokontrol.models.auth import SignUpResult
from avtokontrol.routing import LOGIN_PATH, RouteName
from avtokontrol.screens._base import Screen, ScreenContext
from avtokontrol.session import Session
from avtokontrol.validation import SignInForm, SignUpForm

_logger = logging.getLogger(__name__)


class _FormScreen(Screen[None]):
    """Screen without a load step; holds the last field errors."""

    def __init__(self, context: ScreenContext) -> None:
        super().__init__(context)
        self.form_errors: dict[str, str] = {}
        self.submitting = False

    async def _load(self) -> None:
        return None

    def _invalid(self, exc: ValidationError) -> None:
        self.form_errors = exc.errors
        self._ctx.notifier.error(str(exc))


class LoginScreen(_FormScreen):
    route = RouteName.LOGIN

    async def submit(self, email: str, password: str) -> Session | None:
        """Sign in; returns the session, or ``None`` after showing an error.

        Navigation to the dashboard is done by the session provider when
        the sign-in event arrives.
        """
        try:
            form = SignInForm.parse(email=email, password=password)
        except ValidationError as exc:
            self._invalid(exc)
            return None
        self.form_errors = {}

        self.submitting = True
        try:
            return await self._ctx.provider.sign_in(form.email, form.password)
        except InvalidCredentialsError:
            self._ctx.notifier.error("Неверный email или пароль")
        except EmailNotConfirmedError:
            self._ctx.notifier.error("Email не подтвержден. Пожалуйста, проверьте вашу почту")
        except AuthError as exc:
            self._ctx.notifier.error(str(exc))
        except TransportError as exc:
            _logger.warning("Sign-in request failed: %s", exc)
            self._ctx.notifier.error("Произошла ошибка при входе. Пожалуйста, попробуйте снова.")
        finally:
            self.submitting = False
        return None


class RegisterScreen(_FormScreen):
    route = RouteName.REGISTER

    async def submit(
        self,
        name: str,
        email: str,
        password: str,
        confirm_password: str,
    ) -> SignUpResult | None:
        """Register an account.

        Without email confirmation the provider signs the user in and
        moves to the dashboard; otherwise the user is sent to the login
        screen with a reminder to confirm the address.
        """
        try:
            form = SignUpForm.parse(
                name=name,
                email=email,
                password=password,
                confirm_password=confirm_password,
            )
        except ValidationError as exc:
            self._invalid(exc)
            return None
        self.form_errors = {}

        self.submitting = True
        try:
            result = await self._ctx.provider.sign_up(form.email, form.password, form.name)
        except UserAlreadyRegisteredError:
            self._ctx.notifier.error("Пользователь с таким email уже зарегистрирован")
            return None
        except AuthError as exc:
            self._ctx.notifier.error(str(exc))
            return None
        except TransportError as exc:
            _logger.warning("Sign-up request failed: %s", exc)
            self._ctx.notifier.error("Произошла ошибка при регистрации. Пожалуйста, попробуйте снова.")
            return None
        finally:
            self.submitting = False

        if result.confirmation_required:
            self._ctx.notifier.success(
                "Регистрация успешна! Подтвердите email",
                "Мы отправили письмо со ссылкой для подтверждения на вашу почту",
            )
            self._ctx.navigator.navigate(LOGIN_PATH)
        else:
            self._ctx.notifier.success("Регистрация успешна! Добро пожаловать в АвтоКонтроль")
        return result
