import logging

from django.conf import settings
from django.contrib import messages
from django.shortcuts import redirect, resolve_url
from django.utils.http import url_has_allowed_host_and_scheme
from django.views import View
from django.views.generic import FormView, TemplateView

from drivers.services.backend import BackendAuthError, BackendError, BackendValidationError
from drivers.services.drivers import get_current_user

from .forms import LoginForm
from .mixins import BackendLoginRequiredMixin
from .services import obtain_token, revoke_token
from .session import clear_token, get_token, is_signed_in, store_token

logger = logging.getLogger(__name__)


class LoginView(FormView):
    template_name = "accounts/login.html"
    form_class = LoginForm

    def get(self, request, *args, **kwargs):
        if is_signed_in(request):
            return redirect(self.get_success_url())
        return super().get(request, *args, **kwargs)

    def form_valid(self, form):
        username = form.cleaned_data["username"]
        try:
            token = obtain_token(username, form.cleaned_data["password"])
        except BackendValidationError as e:
            form.add_error(None, e.message)
            return self.form_invalid(form)
        except BackendError as e:
            form.add_error(None, f"Не удалось войти: {e.message}")
            return self.form_invalid(form)

        store_token(self.request, token, username=username)
        logger.info("User %s signed in", username)
        return redirect(self.get_success_url())

    def get_success_url(self):
        nxt = self.request.POST.get("next") or self.request.GET.get("next")
        if nxt and url_has_allowed_host_and_scheme(nxt, allowed_hosts={self.request.get_host()}):
            return nxt
        return resolve_url(settings.LOGIN_REDIRECT_URL)

    def get_context_data(self, **kwargs):
        ctx = super().get_context_data(**kwargs)
        ctx["title"] = "Вход"
        ctx["next"] = self.request.GET.get("next", "")
        return ctx


class LogoutView(View):
    """POST: выход. Бэкенд уведомляем, но локальный выход происходит всегда."""

    def post(self, request, *args, **kwargs):
        token = get_token(request)
        if token:
            revoke_token(token)
        clear_token(request)
        messages.info(request, "Вы вышли из системы.")
        return redirect(settings.LOGIN_URL)


class ProfileView(BackendLoginRequiredMixin, TemplateView):
    template_name = "accounts/profile.html"

    def get_context_data(self, **kwargs):
        ctx = super().get_context_data(**kwargs)
        ctx["title"] = "Профиль"
        ctx["profile"] = None
        ctx["error"] = None
        try:
            ctx["profile"] = get_current_user(self.backend)
        except BackendAuthError:
            raise
        except BackendError as e:
            ctx["error"] = e.message
        return ctx
