# LogiMS/accounts/mixins.py
import logging

from django.conf import settings
from django.contrib import messages
from django.contrib.auth.views import redirect_to_login
from django.shortcuts import resolve_url

from drivers.services.backend import BackendAuthError, client_for

from .session import clear_token, is_signed_in

logger = logging.getLogger(__name__)


class BackendLoginRequiredMixin:
    """Аналог LoginRequiredMixin: пускаем только с токеном бэкенда в сессии.

    Если бэкенд по ходу запроса ответил 401/403 (токен отозван или истёк),
    выкидываем токен и отправляем на страницу входа.
    """

    def dispatch(self, request, *args, **kwargs):
        if not is_signed_in(request):
            return self._to_login(request)
        self.backend = client_for(request)
        try:
            return super().dispatch(request, *args, **kwargs)
        except BackendAuthError as e:
            logger.info("Backend rejected token: %s", e)
            clear_token(request)
            messages.warning(request, "Сессия истекла, войдите снова.")
            return self._to_login(request)

    @staticmethod
    def _to_login(request):
        return redirect_to_login(request.get_full_path(), resolve_url(settings.LOGIN_URL))
