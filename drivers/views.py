# LogiMS/drivers/views.py
import logging

from django.conf import settings
from django.contrib import messages
from django.http import HttpResponse
from django.shortcuts import redirect, render
from django.urls import reverse
from django.utils.http import url_has_allowed_host_and_scheme
from django.views import View
from django.views.generic import FormView, TemplateView

from accounts.mixins import BackendLoginRequiredMixin

from .forms import (
    ContractFormSet,
    ContractUploadForm,
    DriverFilterForm,
    DriverForm,
    FileUploadForm,
    LicenseForm,
    NationalIdForm,
    RecordFilterForm,
    VehicleLicenseForm,
)
from .services.backend import BackendAuthError, BackendError, BackendNotFound, BackendValidationError
from .services.drivers import (
    create_driver,
    delete_driver,
    export_drivers,
    get_driver,
    list_companies,
    list_contracts,
    list_drivers,
    update_driver,
    upload_contract,
    upload_documents,
)
from .services.expiry import driver_documents
from .services.imports import (
    create_file_upload,
    delete_file_upload,
    get_file_upload,
    list_file_uploads,
    list_payment_records,
    list_trip_records,
    resolve_file_url,
)
from .services.pagination import count_pages, page_context, parse_page
from .services.stats import build_dashboard

logger = logging.getLogger(__name__)

PAYMENT_ORDERINGS = ("-created_at", "created_at", "-net_earnings", "net_earnings", "-total_revenue", "total_revenue")

# Подписи документов в формах: (ключ, префикс формы, класс формы)
DOCUMENT_FORMS = (
    ("license", "license", LicenseForm),
    ("national_id", "nid", NationalIdForm),
    ("vehicle_license", "vehicle", VehicleLicenseForm),
)


# ---------- MIXINS ----------
class BackendPageMixin(BackendLoginRequiredMixin):
    """Страница поверх бэкенда: ошибки запросов показываем в шаблоне, а не 500.

    401/403 пробрасываем дальше, их обрабатывает BackendLoginRequiredMixin.
    """
    title = ""
    error = None
    error_status = None

    def fetch(self, fn, *args, default=None, **kwargs):
        try:
            return fn(self.backend, *args, **kwargs)
        except BackendAuthError:
            raise
        except BackendNotFound as e:
            self.report(e, 404)
        except BackendError as e:
            self.report(e, 502)
        return default

    def fetch_page(self, fn, page, page_size, /, **kwargs):
        """Страница списка с бэкенда → (data, номер страницы).

        Бэкенд отвечает 404 "Invalid page." на номер за концом списка
        (устаревшая ссылка ?page=99). Тогда узнаём count по первой странице
        и показываем последнюю, чтобы пагинатор не пропадал.
        """
        try:
            return fn(self.backend, page=page, **kwargs), page
        except BackendAuthError:
            raise
        except BackendNotFound as e:
            if page <= 1:
                self.report(e, 404)
                return {}, page
            logger.info("%s: page %s is out of range, falling back", type(self).__name__, page)
        except BackendError as e:
            self.report(e, 502)
            return {}, page

        first = self.fetch(fn, page=1, default={}, **kwargs)
        last = count_pages(first.get("count"), page_size)
        if last <= 1:
            return first, 1
        try:
            return fn(self.backend, page=last, **kwargs), last
        except BackendAuthError:
            raise
        except BackendError as e:
            # последняя страница тоже не отдалась: остаёмся на первой
            logger.warning("%s: last page %s failed: %s", type(self).__name__, last, e)
            return first, 1

    def report(self, error, status=502):
        logger.warning("%s: backend error %s", type(self).__name__, error)
        self.error = error.message
        self.error_status = status

    def companies(self):
        return self.fetch(list_companies, default=[])

    def get_context_data(self, **kwargs):
        ctx = super().get_context_data(**kwargs)
        ctx.setdefault("title", self.title)
        return ctx

    def render_to_response(self, context, **response_kwargs):
        context.setdefault("error", self.error)
        if self.error_status:
            response_kwargs.setdefault("status", self.error_status)
        return super().render_to_response(context, **response_kwargs)


def apply_backend_errors(form, error):
    """Ошибки валидации бэкенда раскладываем по полям формы (или в общие)."""
    fields = error.field_errors
    if not fields:
        form.add_error(None, error.message)
        return
    for name, msgs in fields.items():
        form.add_error(name if name in form.fields else None, msgs)


def safe_next(request, fallback):
    nxt = request.POST.get("next") or request.GET.get("next")
    if nxt and url_has_allowed_host_and_scheme(nxt, allowed_hosts={request.get_host()}):
        return nxt
    return fallback


# ---------- PAGES ----------
class DashboardView(BackendPageMixin, TemplateView):
    template_name = "drivers/dashboard.html"
    title = "Дашборд"

    def get_context_data(self, **kwargs):
        ctx = super().get_context_data(**kwargs)
        ctx["dashboard"] = self.fetch(build_dashboard, default={})
        return ctx


class DriverListView(BackendPageMixin, TemplateView):
    template_name = "drivers/driver_list.html"
    title = "Водители"

    def get_context_data(self, **kwargs):
        ctx = super().get_context_data(**kwargs)
        form = DriverFilterForm(self.request.GET or None, companies=self.companies())
        filters = form.filters()
        page = parse_page(self.request.GET.get("page"))
        page_size = settings.DEFAULT_PAGE_SIZE

        data, page = self.fetch_page(list_drivers, page, page_size, page_size=page_size, **filters)
        ctx.update({
            "filter_form": form,
            "filters": filters,
            "drivers": data.get("results") or [],
            "pager": page_context(page, data.get("count"), page_size),
        })
        return ctx


class DriverCreateView(BackendPageMixin, TemplateView):
    """Водитель + документы одной формой; документы грузятся после создания."""
    template_name = "drivers/driver_form.html"
    title = "Новый водитель"

    def build_forms(self, data=None, files=None):
        companies = self.companies()
        docs = {key: cls(data, files, prefix=prefix) for key, prefix, cls in DOCUMENT_FORMS}
        return {
            "form": DriverForm(data, companies=companies, prefix="driver"),
            "documents": docs,
            "contracts": ContractFormSet(data, files, prefix="contracts"),
        }

    def get_context_data(self, **kwargs):
        ctx = super().get_context_data(**kwargs)
        if "form" not in kwargs:
            ctx.update(self.build_forms())
        return ctx

    def post(self, request, *args, **kwargs):
        forms = self.build_forms(request.POST, request.FILES)
        driver_form, docs, contracts = forms["form"], forms["documents"], forms["contracts"]
        valid = driver_form.is_valid() & contracts.is_valid()
        valid = all([f.is_valid() for f in docs.values()]) and valid
        if not valid:
            return self.render_to_response(self.get_context_data(**forms))

        try:
            result = create_driver(
                self.backend,
                driver_form.payload(),
                license=docs["license"].cleaned_data,
                national_id=docs["national_id"].cleaned_data,
                vehicle_license=docs["vehicle_license"].cleaned_data,
                contracts=[f.cleaned_data for f in contracts if f.cleaned_data],
            )
        except BackendAuthError:
            raise
        except BackendValidationError as e:
            apply_backend_errors(driver_form, e)
            return self.render_to_response(self.get_context_data(**forms))
        except BackendError as e:
            self.report(e)
            return self.render_to_response(self.get_context_data(**forms))

        driver = result.driver
        messages.success(request, f"Водитель {driver.get('first_name', '')} {driver.get('last_name', '')} создан.")
        for failed in result.failed:
            messages.warning(request, f"Документ «{failed['kind']}» не загружен: {failed['error']}")
        return redirect("drivers:driver_detail", pk=driver["id"])


class DriverDetailView(BackendPageMixin, TemplateView):
    template_name = "drivers/driver_detail.html"
    title = "Профиль водителя"

    def get_context_data(self, **kwargs):
        ctx = super().get_context_data(**kwargs)
        driver = self.fetch(get_driver, kwargs["pk"])
        ctx["driver"] = driver
        ctx["documents"] = driver_documents(driver) if driver else []
        return ctx


class DriverEditView(BackendPageMixin, TemplateView):
    template_name = "drivers/driver_form.html"
    title = "Редактирование водителя"

    def build_forms(self, driver, data=None, files=None):
        initial = {k: driver.get(k) for k in DriverForm.base_fields} if driver else None
        return {
            "form": DriverForm(data, initial=initial, companies=self.companies(), prefix="driver"),
            "documents": {key: cls(data, files, prefix=prefix) for key, prefix, cls in DOCUMENT_FORMS},
        }

    def get_context_data(self, **kwargs):
        ctx = super().get_context_data(**kwargs)
        if "driver" not in kwargs:
            driver = self.fetch(get_driver, kwargs["pk"])
            ctx["driver"] = driver
            if driver:
                ctx.update(self.build_forms(driver))
        return ctx

    def post(self, request, *args, **kwargs):
        pk = kwargs["pk"]
        driver = self.fetch(get_driver, pk)
        if driver is None:
            return self.render_to_response(self.get_context_data(driver=None, pk=pk))

        forms = self.build_forms(driver, request.POST, request.FILES)
        driver_form, docs = forms["form"], forms["documents"]
        valid = all([f.is_valid() for f in docs.values()])
        if not (driver_form.is_valid() and valid):
            return self.render_to_response(self.get_context_data(driver=driver, pk=pk, **forms))

        try:
            payload = driver_form.payload()
            payload["uuid"] = payload.get("uuid") or driver.get("uuid")
            update_driver(self.backend, pk, payload)
            failed = upload_documents(self.backend, pk, {k: f.cleaned_data for k, f in docs.items()})
        except BackendAuthError:
            raise
        except BackendValidationError as e:
            apply_backend_errors(driver_form, e)
            return self.render_to_response(self.get_context_data(driver=driver, pk=pk, **forms))
        except BackendError as e:
            self.report(e)
            return self.render_to_response(self.get_context_data(driver=driver, pk=pk, **forms))

        messages.success(request, "Изменения сохранены.")
        for f in failed:
            messages.warning(request, f"Документ «{f['kind']}» не загружен: {f['error']}")
        return redirect("drivers:driver_detail", pk=pk)


class DriverDeleteView(BackendLoginRequiredMixin, View):
    """POST: удалить водителя."""

    def post(self, request, pk, *args, **kwargs):
        try:
            delete_driver(self.backend, pk)
        except BackendAuthError:
            raise
        except BackendError as e:
            messages.error(request, f"Не удалось удалить водителя: {e.message}")
            return redirect("drivers:driver_detail", pk=pk)
        messages.success(request, "Водитель удалён.")
        return redirect("drivers:driver_list")


class DriverExportView(BackendLoginRequiredMixin, View):
    def get(self, request, *args, **kwargs):
        try:
            filters = DriverFilterForm(request.GET or None, companies=list_companies(self.backend)).filters()
            export = export_drivers(
                self.backend,
                company=filters["company"],
                doc_status=filters["doc_status"],
                search=filters["search"],
            )
        except BackendAuthError:
            raise
        except BackendError as e:
            messages.error(request, f"Экспорт не удался: {e.message}")
            return redirect("drivers:driver_list")

        response = HttpResponse(export.content, content_type=export.content_type)
        response["Content-Disposition"] = f'attachment; filename="{export.filename}"'
        return response


# ---------- CONTRACTS ----------
class ContractListView(BackendPageMixin, TemplateView):
    template_name = "drivers/contract_list.html"
    title = "Договоры"

    def get_context_data(self, **kwargs):
        ctx = super().get_context_data(**kwargs)
        page = parse_page(self.request.GET.get("page"))
        data, page = self.fetch_page(list_contracts, page, settings.DEFAULT_PAGE_SIZE)
        contracts = data.get("results") or []
        ctx.update({
            "contracts": contracts,
            "pager": page_context(page, data.get("count"), settings.DEFAULT_PAGE_SIZE),
        })
        return ctx


class ContractUploadView(BackendPageMixin, FormView):
    template_name = "drivers/contract_upload.html"
    form_class = ContractUploadForm
    title = "Загрузка договора"

    def get_initial(self):
        initial = super().get_initial()
        driver = parse_page(self.request.GET.get("driver"), default=0)
        if driver:
            initial["driver_id"] = driver
        return initial

    def form_valid(self, form):
        try:
            upload_contract(self.backend, dict(form.cleaned_data))
        except BackendAuthError:
            raise
        except BackendValidationError as e:
            apply_backend_errors(form, e)
            return self.form_invalid(form)
        except BackendError as e:
            self.report(e)
            return self.form_invalid(form)
        messages.success(self.request, "Договор загружен.")
        return redirect("drivers:driver_detail", pk=form.cleaned_data["driver_id"])


# ---------- IMPORTS ----------
class FileUploadListView(BackendPageMixin, TemplateView):
    """Список выгрузок одного типа (payments или trips)."""
    template_name = "drivers/file_upload_list.html"
    file_type = "payments"

    def get_context_data(self, **kwargs):
        ctx = super().get_context_data(**kwargs)
        form = RecordFilterForm(self.request.GET or None, companies=self.companies())
        filters = form.filters()
        page = parse_page(self.request.GET.get("page"))
        page_size = settings.DEFAULT_PAGE_SIZE

        data, page = self.fetch_page(list_file_uploads, page, page_size, page_size=page_size,
                                     file_type=self.file_type, **filters)
        ctx.update({
            "filter_form": form,
            "file_type": self.file_type,
            "uploads": data.get("results") or [],
            "pager": page_context(page, data.get("count"), page_size),
        })
        return ctx


class FileUploadCreateView(BackendPageMixin, FormView):
    template_name = "drivers/file_upload_form.html"
    form_class = FileUploadForm
    title = "Новая выгрузка"

    def get_form_kwargs(self):
        kwargs = super().get_form_kwargs()
        kwargs["companies"] = self.companies()
        return kwargs

    def get_initial(self):
        initial = super().get_initial()
        if self.request.GET.get("type") in ("payments", "trips"):
            initial["file_type"] = self.request.GET["type"]
        return initial

    def form_valid(self, form):
        data = form.cleaned_data
        try:
            create_file_upload(
                self.backend,
                company_id=int(data["company"]),
                file=data["file"],
                from_date=data["from_date"],
                to_date=data["to_date"],
                file_type=data["file_type"],
            )
        except BackendAuthError:
            raise
        except BackendValidationError as e:
            apply_backend_errors(form, e)
            return self.form_invalid(form)
        except BackendError as e:
            self.report(e)
            return self.form_invalid(form)
        messages.success(self.request, "Файл отправлен, обработка идёт на сервере.")
        target = "drivers:trip_uploads" if data["file_type"] == "trips" else "drivers:payroll_uploads"
        return redirect(target)


class FileUploadDeleteView(BackendLoginRequiredMixin, View):
    def post(self, request, pk, *args, **kwargs):
        try:
            delete_file_upload(self.backend, pk)
        except BackendAuthError:
            raise
        except BackendError as e:
            messages.error(request, f"Не удалось удалить выгрузку: {e.message}")
        else:
            messages.success(request, "Выгрузка удалена.")
        return redirect(safe_next(request, reverse("drivers:payroll_uploads")))


class FileUploadDownloadView(BackendLoginRequiredMixin, View):
    """Редирект на сам файл выгрузки (файлы раздаёт бэкенд)."""

    def get(self, request, pk, *args, **kwargs):
        fallback = reverse("drivers:payroll_uploads")
        try:
            upload = get_file_upload(self.backend, pk)
        except BackendAuthError:
            raise
        except BackendError as e:
            messages.error(request, f"Выгрузка недоступна: {e.message}")
            return redirect(fallback)

        url = resolve_file_url(upload.get("file"), self.backend.base_url)
        if not url:
            messages.error(request, "У выгрузки нет файла.")
            return redirect(fallback)
        return redirect(url)


class PaymentRecordListView(BackendPageMixin, TemplateView):
    template_name = "drivers/payment_records.html"
    title = "Начисления водителям"

    def get_context_data(self, **kwargs):
        ctx = super().get_context_data(**kwargs)
        form = RecordFilterForm(self.request.GET or None, companies=self.companies())
        filters = form.filters()
        filters.pop("status")
        ordering = self.request.GET.get("ordering")
        if ordering not in PAYMENT_ORDERINGS:
            ordering = "-created_at"
        page = parse_page(self.request.GET.get("page"))
        page_size = settings.DEFAULT_PAGE_SIZE

        data, page = self.fetch_page(list_payment_records, page, page_size, page_size=page_size,
                                     ordering=ordering, **filters)
        ctx.update({
            "filter_form": form,
            "ordering": ordering,
            "records": data.get("results") or [],
            "pager": page_context(page, data.get("count"), page_size),
        })
        return ctx


class TripRecordListView(BackendPageMixin, TemplateView):
    template_name = "drivers/trip_records.html"
    title = "Поездки"

    def get_context_data(self, **kwargs):
        ctx = super().get_context_data(**kwargs)
        form = RecordFilterForm(self.request.GET or None, companies=self.companies())
        filters = form.filters()
        filters.pop("status")
        upload_id = parse_page(self.request.GET.get("upload"), default=0) or None
        page = parse_page(self.request.GET.get("page"))
        page_size = settings.DEFAULT_PAGE_SIZE

        data, page = self.fetch_page(list_trip_records, page, page_size, page_size=page_size,
                                     upload_id=upload_id, **filters)
        ctx.update({
            "filter_form": form,
            "upload_id": upload_id,
            "records": data.get("results") or [],
            "pager": page_context(page, data.get("count"), page_size),
        })
        return ctx


def server_error(request):
    return render(request, "500.html", {"title": "Ошибка сервера"}, status=500)
