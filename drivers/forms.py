from django import forms

from .services.drivers import DOC_STATUS_CHOICES
from .services.imports import FILE_TYPES, UPLOAD_STATUSES

DATE_WIDGET = forms.DateInput(attrs={"type": "date", "class": "lm-input"}, format="%Y-%m-%d")


def company_choices(companies, key="code", with_all=False):
    """Выпадающий список компаний из ответа /companies/ (по code или id)."""
    choices = [("All", "Все компании")] if with_all else [("", "— выберите —")]
    choices += [(str(c.get(key)), c.get("name") or c.get("code")) for c in companies if c.get(key) is not None]
    return choices


class DriverForm(forms.Form):
    """Основные данные водителя (JSON для POST/PUT /drivers/)."""
    first_name = forms.CharField(label="Имя", max_length=100)
    last_name = forms.CharField(label="Фамилия", max_length=100)
    nid = forms.CharField(label="Номер удостоверения личности", max_length=50, required=False)
    uuid = forms.CharField(label="UUID в системе партнёра", max_length=64, required=False,
                           help_text="Оставьте пустым, и UUID сгенерируется автоматически")
    phone_number = forms.CharField(label="Телефон", max_length=32)
    company_code = forms.ChoiceField(label="Компания", choices=())
    is_active = forms.BooleanField(label="Активен", required=False, initial=True)

    def __init__(self, *args, companies=(), **kwargs):
        super().__init__(*args, **kwargs)
        self.fields["company_code"].choices = company_choices(companies)

    def clean_phone_number(self):
        phone = (self.cleaned_data.get("phone_number") or "").strip().replace(" ", "")
        digits = phone[1:] if phone.startswith("+") else phone
        if not digits.isdigit():
            raise forms.ValidationError("Телефон должен состоять из цифр (допускается + в начале).")
        return phone

    def payload(self):
        data = dict(self.cleaned_data)
        data["nid"] = data.get("nid") or None
        return data


class DocumentForm(forms.Form):
    """Общие поля документа: файл, даты, заметки."""
    file = forms.FileField(label="Файл", required=False)
    issue_date = forms.DateField(label="Дата выдачи", required=False, widget=DATE_WIDGET)
    expiry_date = forms.DateField(label="Действует до", required=False, widget=DATE_WIDGET)
    notes = forms.CharField(label="Заметки", required=False, widget=forms.Textarea(attrs={"rows": 2}))

    def clean(self):
        cleaned = super().clean()
        issue, expiry = cleaned.get("issue_date"), cleaned.get("expiry_date")
        if issue and expiry and expiry < issue:
            self.add_error("expiry_date", "Дата окончания раньше даты выдачи.")
        if cleaned.get("file") and not expiry:
            self.add_error("expiry_date", "Укажите срок действия документа.")
        return cleaned


class LicenseForm(DocumentForm):
    license_number = forms.CharField(label="Номер ВУ", max_length=50, required=False)
    license_type = forms.CharField(label="Категория", max_length=20, required=False)


class NationalIdForm(DocumentForm):
    pass


class VehicleLicenseForm(DocumentForm):
    license_number = forms.CharField(label="Номер свидетельства", max_length=50, required=False)
    license_plate = forms.CharField(label="Госномер", max_length=20, required=False)
    license_type = forms.CharField(label="Тип регистрации", max_length=20, required=False)
    vehicle_type = forms.CharField(label="Тип ТС", max_length=50, required=False)


class ContractForm(DocumentForm):
    contract_number = forms.CharField(label="Номер договора", max_length=50, required=False)


ContractFormSet = forms.formset_factory(ContractForm, extra=1, max_num=10)


class ContractUploadForm(ContractForm):
    """Отдельная загрузка договора: водитель и файл обязательны."""
    driver_id = forms.IntegerField(label="ID водителя", min_value=1)
    file = forms.FileField(label="Файл")
    contract_number = forms.CharField(label="Номер договора", max_length=50)


class DriverFilterForm(forms.Form):
    company = forms.ChoiceField(label="Компания", required=False, choices=())
    status = forms.ChoiceField(label="Статус", required=False, choices=(
        ("all", "Все"), ("active", "Активные"), ("inactive", "Неактивные"),
    ))
    doc_status = forms.ChoiceField(label="Документы", required=False, choices=(
        ("all", "Все"),
        (DOC_STATUS_CHOICES[0], "Просроченные документы"),
        (DOC_STATUS_CHOICES[1], "Нет документов"),
    ))
    search = forms.CharField(label="Поиск", required=False)

    def __init__(self, *args, companies=(), **kwargs):
        super().__init__(*args, **kwargs)
        self.fields["company"].choices = company_choices(companies, with_all=True)

    def filters(self):
        """Валидные значения фильтров (мусор → значения по умолчанию)."""
        # поля, не прошедшие проверку, просто не попадают в cleaned_data
        self.is_valid()
        data = getattr(self, "cleaned_data", {})
        return {
            "company": data.get("company") or "All",
            "status": data.get("status") or "all",
            "doc_status": data.get("doc_status") or "all",
            "search": (data.get("search") or "").strip(),
        }


class RecordFilterForm(forms.Form):
    """Фильтры списков выгрузок и записей: компания, поиск, период."""
    company = forms.ChoiceField(label="Компания", required=False, choices=())
    search = forms.CharField(label="Поиск", required=False)
    from_date = forms.DateField(label="С", required=False, widget=DATE_WIDGET)
    to_date = forms.DateField(label="По", required=False, widget=DATE_WIDGET)
    status = forms.ChoiceField(label="Статус", required=False,
                               choices=[("", "Любой")] + [(s, s) for s in UPLOAD_STATUSES])

    def __init__(self, *args, companies=(), **kwargs):
        super().__init__(*args, **kwargs)
        self.fields["company"].choices = company_choices(companies, with_all=True)

    def filters(self):
        self.is_valid()
        data = getattr(self, "cleaned_data", {})
        return {
            "company": data.get("company") or "All",
            "search": (data.get("search") or "").strip(),
            "from_date": data.get("from_date"),
            "to_date": data.get("to_date"),
            "status": data.get("status") or None,
        }


class FileUploadForm(forms.Form):
    """Новая выгрузка payments/trips за период."""
    company = forms.ChoiceField(label="Компания", choices=())
    file_type = forms.ChoiceField(label="Тип данных", choices=[(t, t) for t in FILE_TYPES], initial="payments")
    file = forms.FileField(label="Файл")
    from_date = forms.DateField(label="Период с", widget=DATE_WIDGET)
    to_date = forms.DateField(label="Период по", widget=DATE_WIDGET)

    def __init__(self, *args, companies=(), **kwargs):
        super().__init__(*args, **kwargs)
        # выгрузка привязывается к компании по id, а не по code
        self.fields["company"].choices = company_choices(companies, key="id")

    def clean(self):
        cleaned = super().clean()
        start, end = cleaned.get("from_date"), cleaned.get("to_date")
        if start and end and start > end:
            self.add_error("to_date", "Конец периода раньше начала.")
        return cleaned
