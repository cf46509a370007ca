from django.urls import path, include
from . import views

app_name = "drivers"

urlpatterns = [
    path("", views.DashboardView.as_view(), name="dashboard"),

    # API
    path("api/", include(("drivers.api_urls", "drivers_api"), namespace="drivers_api")),

    # Водители
    path("drivers/", views.DriverListView.as_view(), name="driver_list"),
    path("drivers/new/", views.DriverCreateView.as_view(), name="driver_create"),
    path("drivers/export/", views.DriverExportView.as_view(), name="driver_export"),
    path("drivers/<int:pk>/", views.DriverDetailView.as_view(), name="driver_detail"),
    path("drivers/<int:pk>/edit/", views.DriverEditView.as_view(), name="driver_edit"),
    path("drivers/<int:pk>/delete/", views.DriverDeleteView.as_view(), name="driver_delete"),

    # Договоры
    path("contracts/", views.ContractListView.as_view(), name="contract_list"),
    path("contracts/upload/", views.ContractUploadView.as_view(), name="contract_upload"),

    # Выгрузки и записи
    path("payroll/files/", views.FileUploadListView.as_view(file_type="payments", title="Выгрузки начислений"),
         name="payroll_uploads"),
    path("payroll/upload/", views.FileUploadCreateView.as_view(), name="upload_create"),
    path("payroll/records/", views.PaymentRecordListView.as_view(), name="payment_records"),
    path("trips/files/", views.FileUploadListView.as_view(file_type="trips", title="Выгрузки поездок"),
         name="trip_uploads"),
    path("trips/records/", views.TripRecordListView.as_view(), name="trip_records"),
    path("imports/<int:pk>/delete/", views.FileUploadDeleteView.as_view(), name="upload_delete"),
    path("imports/<int:pk>/download/", views.FileUploadDownloadView.as_view(), name="upload_download"),
]
