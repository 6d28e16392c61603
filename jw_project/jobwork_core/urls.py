from django.urls import path

from . import views

app_name = "jobwork_core"

urlpatterns = [
    path("numbering/<str:doc_type>/", views.numbering_settings_view,
         name="numbering-settings"),
    path("invoices/from-challans/", views.invoice_from_challans_view,
         name="invoice-from-challans"),
    path("<slug:kind>/", views.document_list_view, name="document-list"),
    path("<slug:kind>/<int:pk>/", views.document_detail_view,
         name="document-detail"),
]
