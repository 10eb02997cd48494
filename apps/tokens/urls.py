from django.urls import path
from . import views

app_name = 'tokens'

urlpatterns = [
    # GET /api/tokens/ - List QR codes
    path('', views.token_list, name='token-list'),

    # Issuance
    path('identity/', views.issue_identity, name='issue-identity'),
    path('preset/', views.issue_preset, name='issue-preset'),
    path('bulk/', views.issue_bulk, name='issue-bulk'),

    # GET, DELETE /api/tokens/<value>/
    path('<str:value>/', views.token_detail, name='token-detail'),

    # PATCH /api/tokens/<value>/active/ - Soft enable/disable
    path('<str:value>/active/', views.token_set_active, name='token-set-active'),

    # GET /api/tokens/<value>/image/ - Rendered PNG for printing
    path('<str:value>/image/', views.token_image, name='token-image'),
]
