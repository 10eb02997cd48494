from django.urls import path
from . import views

app_name = 'scanner'

urlpatterns = [
    # POST /api/scanner/validate/ - Resolve a scan without recording
    path('validate/', views.validate, name='validate'),

    # Redemption
    path('donations/', views.donation_create, name='donation-create'),
    path('participations/', views.participation_create, name='participation-create'),
    path('participations/<uuid:participation_id>/', views.participation_delete, name='participation-delete'),
    path('preset-redemptions/', views.preset_redemption, name='preset-redemption'),

    # Scan sessions
    path('sessions/', views.session_list, name='session-list'),
    path('sessions/<uuid:session_id>/', views.session_detail, name='session-detail'),
    path('sessions/<uuid:session_id>/scan/', views.session_scan, name='session-scan'),
    path('sessions/<uuid:session_id>/submit/', views.session_submit, name='session-submit'),
    path('sessions/<uuid:session_id>/cancel/', views.session_cancel, name='session-cancel'),
]
