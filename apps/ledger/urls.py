from django.urls import path
from . import views

app_name = 'ledger'

urlpatterns = [
    # GET /api/ledger/groups/?type=FUND|VOLUNTEER - Group directory
    path('groups/', views.group_list, name='group-list'),

    # GET /api/ledger/donors/?search=&grade= - Donor directory
    path('donors/', views.donor_list, name='donor-list'),
]
