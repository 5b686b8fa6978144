# api/urls.py

from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

# Create router and register viewsets
router = DefaultRouter()
router.register(r'donors', views.DonorViewSet, basename='donor')
router.register(r'donations', views.DonationViewSet, basename='donation')
router.register(r'inventory', views.InventoryViewSet, basename='inventory')
router.register(r'blood-requests', views.BloodRequestViewSet, basename='blood-request')
router.register(r'transfusions', views.TransfusionViewSet, basename='transfusion')

app_name = 'api'

urlpatterns = [
    # Router URLs
    path('', include(router.urls)),

    # Custom endpoints
    path('stats/', views.dashboard_stats, name='dashboard-stats'),
    path('compatibility/', views.compatibility, name='compatibility'),
    path('reports/stock/', views.stock_report, name='stock-report'),
]

# Available endpoints:
# GET  /api/donors/                              - List donors (?blood_type=, ?status=, ?eligible=1)
# POST /api/donors/                              - Register a donor
# GET  /api/donors/{id}/donations/               - Donor's donation history
# GET  /api/donors/{id}/eligibility/             - Donor eligibility right now
# GET  /api/donors/for_recipient/?recipient=     - Eligible donors for a recipient
#
# GET  /api/donations/                           - List donations
# POST /api/donations/                           - Record a donation (eligibility checked)
#
# GET  /api/inventory/                           - List units (?status=, ?blood_type=, ?expiring=1)
# POST /api/inventory/                           - Add a unit (bag number and expiry computed)
# POST /api/inventory/{id}/release/              - Quarantine -> available
# POST /api/inventory/{id}/reserve/              - Available -> reserved
# POST /api/inventory/{id}/discard/              - Discard a unit (admin)
# GET  /api/inventory/compatible/?recipient=&component=
#
# GET  /api/blood-requests/                      - List requests (?ranked=1 for priority order)
# POST /api/blood-requests/                      - Create a request
# POST /api/blood-requests/{id}/approve/         - Approve (admin)
# POST /api/blood-requests/{id}/reject/          - Reject with reason (admin)
# POST /api/blood-requests/{id}/cancel/          - Cancel
# GET  /api/blood-requests/{id}/compatible_units/ - Suggested units
# POST /api/blood-requests/{id}/issue/           - Issue units
#
# GET  /api/transfusions/                        - List transfusions
# POST /api/transfusions/                        - Record a transfusion
#
# GET  /api/stats/                               - Dashboard statistics
# GET  /api/compatibility/?blood_type=&component= - Compatibility chart
# GET  /api/reports/stock/                       - Stock matrix report
