from django.urls import path

from . import views

app_name = 'saas_admin'

urlpatterns = [
    path('', views.dashboard_view, name='dashboard'),
    path('sign-in/', views.sign_in_view, name='sign_in'),
    path('sign-out/', views.sign_out_view, name='sign_out'),
    path('profile/', views.profile_view, name='profile'),
    path('shell/sidebar/', views.sidebar_toggle_view, name='sidebar_toggle'),
    path('shell/viewport/', views.viewport_view, name='viewport'),
    path('<slug:entity>/', views.entity_list_view, name='entity_list'),
    path('<slug:entity>/new/', views.entity_create_view, name='entity_create'),
    path('<slug:entity>/<str:record_id>/edit/', views.entity_edit_view, name='entity_edit'),
    path('<slug:entity>/<str:record_id>/delete/', views.entity_delete_view, name='entity_delete'),
]
