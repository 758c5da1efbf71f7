from django.urls import path
from . import views

app_name = "accounts"

urlpatterns = [
    path("auth/login", views.login_view, name="login"),
    path("auth/logout", views.logout_view, name="logout"),
    path("roles", views.roles_collection, name="roles"),
    path("roles/<int:pk>", views.role_detail, name="role_detail"),
    path("roles/<int:pk>/users/count", views.role_users_count, name="role_users_count"),
    path("users", views.users_collection, name="users"),
    path("users/me", views.me, name="me"),
    path("users/<int:pk>", views.user_detail, name="user_detail"),
    path("users/<int:pk>/roles", views.user_roles, name="user_roles"),
]
