from django.urls import path
from authentication.views import register, login, logout, session_status, sign_in_page

app_name = 'authentication'

urlpatterns = [
    path("", sign_in_page, name="sign_in"),
    path("register/", register, name="register"),
    path("login/", login, name="login"),
    path("logout/", logout, name="logout"),
    path("session/", session_status, name="session"),
]
