from django.urls import path
from . import views

app_name = "chat"

urlpatterns = [
    path("session/", views.session_state, name="session"),
    path("send/", views.send, name="send"),
    path("new/", views.new_chat, name="new"),

    # Sidebar history
    path("conversations/", views.conversations, name="conversations"),
    path("conversations/<uuid:conversation_id>/", views.conversation_detail, name="conversation_detail"),
    path("conversations/<uuid:conversation_id>/select/", views.select, name="select"),

    path("messages/<str:message_id>/animated/", views.message_animated, name="message_animated"),
    path("completion/", views.completion, name="completion"),
]
