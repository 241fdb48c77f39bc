from django.contrib import admin

from chat_backend.chats import models


class ChatMembershipInline(admin.TabularInline):
    model = models.ChatMembership
    extra = 0
    raw_id_fields = ["user"]


@admin.register(models.Chat)
class ChatAdmin(admin.ModelAdmin):
    list_display = ["id", "title", "is_group", "created_by", "updated_at"]
    list_filter = ["is_group", "created_at"]
    search_fields = ["title"]
    inlines = [ChatMembershipInline]


@admin.register(models.Message)
class MessageAdmin(admin.ModelAdmin):
    list_display = ["id", "chat", "sender", "message_type", "created_at"]
    list_filter = ["message_type", "created_at"]
    search_fields = ["content"]
    raw_id_fields = ["chat", "sender"]
