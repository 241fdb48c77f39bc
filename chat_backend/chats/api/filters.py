import django_filters

from chat_backend.chats.models import Message


class MessageFilter(django_filters.FilterSet):
    before = django_filters.IsoDateTimeFilter(field_name="created_at", lookup_expr="lt")

    class Meta:
        model = Message
        fields = ["before", "message_type"]
