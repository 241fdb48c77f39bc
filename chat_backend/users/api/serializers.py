import re

from rest_framework import serializers

from chat_backend.users.models import User

PASSWORD_PATTERN = re.compile(
    r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@$!%*?&])[A-Za-z\d@$!%*?&]{8,16}$",
)
PASSWORD_RULES = (
    "Password must be 8-16 chars, include uppercase, lowercase, number & "
    "special char."
)
UPDATABLE_FIELDS = ("name", "email", "dob", "password")


def validate_password_strength(value: str) -> str:
    if not PASSWORD_PATTERN.match(value):
        raise serializers.ValidationError(PASSWORD_RULES)
    return value


class UserSerializer(serializers.ModelSerializer[User]):
    class Meta:
        model = User
        fields = ["id", "name", "email", "dob", "created_at"]
        read_only_fields = ["id", "created_at"]


class RegisterSerializer(serializers.ModelSerializer[User]):
    name = serializers.CharField(max_length=255)
    dob = serializers.DateField()
    password = serializers.CharField(
        write_only=True,
        validators=[validate_password_strength],
    )

    class Meta:
        model = User
        fields = ["id", "name", "email", "dob", "password"]
        read_only_fields = ["id"]

    def validate_email(self, value: str) -> str:
        if User.objects.filter(email__iexact=value).exists():
            msg = "A user with this email already exists."
            raise serializers.ValidationError(msg)
        return value

    def create(self, validated_data):
        password = validated_data.pop("password")
        return User.objects.create_user(password=password, **validated_data)


class UserUpdateSerializer(serializers.ModelSerializer[User]):
    password = serializers.CharField(
        write_only=True,
        required=False,
        validators=[validate_password_strength],
    )

    class Meta:
        model = User
        fields = list(UPDATABLE_FIELDS)

    def validate_email(self, value: str) -> str:
        qs = User.objects.filter(email__iexact=value)
        if self.instance is not None:
            qs = qs.exclude(pk=self.instance.pk)
        if qs.exists():
            msg = "A user with this email already exists."
            raise serializers.ValidationError(msg)
        return value

    def update(self, instance, validated_data):
        password = validated_data.pop("password", None)
        for attr, value in validated_data.items():
            setattr(instance, attr, value)
        if password:
            instance.set_password(password)
        instance.save()
        return instance
