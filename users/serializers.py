from rest_framework import serializers
from stores.utils import sanitize_text
from .models import User


class UserSerializer(serializers.ModelSerializer):
    """Serializer for User model"""

    class Meta:
        model = User
        fields = ['id', 'email', 'name', 'date_joined', 'last_login']
        read_only_fields = fields


class UserMinimalSerializer(serializers.ModelSerializer):
    """Minimal serializer for User (used in nested representations)"""

    class Meta:
        model = User
        fields = ['id', 'name']


class RegisterSerializer(serializers.Serializer):
    """
    Validates a registration submission. Used by both the JSON endpoint and
    the server-rendered register form.
    """
    name = serializers.CharField(
        max_length=255,
        error_messages={
            'required': 'You must supply a name!',
            'blank': 'You must supply a name!',
        }
    )
    email = serializers.EmailField(
        error_messages={
            'invalid': 'That email is not valid!',
            'required': 'That email is not valid!',
            'blank': 'That email is not valid!',
        }
    )
    password = serializers.CharField(
        write_only=True,
        trim_whitespace=False,
        error_messages={
            'required': 'Password can not be blank!',
            'blank': 'Password can not be blank!',
        }
    )
    password_confirm = serializers.CharField(
        write_only=True,
        trim_whitespace=False,
        error_messages={
            'required': 'You must confirm the password!',
            'blank': 'You must confirm the password!',
        }
    )

    def validate_name(self, value):
        value = sanitize_text(value)
        if not value:
            raise serializers.ValidationError('You must supply a name!')
        return value

    def validate_email(self, value):
        email = User.objects.normalize_email(value)
        if User.objects.filter(email=email).exists():
            raise serializers.ValidationError('A user with that email already exists.')
        return email

    def validate(self, attrs):
        if attrs['password'] != attrs['password_confirm']:
            raise serializers.ValidationError(
                {'password_confirm': 'Ooopss! Your passwords do not match!'}
            )
        return attrs

    def create(self, validated_data):
        return User.objects.create_user(
            email=validated_data['email'],
            password=validated_data['password'],
            name=validated_data['name'],
        )


class LoginSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, trim_whitespace=False)


def flatten_errors(errors):
    """Flatten a DRF error dict into a list of messages for flashing."""
    messages = []
    for field_errors in errors.values():
        if isinstance(field_errors, (list, tuple)):
            messages.extend(str(e) for e in field_errors)
        else:
            messages.append(str(field_errors))
    return messages
