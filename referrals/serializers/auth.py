from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import serializers

from referrals.models import User


class LoginSerializer(serializers.Serializer):
    username = serializers.CharField()
    password = serializers.CharField(trim_whitespace=False)

    def validate_username(self, v):
        v = (v or '').strip()
        if not v:
            raise serializers.ValidationError('Username is required')
        return v

    def validate_password(self, v):
        if not v:
            raise serializers.ValidationError('Password is required')
        return v


class RegisterSerializer(serializers.Serializer):
    username = serializers.CharField(min_length=3, max_length=150)
    password = serializers.CharField(write_only=True, trim_whitespace=False)
    name = serializers.CharField(min_length=2, max_length=255)
    email = serializers.EmailField(max_length=254)
    role = serializers.ChoiceField(choices=[c for c, _ in User.ROLE_CHOICES], default=User.ROLE_CLINICIAN)

    def validate_username(self, v):
        if User.objects.filter(username__iexact=v).exists():
            raise serializers.ValidationError('Username already exists')
        return v

    def validate_email(self, v):
        v = v.lower().strip()
        if User.objects.filter(email__iexact=v).exists():
            raise serializers.ValidationError('Email already registered')
        return v

    def validate(self, attrs):
        candidate = User(username=attrs['username'], email=attrs['email'], name=attrs['name'])
        try:
            validate_password(attrs['password'], user=candidate)
        except DjangoValidationError as e:
            raise serializers.ValidationError({'password': e.messages})
        return attrs

    def create(self, validated_data):
        return User.objects.create_user(
            username=validated_data['username'],
            password=validated_data['password'],
            email=validated_data['email'],
            name=validated_data['name'],
            role=validated_data['role'],
        )
