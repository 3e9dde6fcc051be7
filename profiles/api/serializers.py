"""Profiles API serializers.

Contains serializers for reading a profile and for partially updating the
caller's own profile. The role is never writable through the API. String
fields never return `null`, but empty strings instead.
"""

from rest_framework import serializers
from ..models import Profile


# ------------------------------ helpers ------------------------------

def _apply_user_updates(user, data: dict):
    for attr, val in data.items():
        setattr(user, attr, val if val is not None else "")
    if data:
        user.save(update_fields=list(data.keys()))


def _coalesce_fields(data: dict, keys: set):
    for k in keys:
        if data.get(k) is None:
            data[k] = ""


# ------------------------------ serializers ------------------------------

class ProfileDetailSerializer(serializers.ModelSerializer):
    """Read-only detail serializer (coalesces selected string fields to '')."""

    username = serializers.CharField(source="user.username", read_only=True)
    first_name = serializers.CharField(
        source="user.first_name", read_only=True, allow_blank=True
    )
    last_name = serializers.CharField(
        source="user.last_name", read_only=True, allow_blank=True
    )
    email = serializers.EmailField(source="user.email", read_only=True)

    class Meta:
        model = Profile
        fields = [
            "user",
            "username",
            "first_name",
            "last_name",
            "email",
            "role",
            "phone",
            "address",
            "created_at",
        ]
        read_only_fields = fields

    _no_null = {"first_name", "last_name", "phone", "address"}

    def to_representation(self, instance: Profile):
        data = super().to_representation(instance)
        _coalesce_fields(data, self._no_null)
        return data


class ProfilePatchSerializer(serializers.ModelSerializer):
    """Partial update of the caller's own profile and name/e-mail on the user."""

    first_name = serializers.CharField(
        source="user.first_name", required=False, allow_blank=True, allow_null=True
    )
    last_name = serializers.CharField(
        source="user.last_name", required=False, allow_blank=True, allow_null=True
    )
    email = serializers.EmailField(
        source="user.email", required=False, allow_blank=True, allow_null=True
    )
    username = serializers.CharField(source="user.username", read_only=True)

    class Meta:
        model = Profile
        fields = [
            "user",
            "username",
            "first_name",
            "last_name",
            "email",
            "role",
            "phone",
            "address",
            "created_at",
        ]
        read_only_fields = ["user", "username", "role", "created_at"]
        extra_kwargs = {
            "phone": {"required": False, "allow_blank": True, "allow_null": True},
            "address": {"required": False, "allow_blank": True, "allow_null": True},
        }

    def update(self, instance: Profile, validated_data):
        """Handle nested user fields and normalize None -> ''."""
        _apply_user_updates(instance.user, validated_data.pop("user", {}))
        for attr, val in validated_data.items():
            setattr(instance, attr, val if val is not None else "")
        instance.save()
        return instance

    _no_null = {"first_name", "last_name", "phone", "address"}

    def to_representation(self, instance: Profile):
        data = super().to_representation(instance)
        _coalesce_fields(data, self._no_null)
        return data
