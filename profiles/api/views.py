"""Profiles API views.

Provides the endpoint to retrieve a single profile (by user id) and to update
the owner's own profile. Reading is limited to the owner and store admins.
"""

from django.shortcuts import get_object_or_404
from rest_framework import generics
from rest_framework.permissions import IsAuthenticated
from rest_framework.exceptions import PermissionDenied

from ..models import Profile
from .serializers import ProfileDetailSerializer, ProfilePatchSerializer
from .permissions import IsProfileOwnerOrAdmin


class ProfileView(generics.RetrieveUpdateAPIView):
    """
    API endpoint for retrieving or partially updating a single profile.

    - GET `/api/profile/{pk}/` returns the profile for the given user id (`pk`)
      to its owner or to a store admin.
    - PATCH `/api/profile/{pk}/` updates only the fields provided and is
      restricted to the owner of the profile.

    Notes:
    - On PATCH, if the profile does not exist for the owner yet, a new customer
      profile is lazily created for that user.
    """

    queryset = Profile.objects.select_related("user")
    permission_classes = [IsAuthenticated, IsProfileOwnerOrAdmin]
    http_method_names = ["get", "patch", "head", "options"]

    def get_serializer_class(self):
        """Use the patch serializer for PATCH; the detail serializer otherwise."""
        if self.request.method == "PATCH":
            return ProfilePatchSerializer
        return ProfileDetailSerializer

    def get_object(self):
        """Return the profile by user id, creating the owner's profile on PATCH."""
        user_id = int(self.kwargs["pk"])

        if self.request.method == "PATCH":
            if self.request.user.id != user_id:
                raise PermissionDenied("You are only allowed to update your own profile.")
            obj, _ = Profile.objects.get_or_create(user=self.request.user)
        else:
            obj = get_object_or_404(self.queryset, user_id=user_id)
        self.check_object_permissions(self.request, obj)
        return obj
