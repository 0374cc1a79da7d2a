from rest_framework import permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView
from .models import Profile
from .serializers import ProfileSerializer, UserSerializer


class CurrentUserView(APIView):
    """The signed-in operator with their role and permission table."""
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        user = request.user
        try:
            profile = Profile.objects.select_related('user').get(user=user)
        except Profile.DoesNotExist:
            return Response({
                "user": UserSerializer(user).data,
                "detail": "Profile does not exist"
            }, status=status.HTTP_404_NOT_FOUND)
        return Response({
            "user": UserSerializer(user).data,
            "profile": ProfileSerializer(profile).data
        })

    def patch(self, request):
        """Update the operator's own name, email and church"""
        user = request.user
        serializer = UserSerializer(user, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        profile, _ = Profile.objects.get_or_create(user=user)
        if 'church' in request.data:
            profile.church = request.data.get('church') or ''
            profile.save(update_fields=['church'])
        return Response({
            "user": serializer.data,
            "profile": ProfileSerializer(profile).data
        })
