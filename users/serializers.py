from rest_framework import serializers
from django.contrib.auth import get_user_model
from .models import Profile
from .permissions import ResourcePermission

User = get_user_model()


class UserSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ['id', 'username', 'email', 'first_name', 'last_name', 'is_superuser']
        read_only_fields = ['id', 'is_superuser']


class ProfileSerializer(serializers.ModelSerializer):
    user = UserSerializer(read_only=True)
    permissions = serializers.SerializerMethodField()

    class Meta:
        model = Profile
        fields = ['id', 'user', 'role', 'church', 'permissions']
        read_only_fields = ['id', 'role']

    def get_permissions(self, obj):
        if obj.user.is_superuser:
            return ResourcePermission.table_for('admin')
        return ResourcePermission.table_for(obj.role)
