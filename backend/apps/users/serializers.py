from django.contrib.auth import get_user_model
from rest_framework import serializers

User = get_user_model()


class UserSerializer(serializers.ModelSerializer):
    roles = serializers.SerializerMethodField()
    is_super_admin = serializers.BooleanField(read_only=True)

    class Meta:
        model = User
        fields = (
            'id',
            'username',
            'email',
            'first_name',
            'last_name',
            'is_active',
            'date_joined',
            'roles',
            'is_super_admin',
            'deleted_at',
        )
        read_only_fields = ('date_joined', 'deleted_at')

    def get_roles(self, obj):
        return [
            {'id': role.id, 'name': role.name, 'slug': role.slug}
            for role in obj.roles.filter(deleted_at__isnull=True).order_by('name')
        ]


class UserCreateSerializer(serializers.ModelSerializer):
    password = serializers.CharField(write_only=True)

    class Meta:
        model = User
        fields = ('id', 'username', 'email', 'password', 'first_name', 'last_name')

    def create(self, validated_data):
        user = User.objects.create_user(**validated_data)
        return user
