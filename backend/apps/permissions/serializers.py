from django.db import transaction
from django.utils.text import slugify
from rest_framework import serializers
from rest_framework.validators import UniqueValidator

from . import conf
from .exceptions import UnknownAction, UnknownResource
from .models import Permission, Role
from .store import store


def _store_errors(exc):
    if isinstance(exc, UnknownAction):
        return exc.messages
    return [str(exc)]


class RoleSerializer(serializers.ModelSerializer):
    slug = serializers.RegexField(
        r'^[a-z0-9-]+$',
        max_length=255,
        required=False,
        allow_blank=True,
        validators=[UniqueValidator(queryset=Role.all_objects.all())],
    )
    permissions = serializers.ListField(
        child=serializers.CharField(),
        required=False,
        write_only=True,
        help_text='Dotted grants, e.g. ["blog.viewAny", "blog.create"]',
    )
    users_count = serializers.SerializerMethodField()

    class Meta:
        model = Role
        fields = ('id', 'name', 'slug', 'permissions', 'users_count', 'created_at', 'updated_at', 'deleted_at')
        read_only_fields = ('created_at', 'updated_at', 'deleted_at')
        extra_kwargs = {
            'name': {'validators': [UniqueValidator(queryset=Role.all_objects.all())]},
        }

    def get_users_count(self, obj):
        annotated = getattr(obj, 'users_count', None)
        if annotated is not None:
            return annotated
        return obj.user_roles.count()

    def to_representation(self, instance):
        data = super().to_representation(instance)
        data['permissions'] = store.permissions_of(instance)
        return data

    def validate_permissions(self, value):
        try:
            store.validate(value)
        except (UnknownAction, UnknownResource) as exc:
            raise serializers.ValidationError(_store_errors(exc))
        return value

    def validate(self, attrs):
        if not attrs.get('slug') and attrs.get('name'):
            slug = slugify(attrs['name'])
            if Role.all_objects.filter(slug=slug).exclude(pk=getattr(self.instance, 'pk', None)).exists():
                raise serializers.ValidationError({'slug': ['A role with this slug already exists.']})
            attrs['slug'] = slug
        return attrs

    @transaction.atomic
    def create(self, validated_data):
        permissions = validated_data.pop('permissions', None)
        role = Role.objects.create(**validated_data)
        if permissions:
            store.attach(role, permissions)
        return role

    @transaction.atomic
    def update(self, instance, validated_data):
        permissions = validated_data.pop('permissions', None)
        for attr, value in validated_data.items():
            setattr(instance, attr, value)
        instance.save()
        if permissions is not None:
            store.sync(instance, permissions)
        return instance


class PermissionSerializer(serializers.ModelSerializer):
    all_actions = serializers.BooleanField(write_only=True, required=False, default=False)
    others = serializers.CharField(write_only=True, required=False, allow_blank=True)
    actions = serializers.ListField(child=serializers.CharField(), required=False)

    class Meta:
        model = Permission
        fields = ('id', 'resource', 'actions', 'all_actions', 'others', 'created_at', 'updated_at', 'deleted_at')
        read_only_fields = ('created_at', 'updated_at', 'deleted_at')
        extra_kwargs = {
            'resource': {'validators': [UniqueValidator(queryset=Permission.all_objects.all())]},
        }

    def validate(self, attrs):
        all_actions = attrs.pop('all_actions', False)
        others = (attrs.pop('others', '') or '').strip()

        actions = list(attrs.get('actions') or [])
        if all_actions:
            actions = list(conf.get('DEFAULT_ACTIONS'))
        if others:
            actions.append(others)

        if not actions and self.instance is None:
            raise serializers.ValidationError({'actions': ['At least one action is required.']})
        if actions:
            attrs['actions'] = list(dict.fromkeys(actions))
        return attrs

    @transaction.atomic
    def update(self, instance, validated_data):
        instance = super().update(instance, validated_data)
        store.prune(instance)
        return instance


class UserRolesSerializer(serializers.Serializer):
    role_ids = serializers.PrimaryKeyRelatedField(queryset=Role.objects.all(), many=True)
