from django.contrib.auth import authenticate
from rest_framework import serializers

from .models import User, AuditLog
from .rbac import permissions_for_role


class UserSerializer(serializers.ModelSerializer):
    password = serializers.CharField(write_only=True, min_length=8, required=False)
    role_display = serializers.CharField(source='get_role_display', read_only=True)
    agent_id = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = [
            'id', 'name', 'email', 'phone', 'role', 'role_display', 'is_active',
            'agent_id', 'password', 'created_at', 'updated_at'
        ]
        read_only_fields = ['id', 'created_at', 'updated_at']
        extra_kwargs = {
            'password': {'write_only': True},
        }

    def get_agent_id(self, obj):
        agent = obj.agent
        return str(agent.id) if agent else None

    def create(self, validated_data):
        password = validated_data.pop('password', None)
        if not password:
            raise serializers.ValidationError({'password': 'Password is required when creating a user.'})
        return User.objects.create_user(password=password, **validated_data)

    def update(self, instance, validated_data):
        password = validated_data.pop('password', None)
        for attr, value in validated_data.items():
            setattr(instance, attr, value)

        if password:
            instance.set_password(password)

        instance.save()
        return instance


class CurrentUserSerializer(UserSerializer):
    """Current user with the resolved permission list for the role."""
    permissions = serializers.SerializerMethodField()

    class Meta(UserSerializer.Meta):
        fields = UserSerializer.Meta.fields + ['permissions']

    def get_permissions(self, obj):
        return permissions_for_role(obj.role)


class LoginSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField()

    def validate(self, data):
        email = data.get('email')
        password = data.get('password')

        if not (email and password):
            raise serializers.ValidationError('Must include email and password.')

        user = authenticate(email=email, password=password)

        if user:
            if not user.is_active:
                raise serializers.ValidationError('User account is disabled.')
            data['user'] = user
            return data

        existing_user = User.objects.filter(email__iexact=email).first()
        if existing_user is not None and not existing_user.is_active:
            raise serializers.ValidationError('User account is disabled.')
        raise serializers.ValidationError('Invalid email or password.')


class ChangePasswordSerializer(serializers.Serializer):
    old_password = serializers.CharField()
    new_password = serializers.CharField(min_length=8)

    def validate_old_password(self, value):
        user = self.context['request'].user
        if not user.check_password(value):
            raise serializers.ValidationError('Old password is incorrect.')
        return value


class AuditLogSerializer(serializers.ModelSerializer):
    user_name = serializers.CharField(source='user.name', read_only=True, allow_null=True)

    class Meta:
        model = AuditLog
        fields = ['id', 'user', 'user_name', 'action', 'model_name', 'object_id', 'changes', 'timestamp']
        read_only_fields = fields
