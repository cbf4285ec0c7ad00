from rest_framework import serializers
from .models import User


class UserSerializer(serializers.ModelSerializer):
    channel_ids = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ['id', 'username', 'email', 'full_name', 'role', 'email_confirmed',
                  'is_active', 'channel_ids', 'created_at', 'updated_at']
        read_only_fields = fields

    def get_channel_ids(self, obj):
        return sorted(link.channel_id for link in obj.channel_links.all())


class AdminUserCreateSerializer(serializers.Serializer):
    """Payload of the admin create-user endpoint"""
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, min_length=6)
    full_name = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=255)
    role = serializers.ChoiceField(choices=User.ROLE_CHOICES, default='standard')
    channel_ids = serializers.ListField(child=serializers.IntegerField(), required=False, default=list)

    def validate_email(self, value):
        if User.objects.filter(email__iexact=value).exists():
            raise serializers.ValidationError('A user with this email already exists.')
        return value.lower()

    def create(self, validated_data):
        validated_data.pop('channel_ids', None)
        password = validated_data.pop('password')
        email = validated_data.pop('email')
        user = User(
            username=email,
            email=email,
            is_active=True,
            email_confirmed=True,
            **validated_data
        )
        user.set_password(password)
        user.save()
        return user


class AdminUserUpdateSerializer(serializers.Serializer):
    """Payload of the admin update-user endpoint; every field but user_id optional"""
    user_id = serializers.IntegerField()
    email = serializers.EmailField(required=False)
    password = serializers.CharField(write_only=True, min_length=6, required=False)
    full_name = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=255)
    role = serializers.ChoiceField(choices=User.ROLE_CHOICES, required=False)
    channel_ids = serializers.ListField(child=serializers.IntegerField(), required=False)

    def validate(self, attrs):
        email = attrs.get('email')
        if email and User.objects.filter(email__iexact=email).exclude(pk=attrs['user_id']).exists():
            raise serializers.ValidationError({'email': 'A user with this email already exists.'})
        return attrs

    def update(self, instance, validated_data):
        if 'email' in validated_data:
            instance.email = validated_data['email'].lower()
            instance.username = instance.email
        if 'password' in validated_data:
            instance.set_password(validated_data['password'])
        if 'full_name' in validated_data:
            instance.full_name = validated_data['full_name']
        if 'role' in validated_data:
            instance.role = validated_data['role']
        instance.save()
        return instance


class AdminUserConfirmSerializer(serializers.Serializer):
    user_id = serializers.IntegerField()
