import logging

from django.db import DatabaseError
from rest_framework import serializers

from .bulk import set_entity_channels
from .models import SalesChannel

logger = logging.getLogger(__name__)


class SalesChannelSerializer(serializers.ModelSerializer):
    class Meta:
        model = SalesChannel
        fields = ['id', 'name', 'description', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']


class ChannelLinkSerializer(serializers.Serializer):
    """One row of a wine/article/user channel join table, seen from the entity"""
    id = serializers.IntegerField(source='channel_id', read_only=True)
    name = serializers.CharField(source='channel.name', read_only=True)
    assigned_at = serializers.DateTimeField(read_only=True)


class ChannelSetSerializer(serializers.Serializer):
    """Full replacement of one entity's channels"""
    channel_ids = serializers.PrimaryKeyRelatedField(
        queryset=SalesChannel.objects.all(), many=True, allow_empty=True
    )


class BulkAssignmentSerializer(serializers.Serializer):
    entity_type = serializers.CharField()
    action = serializers.CharField()
    entity_ids = serializers.ListField(child=serializers.IntegerField(), allow_empty=True)
    channel_ids = serializers.ListField(child=serializers.IntegerField(), allow_empty=True)


class ChannelAssignmentMixin(serializers.Serializer):
    """
    Adds a read-only ``channels`` list and a write-only ``channel_ids`` field
    to a wine or article serializer. Channel links are written after the
    entity itself; a failure there is logged and leaves the entity saved.
    """
    entity_type = None

    channels = ChannelLinkSerializer(source='channel_links', many=True, read_only=True)
    channel_ids = serializers.PrimaryKeyRelatedField(
        queryset=SalesChannel.objects.all(), many=True, write_only=True, required=False
    )

    def create(self, validated_data):
        channels = validated_data.pop('channel_ids', None)
        instance = super().create(validated_data)
        if channels:
            self._assign_channels(instance, channels)
        return instance

    def update(self, instance, validated_data):
        channels = validated_data.pop('channel_ids', None)
        instance = super().update(instance, validated_data)
        if channels is not None:
            self._assign_channels(instance, channels)
        return instance

    def _assign_channels(self, instance, channels):
        try:
            set_entity_channels(self.entity_type, instance, [channel.pk for channel in channels])
        except DatabaseError as e:
            logger.error(
                f"Failed to assign channels to {self.entity_type} {instance.pk}: {str(e)}", exc_info=True
            )
