from rest_framework import serializers

from cellar.catalog.models import Tag
from cellar.catalog.serializers import TagSerializer
from cellar.sales.serializers import ChannelAssignmentMixin
from .models import Wine, WinePhoto, Bottle


WINE_FIELDS = [
    'id', 'name', 'producer', 'appellation', 'region', 'country', 'vintage', 'colour',
    'grape_variety', 'alcohol_degree', 'bottle_volume', 'description',
    'optimal_keep_min', 'optimal_keep_max', 'serving_temperature', 'food_pairing',
    'unit_purchase_price', 'general_comment',
]


class WinePhotoSerializer(serializers.ModelSerializer):
    class Meta:
        model = WinePhoto
        fields = ['id', 'url', 'comment', 'position', 'created_at']
        read_only_fields = ['url', 'created_at']


class BottleSerializer(serializers.ModelSerializer):
    class Meta:
        model = Bottle
        fields = ['id', 'wine', 'code', 'cellar_location', 'entry_date', 'condition',
                  'fill_level', 'status', 'comment', 'created_at', 'updated_at']
        read_only_fields = ['wine', 'created_at', 'updated_at']


class BottleBatchSerializer(serializers.Serializer):
    """Payload for adding one or more bottles of a wine in one go"""
    code_base = serializers.CharField(max_length=90)
    quantity = serializers.IntegerField(min_value=1, max_value=999, default=1)
    cellar_location = serializers.CharField(max_length=255, required=False, allow_blank=True, allow_null=True)
    entry_date = serializers.DateField(required=False, allow_null=True)
    condition = serializers.ChoiceField(choices=Bottle.CONDITION_CHOICES, default='EXCELLENT')
    fill_level = serializers.ChoiceField(choices=Bottle.FILL_LEVEL_CHOICES, default='PLEIN')
    comment = serializers.CharField(required=False, allow_blank=True, allow_null=True)

    def validate_code_base(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError('Bottle code is required.')
        return value

    def bottle_codes(self):
        """``base`` for a single bottle, ``base-001`` .. ``base-NNN`` otherwise"""
        base = self.validated_data['code_base']
        quantity = self.validated_data['quantity']
        if quantity == 1:
            return [base]
        return [f"{base}-{i:03d}" for i in range(1, quantity + 1)]


class WineListSerializer(serializers.ModelSerializer):
    bottle_count = serializers.IntegerField(read_only=True)
    tags = TagSerializer(many=True, read_only=True)
    channels = serializers.SerializerMethodField()
    cover_url = serializers.SerializerMethodField()

    class Meta:
        model = Wine
        fields = WINE_FIELDS + ['bottle_count', 'tags', 'channels', 'cover_url', 'created_at', 'updated_at']

    def get_channels(self, obj):
        return [{'id': link.channel_id, 'name': link.channel.name} for link in obj.channel_links.all()]

    def get_cover_url(self, obj):
        photos = obj.photos.all()
        return photos[0].url if photos else None


class WineSerializer(ChannelAssignmentMixin, serializers.ModelSerializer):
    entity_type = 'wine'

    tags = TagSerializer(many=True, read_only=True)
    tag_ids = serializers.PrimaryKeyRelatedField(
        queryset=Tag.objects.all(), source='tags', many=True, write_only=True, required=False
    )
    created_by = serializers.StringRelatedField(read_only=True)

    class Meta:
        model = Wine
        fields = WINE_FIELDS + ['tags', 'tag_ids', 'channels', 'channel_ids',
                                'created_by', 'created_at', 'updated_at']

    def validate(self, attrs):
        keep_min = attrs.get('optimal_keep_min', getattr(self.instance, 'optimal_keep_min', None))
        keep_max = attrs.get('optimal_keep_max', getattr(self.instance, 'optimal_keep_max', None))
        if keep_min is not None and keep_max is not None and keep_min > keep_max:
            raise serializers.ValidationError({'optimal_keep_max': 'Must be greater than or equal to the minimum.'})
        return attrs


class WineDetailSerializer(WineSerializer):
    photos = WinePhotoSerializer(many=True, read_only=True)
    bottles = BottleSerializer(many=True, read_only=True)

    class Meta(WineSerializer.Meta):
        fields = WineSerializer.Meta.fields + ['photos', 'bottles']
