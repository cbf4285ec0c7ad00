from rest_framework import serializers

from cellar.catalog.models import Category, Tag
from cellar.catalog.serializers import CategorySerializer, TagSerializer
from cellar.sales.serializers import ChannelAssignmentMixin
from .models import StandardArticle, ArticlePhoto
from .permissions import can_edit_article


ARTICLE_FIELDS = [
    'id', 'name', 'description', 'purchase_price', 'sale_price', 'quantity',
    'status', 'acceptance_date', 'sale_date',
]


class ArticlePhotoSerializer(serializers.ModelSerializer):
    class Meta:
        model = ArticlePhoto
        fields = ['id', 'url', 'position', 'created_at']
        read_only_fields = ['url', 'created_at']


class StandardArticleListSerializer(serializers.ModelSerializer):
    category = CategorySerializer(read_only=True)
    tags = TagSerializer(many=True, read_only=True)
    channels = serializers.SerializerMethodField()
    cover_url = serializers.SerializerMethodField()

    class Meta:
        model = StandardArticle
        fields = ARTICLE_FIELDS + ['category', 'tags', 'channels', 'cover_url', 'created_by', 'created_at']

    def get_channels(self, obj):
        return [{'id': link.channel_id, 'name': link.channel.name} for link in obj.channel_links.all()]

    def get_cover_url(self, obj):
        photos = obj.photos.all()
        return photos[0].url if photos else None


class StandardArticleSerializer(ChannelAssignmentMixin, serializers.ModelSerializer):
    entity_type = 'article'

    category = CategorySerializer(read_only=True)
    category_id = serializers.PrimaryKeyRelatedField(
        queryset=Category.objects.all(), source='category', write_only=True, required=False, allow_null=True
    )
    tags = TagSerializer(many=True, read_only=True)
    tag_ids = serializers.PrimaryKeyRelatedField(
        queryset=Tag.objects.all(), source='tags', many=True, write_only=True, required=False
    )
    created_by = serializers.StringRelatedField(read_only=True)

    class Meta:
        model = StandardArticle
        fields = ARTICLE_FIELDS + ['category', 'category_id', 'tags', 'tag_ids', 'channels', 'channel_ids',
                                   'created_by', 'created_at', 'updated_at']
        # Dates follow the status, see StandardArticle.set_status
        read_only_fields = ['acceptance_date', 'sale_date']


class StandardArticleDetailSerializer(StandardArticleSerializer):
    photos = ArticlePhotoSerializer(many=True, read_only=True)
    can_edit = serializers.SerializerMethodField()

    class Meta(StandardArticleSerializer.Meta):
        fields = StandardArticleSerializer.Meta.fields + ['photos', 'can_edit']

    def get_can_edit(self, obj):
        request = self.context.get('request')
        return bool(request) and can_edit_article(request.user, obj)


class ArticleStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=StandardArticle.STATUS_CHOICES)
