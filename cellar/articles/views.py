import logging

from django.conf import settings
from django.db import DatabaseError
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from cellar.core.permissions import IsAdminRole, ReadOnlyOrModerator
from cellar.core.photos import attach_photos, delete_photo, remove_photo_blobs, validate_images, PhotoUploadError
from cellar.sales.access import visible_articles, get_visible_or_404
from cellar.sales.bulk import set_entity_channels
from cellar.sales.serializers import ChannelLinkSerializer, ChannelSetSerializer
from .filters import StandardArticleFilter
from .maintenance import repair_article_channels
from .models import StandardArticle, ArticlePhoto
from .permissions import can_edit_article
from .serializers import (
    StandardArticleListSerializer, StandardArticleSerializer, StandardArticleDetailSerializer,
    ArticlePhotoSerializer, ArticleStatusSerializer,
)

logger = logging.getLogger(__name__)

EDIT_FORBIDDEN = 'Only administrators or the moderator who created this article can modify it.'


def _article_container():
    return settings.ARTICLE_PHOTOS_CONTAINER


def _forbidden(request, article):
    logger.warning(f"User {request.user.username} attempted to modify article {article.pk} without edit rights")
    return Response({'error': EDIT_FORBIDDEN}, status=status.HTTP_403_FORBIDDEN)


# Standard article views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, ReadOnlyOrModerator])
def article_list_create(request):
    """
    List the standard articles visible to the requester or create one.

    Query parameters:
        search: name/description substring
        status, category, tag: narrow the listing
    """
    if request.method == 'GET':
        filterset = StandardArticleFilter(request.query_params, queryset=StandardArticle.objects.all())
        if not filterset.is_valid():
            return Response(filterset.errors, status=status.HTTP_400_BAD_REQUEST)

        def refine(queryset):
            queryset = StandardArticleFilter(request.query_params, queryset=queryset).qs
            return queryset.select_related('category').prefetch_related('tags', 'photos')

        articles = visible_articles(request.user, refine)
        serializer = StandardArticleListSerializer(articles, many=True)
        return Response(serializer.data)

    serializer = StandardArticleSerializer(data=request.data)
    if serializer.is_valid():
        article = serializer.save(created_by=request.user)
        logger.info(f"Article '{article.name}' ({article.pk}) created by {request.user.username}")
        return Response(
            StandardArticleDetailSerializer(article, context={'request': request}).data,
            status=status.HTTP_201_CREATED
        )
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, ReadOnlyOrModerator])
def article_detail(request, pk):
    """Retrieve, update or delete a standard article"""
    article = get_visible_or_404(request.user, 'article', pk)

    if request.method == 'GET':
        serializer = StandardArticleDetailSerializer(article, context={'request': request})
        return Response(serializer.data)

    if not can_edit_article(request.user, article):
        return _forbidden(request, article)

    if request.method in ('PUT', 'PATCH'):
        serializer = StandardArticleSerializer(article, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            article = serializer.save()
            return Response(StandardArticleDetailSerializer(article, context={'request': request}).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        remove_photo_blobs(article.photos.all(), _article_container())
        logger.info(f"Article '{article.name}' ({article.pk}) deleted by {request.user.username}")
        article.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['PATCH'])
@permission_classes([IsAuthenticated, ReadOnlyOrModerator])
def article_status(request, pk):
    """
    Change the status of an article.

    Body:
        {"status": "for_sale" | "accepted" | "sold" | "archived"}
    """
    article = get_visible_or_404(request.user, 'article', pk)
    if not can_edit_article(request.user, article):
        return _forbidden(request, article)

    serializer = ArticleStatusSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    previous = article.status
    article.set_status(serializer.validated_data['status'])
    article.save(update_fields=['status', 'acceptance_date', 'sale_date', 'updated_at'])
    logger.info(f"Article {article.pk} status {previous} -> {article.status} by {request.user.username}")
    return Response(StandardArticleDetailSerializer(article, context={'request': request}).data)


# Photo views
@api_view(['POST'])
@permission_classes([IsAuthenticated, ReadOnlyOrModerator])
def article_photo_upload(request, pk):
    """
    Attach photos to an article.

    Multipart body:
        photos: one or more image files
    """
    article = get_visible_or_404(request.user, 'article', pk)
    if not can_edit_article(request.user, article):
        return _forbidden(request, article)

    files = request.FILES.getlist('photos')
    if not files:
        return Response({'error': 'No photos provided'}, status=status.HTTP_400_BAD_REQUEST)
    errors = validate_images(files)
    if errors:
        return Response({'error': '; '.join(errors)}, status=status.HTTP_400_BAD_REQUEST)

    try:
        attached = attach_photos(article, article.photos, _article_container(), files)
    except PhotoUploadError as e:
        logger.error(f"Photo upload for article {article.pk} stopped after {len(e.attached)} photo(s): {str(e)}")
        return Response({
            'error': 'Photo upload failed',
            'attached': ArticlePhotoSerializer(e.attached, many=True).data,
        }, status=status.HTTP_502_BAD_GATEWAY)
    return Response(ArticlePhotoSerializer(attached, many=True).data, status=status.HTTP_201_CREATED)


@api_view(['DELETE'])
@permission_classes([IsAuthenticated, ReadOnlyOrModerator])
def article_photo_delete(request, pk, photo_id):
    """Delete one photo of an article"""
    article = get_visible_or_404(request.user, 'article', pk)
    if not can_edit_article(request.user, article):
        return _forbidden(request, article)

    photo = get_object_or_404(ArticlePhoto, pk=photo_id, article=article)
    delete_photo(photo, _article_container())
    return Response(status=status.HTTP_204_NO_CONTENT)


# Channel views
@api_view(['GET', 'PUT'])
@permission_classes([IsAuthenticated, ReadOnlyOrModerator])
def article_channels(request, pk):
    """Read or replace the sales channels of one article"""
    article = get_visible_or_404(request.user, 'article', pk)

    if request.method == 'PUT':
        if not can_edit_article(request.user, article):
            return _forbidden(request, article)
        serializer = ChannelSetSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        try:
            set_entity_channels(
                'article', article, [channel.pk for channel in serializer.validated_data['channel_ids']]
            )
        except DatabaseError as e:
            logger.error(f"Failed to replace channels of article {article.pk}: {str(e)}", exc_info=True)
            return Response({'error': 'Channel assignment failed'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    links = article.channel_links.select_related('channel').order_by('channel__name')
    return Response(ChannelLinkSerializer(links, many=True).data)


# Maintenance views
@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def fix_articles(request):
    """
    Delete orphaned article-channel rows and seed the demo articles.

    Body (optional):
        {"seed_demo": true, "dry_run": false}
    """
    seed_demo = request.data.get('seed_demo', True) not in (False, 'false', '0', 0)
    dry_run = request.data.get('dry_run', False) in (True, 'true', '1', 1)
    report = repair_article_channels(seed_demo=seed_demo, dry_run=dry_run)
    if not report['success']:
        return Response(report, status=status.HTTP_400_BAD_REQUEST)
    return Response(report)
