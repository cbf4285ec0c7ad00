import logging

from django.db import IntegrityError, DatabaseError
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from cellar.core.permissions import IsAdminRole, ReadOnlyOrAdmin
from cellar.articles.models import StandardArticle
from .access import ENTITY_TYPES, get_entity_model, visible_articles
from .bulk import bulk_assign, BulkAssignmentError
from .models import SalesChannel, ArticleChannel, UserChannel
from .serializers import SalesChannelSerializer, BulkAssignmentSerializer

logger = logging.getLogger(__name__)


# Sales channel views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, ReadOnlyOrAdmin])
def sales_channel_list_create(request):
    """List all sales channels or create a new one (admin)"""
    if request.method == 'GET':
        channels = SalesChannel.objects.all()
        serializer = SalesChannelSerializer(channels, many=True)
        return Response(serializer.data)

    serializer = SalesChannelSerializer(data=request.data)
    if serializer.is_valid():
        try:
            channel = serializer.save()
        except IntegrityError as e:
            logger.error(f"IntegrityError creating sales channel: {str(e)}", exc_info=True)
            return Response({'error': 'A sales channel with this name already exists'}, status=status.HTTP_400_BAD_REQUEST)
        logger.info(f"Sales channel '{channel.name}' created by {request.user.username}")
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, ReadOnlyOrAdmin])
def sales_channel_detail(request, pk):
    """Retrieve, update or delete a sales channel; deleting drops every assignment to it"""
    channel = get_object_or_404(SalesChannel, pk=pk)

    if request.method == 'GET':
        serializer = SalesChannelSerializer(channel)
        return Response(serializer.data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = SalesChannelSerializer(channel, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            try:
                serializer.save()
            except IntegrityError as e:
                logger.error(f"IntegrityError updating sales channel {pk}: {str(e)}", exc_info=True)
                return Response({'error': 'A sales channel with this name already exists'}, status=status.HTTP_400_BAD_REQUEST)
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        logger.info(f"Sales channel '{channel.name}' deleted by {request.user.username}")
        channel.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


# Channel assignment views
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def channel_assignment_list(request):
    """
    Every wine or article with the ids of its channels.

    Query parameters:
        entity_type: 'wine' (default) or 'article'
    """
    entity_type = request.query_params.get('entity_type', 'wine')
    if entity_type not in ENTITY_TYPES:
        return Response({'error': f"entity_type must be one of: {', '.join(ENTITY_TYPES)}"}, status=status.HTTP_400_BAD_REQUEST)

    try:
        entities = get_entity_model(entity_type).objects.prefetch_related('channel_links').order_by('-created_at')
        data = [
            {
                'id': entity.id,
                'name': entity.name,
                'channel_ids': sorted(link.channel_id for link in entity.channel_links.all()),
            }
            for entity in entities
        ]
    except DatabaseError as e:
        logger.error(f"Failed to list {entity_type} channel assignments: {str(e)}", exc_info=True)
        data = []
    return Response(data)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def channel_assignment_bulk(request):
    """
    Add or remove a set of channels on a set of wines or articles.

    Body:
        {"entity_type": "wine"|"article", "action": "add"|"remove",
         "entity_ids": [...], "channel_ids": [...]}
    """
    serializer = BulkAssignmentSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    data = serializer.validated_data
    try:
        result = bulk_assign(data['entity_type'], data['entity_ids'], data['channel_ids'], data['action'])
    except BulkAssignmentError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    except IntegrityError as e:
        logger.error(f"Bulk channel assignment failed: {str(e)}", exc_info=True)
        return Response({'error': 'Channel assignment could not be saved'}, status=status.HTTP_400_BAD_REQUEST)
    return Response(result)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def channel_assignment_diagnostics(request):
    """Channels of the requester, every article-channel row and the articles the requester can see"""
    user_channels = [
        {'id': link.channel_id, 'name': link.channel.name}
        for link in UserChannel.objects.filter(user=request.user).select_related('channel')
    ]

    rows = list(ArticleChannel.objects.select_related('channel').order_by('id'))
    existing = set(
        StandardArticle.objects.filter(pk__in={row.article_id for row in rows}).values_list('pk', flat=True)
    )
    article_channels = [
        {
            'id': row.id,
            'article_id': row.article_id,
            'channel_id': row.channel_id,
            'channel_name': row.channel.name,
            'article_exists': row.article_id in existing,
            'assigned_at': row.assigned_at,
        }
        for row in rows
    ]

    articles = [
        {'id': article.id, 'name': article.name, 'status': article.status}
        for article in visible_articles(request.user)
    ]

    return Response({
        'user_channels': user_channels,
        'article_channels': article_channels,
        'orphaned_count': sum(1 for row in article_channels if not row['article_exists']),
        'visible_articles': articles,
    })
