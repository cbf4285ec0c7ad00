import logging

from django.conf import settings
from django.db import IntegrityError, DatabaseError, transaction
from django.db.models import Count
from django.shortcuts import get_object_or_404
from django.http import Http404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from cellar.core.permissions import ReadOnlyOrModerator
from cellar.core.photos import attach_photos, delete_photo, remove_photo_blobs, validate_images, PhotoUploadError
from cellar.sales.access import visible_wines, get_visible_or_404, is_visible
from cellar.sales.bulk import set_entity_channels
from cellar.sales.serializers import ChannelLinkSerializer, ChannelSetSerializer
from .filters import WineFilter
from .models import Wine, WinePhoto, Bottle
from .serializers import (
    WineListSerializer, WineSerializer, WineDetailSerializer,
    WinePhotoSerializer, BottleSerializer, BottleBatchSerializer,
)

logger = logging.getLogger(__name__)

DUPLICATE_BOTTLE_CODE = 'A bottle code already exists. Use a unique code.'


def _wine_container():
    return settings.WINE_PHOTOS_CONTAINER


# Wine views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, ReadOnlyOrModerator])
def wine_list_create(request):
    """
    List the wines visible to the requester or create a new wine.

    Query parameters:
        search: name/producer substring or exact vintage
        colour, tag, bottle_status: narrow the listing
    """
    if request.method == 'GET':
        filterset = WineFilter(request.query_params, queryset=Wine.objects.all())
        if not filterset.is_valid():
            return Response(filterset.errors, status=status.HTTP_400_BAD_REQUEST)

        def refine(queryset):
            # bottle_count covers every bottle of the wine, whatever bottle_status selects
            queryset = queryset.annotate(bottle_count=Count('bottles', distinct=True))
            queryset = WineFilter(request.query_params, queryset=queryset).qs
            return queryset.prefetch_related('tags', 'photos')

        wines = visible_wines(request.user, refine)
        serializer = WineListSerializer(wines, many=True)
        return Response(serializer.data)

    serializer = WineSerializer(data=request.data)
    if serializer.is_valid():
        wine = serializer.save(created_by=request.user)
        logger.info(f"Wine '{wine.name}' ({wine.pk}) created by {request.user.username}")
        return Response(WineDetailSerializer(wine).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, ReadOnlyOrModerator])
def wine_detail(request, pk):
    """Retrieve, update or delete a wine"""
    wine = get_visible_or_404(request.user, 'wine', pk)

    if request.method == 'GET':
        serializer = WineDetailSerializer(wine)
        return Response(serializer.data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = WineSerializer(wine, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            wine = serializer.save()
            return Response(WineDetailSerializer(wine).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        # Blob removal is best effort; rows go regardless
        remove_photo_blobs(wine.photos.all(), _wine_container())
        logger.info(f"Wine '{wine.name}' ({wine.pk}) deleted by {request.user.username}")
        wine.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


# Photo views
@api_view(['POST'])
@permission_classes([IsAuthenticated, ReadOnlyOrModerator])
def wine_photo_upload(request, pk):
    """
    Attach photos to a wine.

    Multipart body:
        photos: one or more image files
        comments: optional, one per photo in the same order
    """
    wine = get_visible_or_404(request.user, 'wine', pk)

    files = request.FILES.getlist('photos')
    if not files:
        return Response({'error': 'No photos provided'}, status=status.HTTP_400_BAD_REQUEST)
    errors = validate_images(files)
    if errors:
        return Response({'error': '; '.join(errors)}, status=status.HTTP_400_BAD_REQUEST)

    comments = request.data.getlist('comments') if hasattr(request.data, 'getlist') else []
    try:
        attached = attach_photos(
            wine, wine.photos, _wine_container(), files, comments=comments, forced_extension='jpg'
        )
    except PhotoUploadError as e:
        logger.error(f"Photo upload for wine {wine.pk} stopped after {len(e.attached)} photo(s): {str(e)}")
        return Response({
            'error': 'Photo upload failed',
            'attached': WinePhotoSerializer(e.attached, many=True).data,
        }, status=status.HTTP_502_BAD_GATEWAY)
    return Response(WinePhotoSerializer(attached, many=True).data, status=status.HTTP_201_CREATED)


@api_view(['PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, ReadOnlyOrModerator])
def wine_photo_detail(request, pk, photo_id):
    """Edit a photo's comment or position, or delete it"""
    wine = get_visible_or_404(request.user, 'wine', pk)
    photo = get_object_or_404(WinePhoto, pk=photo_id, wine=wine)

    if request.method == 'PATCH':
        serializer = WinePhotoSerializer(photo, data=request.data, partial=True)
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    delete_photo(photo, _wine_container())
    return Response(status=status.HTTP_204_NO_CONTENT)


# Bottle views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, ReadOnlyOrModerator])
def wine_bottles(request, pk):
    """List the bottles of a wine or add a batch of bottles"""
    wine = get_visible_or_404(request.user, 'wine', pk)

    if request.method == 'GET':
        serializer = BottleSerializer(wine.bottles.all(), many=True)
        return Response(serializer.data)

    serializer = BottleBatchSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    data = serializer.validated_data
    entry_date = data.get('entry_date')
    bottles = [
        Bottle(
            wine=wine,
            code=code,
            cellar_location=data.get('cellar_location') or None,
            entry_date=entry_date,
            condition=data['condition'],
            fill_level=data['fill_level'],
            status='DISPONIBLE',
            comment=data.get('comment') or None,
        )
        for code in serializer.bottle_codes()
    ]
    try:
        with transaction.atomic():
            created = Bottle.objects.bulk_create(bottles)
    except IntegrityError as e:
        logger.warning(f"Duplicate bottle code for wine {wine.pk}: {str(e)}")
        return Response({'error': DUPLICATE_BOTTLE_CODE}, status=status.HTTP_400_BAD_REQUEST)

    logger.info(f"{len(created)} bottle(s) added to wine {wine.pk} by {request.user.username}")
    created = Bottle.objects.filter(wine=wine, code__in=[b.code for b in bottles])
    return Response(BottleSerializer(created, many=True).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, ReadOnlyOrModerator])
def bottle_detail(request, pk):
    """Retrieve, update (status, condition, location...) or delete a bottle"""
    bottle = get_object_or_404(Bottle.objects.select_related('wine'), pk=pk)
    if not is_visible(request.user, bottle.wine):
        raise Http404('No bottle matches the given query.')

    if request.method == 'GET':
        return Response(BottleSerializer(bottle).data)
    elif request.method == 'PATCH':
        serializer = BottleSerializer(bottle, data=request.data, partial=True)
        if serializer.is_valid():
            try:
                with transaction.atomic():
                    serializer.save()
            except IntegrityError:
                return Response({'error': DUPLICATE_BOTTLE_CODE}, status=status.HTTP_400_BAD_REQUEST)
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        bottle.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


# Channel views
@api_view(['GET', 'PUT'])
@permission_classes([IsAuthenticated, ReadOnlyOrModerator])
def wine_channels(request, pk):
    """Read or replace the sales channels of one wine"""
    wine = get_visible_or_404(request.user, 'wine', pk)

    if request.method == 'PUT':
        serializer = ChannelSetSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        try:
            set_entity_channels('wine', wine, [channel.pk for channel in serializer.validated_data['channel_ids']])
        except DatabaseError as e:
            logger.error(f"Failed to replace channels of wine {wine.pk}: {str(e)}", exc_info=True)
            return Response({'error': 'Channel assignment failed'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    links = wine.channel_links.select_related('channel').order_by('channel__name')
    return Response(ChannelLinkSerializer(links, many=True).data)
