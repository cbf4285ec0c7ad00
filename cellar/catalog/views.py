import logging

from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from cellar.core.permissions import ReadOnlyOrAdmin, ReadOnlyOrModerator, is_admin
from .models import Category, Tag
from .serializers import CategorySerializer, TagSerializer

logger = logging.getLogger(__name__)


# Category views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, ReadOnlyOrAdmin])
def category_list_create(request):
    """List all categories or create a new category"""
    if request.method == 'GET':
        categories = Category.objects.all()
        serializer = CategorySerializer(categories, many=True)
        return Response(serializer.data)
    else:
        serializer = CategorySerializer(data=request.data)
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, ReadOnlyOrAdmin])
def category_detail(request, pk):
    """Retrieve, update or delete a category; its articles become uncategorized"""
    category = get_object_or_404(Category, pk=pk)

    if request.method == 'GET':
        serializer = CategorySerializer(category)
        return Response(serializer.data)
    elif request.method == 'PUT':
        serializer = CategorySerializer(category, data=request.data)
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    elif request.method == 'PATCH':
        serializer = CategorySerializer(category, data=request.data, partial=True)
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        category.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


# Tag views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, ReadOnlyOrModerator])
def tag_list_create(request):
    """List all tags or create a new tag (moderator)"""
    if request.method == 'GET':
        tags = Tag.objects.all()
        serializer = TagSerializer(tags, many=True)
        return Response(serializer.data)
    else:
        serializer = TagSerializer(data=request.data)
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, ReadOnlyOrModerator])
def tag_detail(request, pk):
    """Retrieve or update a tag (moderator); deleting requires the admin role"""
    tag = get_object_or_404(Tag, pk=pk)

    if request.method == 'GET':
        serializer = TagSerializer(tag)
        return Response(serializer.data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = TagSerializer(tag, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        if not is_admin(request.user):
            logger.warning(f"User {request.user.username} attempted to delete tag {tag.pk} without admin role")
            return Response({'error': 'Only administrators can delete tags'}, status=status.HTTP_403_FORBIDDEN)
        tag.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)
