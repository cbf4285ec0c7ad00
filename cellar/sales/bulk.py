"""
Channel assignment writes: bulk add/remove over a set of entities and a set
of channels, and full replacement of one entity's or one user's channels.

None of these run inside a transaction. Concurrent sessions editing the same
pairs race and the last write wins.
"""
import logging

from .access import ENTITY_TYPES, get_entity_model, get_link_model
from .models import SalesChannel, UserChannel

logger = logging.getLogger(__name__)

ACTIONS = ('add', 'remove')


class BulkAssignmentError(ValueError):
    """Invalid bulk assignment request; nothing has been written"""


def _unique(ids):
    return list(dict.fromkeys(ids))


def _known_channel_ids(channel_ids):
    known = set(SalesChannel.objects.filter(pk__in=channel_ids).values_list('pk', flat=True))
    return [pk for pk in _unique(channel_ids) if pk in known]


def validate_bulk_request(entity_type, entity_ids, channel_ids, action):
    if entity_type not in ENTITY_TYPES:
        raise BulkAssignmentError(f"Unknown entity type '{entity_type}'. Expected one of: {', '.join(ENTITY_TYPES)}")
    if action not in ACTIONS:
        raise BulkAssignmentError(f"Unknown action '{action}'. Expected one of: {', '.join(ACTIONS)}")
    if not entity_ids:
        raise BulkAssignmentError('Select at least one item.')
    if not channel_ids:
        raise BulkAssignmentError('Select at least one sales channel.')

    if action == 'add':
        model = get_entity_model(entity_type)
        known_entities = set(model.objects.filter(pk__in=entity_ids).values_list('pk', flat=True))
        missing = [pk for pk in entity_ids if pk not in known_entities]
        if missing:
            raise BulkAssignmentError(f"Unknown {entity_type} ids: {missing}")
        known_channels = set(SalesChannel.objects.filter(pk__in=channel_ids).values_list('pk', flat=True))
        missing = [pk for pk in channel_ids if pk not in known_channels]
        if missing:
            raise BulkAssignmentError(f"Unknown sales channel ids: {missing}")


def bulk_assign(entity_type, entity_ids, channel_ids, action):
    """
    Add or remove every pair of ``entity_ids`` x ``channel_ids``.

    add: inserts the Cartesian product in one statement; pairs that already
    exist are left untouched.
    remove: deletes every row whose entity is in ``entity_ids`` and whose
    channel is in ``channel_ids``; other rows are untouched.

    Returns:
        {'entity_type', 'action', 'requested_pairs', 'affected'}

    Raises:
        BulkAssignmentError: on invalid input, before any write
    """
    entity_ids = _unique(entity_ids or [])
    channel_ids = _unique(channel_ids or [])
    validate_bulk_request(entity_type, entity_ids, channel_ids, action)

    link_model, field = get_link_model(entity_type)
    pair_filter = {f'{field}_id__in': entity_ids, 'channel_id__in': channel_ids}
    requested_pairs = len(entity_ids) * len(channel_ids)

    if action == 'add':
        existing = link_model.objects.filter(**pair_filter).count()
        link_model.objects.bulk_create(
            [
                link_model(**{f'{field}_id': entity_id, 'channel_id': channel_id})
                for entity_id in entity_ids
                for channel_id in channel_ids
            ],
            ignore_conflicts=True,
        )
        affected = requested_pairs - existing
    else:
        affected, _ = link_model.objects.filter(**pair_filter).delete()

    logger.info(
        f"Bulk {action} of {len(entity_ids)} {entity_type}(s) x {len(channel_ids)} channel(s): "
        f"{affected} row(s) affected"
    )
    return {
        'entity_type': entity_type,
        'action': action,
        'requested_pairs': requested_pairs,
        'affected': affected,
    }


def set_entity_channels(entity_type, entity, channel_ids):
    """Replace the channel set of one wine or article (delete then insert)"""
    link_model, field = get_link_model(entity_type)
    channel_ids = _known_channel_ids(channel_ids)
    link_model.objects.filter(**{field: entity}).delete()
    link_model.objects.bulk_create(
        [link_model(**{field: entity, 'channel_id': channel_id}) for channel_id in channel_ids],
        ignore_conflicts=True,
    )
    return channel_ids


def set_user_channels(user, channel_ids):
    """Replace the channel set of one user (delete then insert)"""
    channel_ids = _known_channel_ids(channel_ids)
    UserChannel.objects.filter(user=user).delete()
    UserChannel.objects.bulk_create(
        [UserChannel(user=user, channel_id=channel_id) for channel_id in channel_ids],
        ignore_conflicts=True,
    )
    return channel_ids


def add_user_channels(user, channel_ids):
    UserChannel.objects.bulk_create(
        [UserChannel(user=user, channel_id=channel_id) for channel_id in _known_channel_ids(channel_ids)],
        ignore_conflicts=True,
    )
