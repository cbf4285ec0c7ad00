from cellar.core.permissions import is_admin, is_moderator_or_admin


def can_edit_article(user, article):
    """Admins edit any article; moderators only the ones they created"""
    if is_admin(user):
        return True
    return is_moderator_or_admin(user) and article.created_by_id == user.pk
