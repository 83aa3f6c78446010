from django.contrib.contenttypes.models import ContentType
from django.core import serializers

from .models import Activity


def log_activity(user, action_type, instance, description=None):
    """Record an audit trail entry for a change made through the API.

    Deleted rows are serialized into ``object_repr`` so the audit trail keeps
    a copy of what was removed.
    """
    if description is None:
        description = f"{instance.__class__.__name__} {instance} was {action_type}."
    object_repr = ''

    if action_type == 'deleted':
        object_repr = serializers.serialize('json', [instance])

    Activity.objects.create(
        user=user,
        action_type=action_type,
        description=description[:255],
        content_type=ContentType.objects.get_for_model(instance),
        object_id=str(instance.pk),
        object_repr=object_repr,
    )
