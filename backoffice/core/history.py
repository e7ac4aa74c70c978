"""
Snapshot history and rollback for tracked records.

Before a tracked record is changed, the values of its tracked fields are
stored as a JSON snapshot row. Any stored snapshot can later be copied back
onto the live record; the rollback itself is recorded as a new history row
so the trail stays append-only.

Usage:
    office_history = SnapshotHistory(OfficeHistory, 'office', OFFICE_TRACKED_FIELDS)
    office, changed = office_history.save_serializer(serializer, request.user)
    office, entry = office_history.rollback(office, history_id, request.user)
"""
import logging
from datetime import date, datetime
from decimal import Decimal, InvalidOperation

from django.db import IntegrityError, models, transaction
from django.utils.dateparse import parse_date, parse_datetime
from rest_framework import status
from rest_framework.response import Response

from .serializers import HistoryEntrySerializer
from .utils import create_audit_log

logger = logging.getLogger(__name__)


class HistoryEntryNotFound(Exception):
    """The requested history entry does not exist for this record"""


class RollbackConflict(Exception):
    """The snapshot cannot be restored onto the current data"""


def to_json_value(value):
    """Convert a model field value into something JSONField can store"""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, models.Model):
        return value.pk
    if isinstance(value, (list, tuple)):
        return [to_json_value(v) for v in value]
    if isinstance(value, dict):
        return {k: to_json_value(v) for k, v in value.items()}
    return value


def from_json_value(field, value):
    """Inverse of to_json_value for a concrete model field"""
    if value is None:
        if not field.null and field.has_default():
            return field.get_default()
        return None
    # DateTimeField subclasses DateField, so it has to be checked first
    if isinstance(field, models.DateTimeField):
        return parse_datetime(value) if isinstance(value, str) else value
    if isinstance(field, models.DateField):
        return parse_date(value[:10]) if isinstance(value, str) else value
    if isinstance(field, models.DecimalField):
        try:
            return Decimal(str(value))
        except InvalidOperation:
            logger.warning(f"Snapshot value {value!r} for {field.name} is not a decimal")
            return field.get_default() if field.has_default() else None
    return value


def _comparable(value):
    if isinstance(value, models.Model):
        return value.pk
    if isinstance(value, datetime):
        return value.replace(microsecond=0)
    return value


def record_history(history_model, owner_field, owner, action, snapshot, changed_fields, user):
    """Insert a history row for owner"""
    return history_model.objects.create(
        **{owner_field: owner},
        snapshot=snapshot,
        changed_fields=list(changed_fields),
        action=action,
        changed_by=user if user is not None and user.is_authenticated else None,
    )


class SnapshotHistory:
    """History tracker bound to one history model and a list of tracked fields"""

    def __init__(self, history_model, owner_field, fields):
        self.history_model = history_model
        self.owner_field = owner_field
        self.fields = list(fields)

    def _model_field(self, instance, name):
        return instance._meta.get_field(name)

    def snapshot(self, instance):
        """JSON-safe dict of tracked values, foreign keys stored by their *_id attribute"""
        data = {}
        for name in self.fields:
            field = self._model_field(instance, name)
            data[field.attname] = to_json_value(getattr(instance, field.attname))
        return data

    def changed_fields(self, instance, data):
        """Tracked field names in data whose value differs from the instance"""
        changed = []
        for name in self.fields:
            if name not in data:
                continue
            field = self._model_field(instance, name)
            current = getattr(instance, field.attname)
            if _comparable(current) != _comparable(data[name]):
                changed.append(name)
        return changed

    def _record_update(self, instance, data, user):
        changed = self.changed_fields(instance, data)
        # Anonymous changes (management commands, data fixes) are not tracked
        if changed and user is not None and user.is_authenticated:
            record_history(
                self.history_model, self.owner_field, instance,
                self.history_model.ACTION_UPDATE, self.snapshot(instance), changed, user,
            )
        return changed

    def update(self, instance, data, user):
        """Snapshot instance, then apply data (a field name -> value mapping) and save"""
        with transaction.atomic():
            self._record_update(instance, data, user)
            for name, value in data.items():
                setattr(instance, name, value)
            instance.save()
        return instance

    def save_serializer(self, serializer, user, **extra):
        """
        Save a validated update serializer, snapshotting the instance first.

        Returns (instance, changed_fields). No history row is written when no
        tracked field changes.
        """
        instance = serializer.instance
        incoming = dict(serializer.validated_data)
        incoming.update(extra)
        with transaction.atomic():
            changed = self._record_update(instance, incoming, user)
            instance = serializer.save(**extra)
        return instance, changed

    def entries(self, instance):
        return (
            self.history_model.objects
            .filter(**{self.owner_field: instance})
            .select_related('changed_by')
            .order_by('-changed_at', '-id')
        )

    def apply(self, instance, snapshot):
        """
        Copy tracked values from snapshot onto instance (does not save).

        References to rows deleted since the snapshot was taken are cleared
        on nullable relations; RollbackConflict is raised for required ones.
        """
        for name in self.fields:
            field = self._model_field(instance, name)
            if field.attname in snapshot:
                value = from_json_value(field, snapshot[field.attname])
            elif name in snapshot:
                value = from_json_value(field, snapshot[name])
            else:
                continue
            if field.is_relation and value is not None:
                value = self._existing_related_id(field, value)
            setattr(instance, field.attname, value)

    def _existing_related_id(self, field, value):
        if field.related_model._base_manager.filter(pk=value).exists():
            return value
        if field.null:
            logger.warning(f"Snapshot {field.name} {value} no longer exists, restoring as empty")
            return None
        raise RollbackConflict(f"Cannot restore {field.name}: {field.related_model._meta.verbose_name} {value} no longer exists")

    def rollback(self, instance, history_id, user):
        """
        Restore instance to the snapshot held by history entry history_id.

        Raises HistoryEntryNotFound when the entry belongs to another record.
        Returns (instance, entry).
        """
        entry = self.history_model.objects.filter(pk=history_id, **{self.owner_field: instance}).first()
        if entry is None:
            raise HistoryEntryNotFound(
                f"History entry {history_id} not found for {instance._meta.model_name} {instance.pk}"
            )
        self.apply(instance, entry.snapshot)
        with transaction.atomic():
            record_history(
                self.history_model, self.owner_field, instance,
                self.history_model.ACTION_ROLLBACK, entry.snapshot, [], user,
            )
            instance.save()
        return instance, entry


def history_response(history_qs):
    """Serialized history entries, newest first"""
    return Response(HistoryEntrySerializer(history_qs, many=True).data)


def rollback_response(request, tracker, instance, history_id, serializer_class, object_name=None):
    """Shared body of the POST .../rollback/<history_id>/ endpoints"""
    try:
        instance, entry = tracker.rollback(instance, history_id, request.user)
    except HistoryEntryNotFound as e:
        logger.warning(str(e))
        return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
    except RollbackConflict as e:
        logger.warning(f"Rollback of {instance._meta.object_name} {instance.pk} refused: {e}")
        return Response({'error': str(e)}, status=status.HTTP_409_CONFLICT)
    except IntegrityError as e:
        # Unique values in the snapshot now held by another record
        logger.warning(f"Rollback of {instance._meta.object_name} {instance.pk} conflicts: {e}")
        return Response({'error': 'This version conflicts with existing data and cannot be restored'},
                        status=status.HTTP_409_CONFLICT)

    model_name = instance._meta.object_name
    logger.info(f"User {request.user.username} rolled back {model_name} {instance.pk} to history entry {entry.pk}")
    create_audit_log(
        request=request,
        action='rollback',
        model_name=model_name,
        object_id=instance.pk,
        object_name=object_name or str(instance),
        changes={'history_id': entry.pk, 'snapshot': entry.snapshot},
    )
    return Response(serializer_class(instance, context={'request': request}).data)
