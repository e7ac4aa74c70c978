"""
Cache invalidation signals
Automatically invalidate cached lists when offices or directions change
"""
from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver
import logging
import threading
from contextlib import contextmanager

from .cache_utils import invalidate_offices_cache, invalidate_directions_cache

logger = logging.getLogger(__name__)

# Thread-local storage to track signal suspension
_thread_locals = threading.local()


@contextmanager
def suspend_cache_signals():
    """
    Context manager to temporarily suspend cache invalidation signals.
    Useful for bulk imports to prevent excessive cache clearing.
    Remember to manually invalidate cache after the block!
    """
    try:
        _thread_locals.suspended = True
        yield
    finally:
        _thread_locals.suspended = False


def is_suspended():
    return getattr(_thread_locals, 'suspended', False)


@receiver([post_save, post_delete])
def invalidate_office_lists(sender, instance, **kwargs):
    """Invalidate office lists when an office changes"""
    if is_suspended():
        return
    if sender.__name__ == 'Office' and sender._meta.app_label == 'offices':
        invalidate_offices_cache()


@receiver([post_save, post_delete])
def invalidate_direction_lists(sender, instance, **kwargs):
    """Invalidate direction lists when a CRM direction changes"""
    if is_suspended():
        return
    if sender.__name__ == 'CrmDirection':
        invalidate_directions_cache()
