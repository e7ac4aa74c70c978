from django.conf import settings
from django.core.paginator import Paginator


def _positive_int(value, default):
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return number if number > 0 else default


def paginate(request, queryset, serializer_class, context=None):
    """
    Paginate a queryset using ?page= and ?limit= query params.

    Returns the response body used by every list endpoint:
    results, count, next, previous, page, page_size, total_pages
    """
    page = _positive_int(request.query_params.get('page'), 1)
    limit = min(_positive_int(request.query_params.get('limit'), settings.DEFAULT_PAGE_SIZE), settings.MAX_PAGE_SIZE)

    paginator = Paginator(queryset, limit)
    page_obj = paginator.get_page(page)

    if context is None:
        context = {'request': request}
    serializer = serializer_class(page_obj, many=True, context=context)
    return {
        'results': serializer.data,
        'count': paginator.count,
        'next': page_obj.next_page_number() if page_obj.has_next() else None,
        'previous': page_obj.previous_page_number() if page_obj.has_previous() else None,
        'page': page_obj.number,
        'page_size': limit,
        'total_pages': paginator.num_pages,
    }
