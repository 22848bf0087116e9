import logging

from django.http import Http404
from django.views.decorators.http import require_safe

from .storage import get_default_storage

logger = logging.getLogger("davstore.views")


@require_safe
def serve_object(request, hash_path):
    """Serves a stored object through the configured backend

    Depending on the backend this is either a redirect to a direct link or
    the file contents themselves.
    """
    storage = get_default_storage()
    try:
        response, stats = storage.express(hash_path, request)
    except ValueError:
        raise Http404("No such object")
    logger.debug("Served {} ({} bytes, {} hits)".format(
        hash_path, stats.bytes, stats.hits,
    ))
    return response
