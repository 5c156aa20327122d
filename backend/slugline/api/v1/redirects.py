from fastapi import Request, status
from fastapi.responses import RedirectResponse

from slugline.core import metrics
from slugline.services.resolver import Redirect


def redirect_for(request: Request, target: Redirect) -> RedirectResponse:
    """301 for retired slugs/handles, 302 when a legacy id is being canonicalised."""
    if target.slug is None:
        url = request.url_for("read_profile", owner_ref=target.owner_ref)
    else:
        url = request.url_for("read_post", owner_ref=target.owner_ref, slug=target.slug)
    metrics.record_redirect(target.permanent)
    code = status.HTTP_301_MOVED_PERMANENTLY if target.permanent else status.HTTP_302_FOUND
    return RedirectResponse(str(url), status_code=code)
