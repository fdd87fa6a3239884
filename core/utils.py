"""
Request helpers shared by views, middleware and the audit log.

Nothing here may import rest_framework: audit.models depends on this
module and DRF settings import the authentication backend on load.
"""


def get_client_ip(request):
    """
    Extract client IP address from request.
    Handles proxy headers (X-Forwarded-For).
    """
    if not request:
        return None

    x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if x_forwarded_for:
        return x_forwarded_for.split(',')[0].strip()

    return request.META.get('REMOTE_ADDR')
